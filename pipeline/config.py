"""pipeline.config

Run configuration.

Precedence (lowest to highest):

1. the defaults on :class:`RunConfig`
2. a YAML run-config file (``--config``)
3. environment variables (``FIESTA_*``, optionally from ``.env``)
4. explicit command-line flags

Example ``run.yaml``::

    max_tasks: 0          # 0 = whole corpus
    deadline_seconds: 5
    jobs: 8
    analyzer_bin: /opt/pyrometer/bin/pyrometer
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from fiesta_bench.io.layout import DEFAULT_DATA_DIR, anchor, default_output_path

from pipeline.core import DEFAULT_ANALYZER_BIN, DEFAULT_DEBUG_FLAG

# Stand-in for "no deadline": ten years.
UNLIMITED_DEADLINE_SECONDS = 10 * 365 * 24 * 3600.0

ENV_OVERRIDES: Dict[str, str] = {
    "FIESTA_ANALYZER_BIN": "analyzer_bin",
    "FIESTA_DATA_DIR": "data_dir",
    "FIESTA_LOG_LEVEL": "log_level",
}


class ConfigError(ValueError):
    pass


def _default_jobs() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class RunConfig:
    corpus_root: Path
    max_tasks: int = 3000
    deadline_seconds: float = 2.0
    jobs: int = field(default_factory=_default_jobs)
    output_path: Optional[Path] = None
    skip: int = 0

    analyzer_bin: str = DEFAULT_ANALYZER_BIN
    debug_flag: str = DEFAULT_DEBUG_FLAG

    poll_interval: float = 0.002
    drain_grace: float = 1.0
    idle_margin: float = 30.0
    shutdown_timeout: float = 60.0

    data_dir: Path = DEFAULT_DATA_DIR
    keep_noninterpreted: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.max_tasks < 0:
            raise ConfigError(f"max_tasks must be >= 0 (got {self.max_tasks})")
        if self.skip < 0:
            raise ConfigError(f"skip must be >= 0 (got {self.skip})")
        if self.deadline_seconds < 0:
            raise ConfigError(f"deadline_seconds must be >= 0 (got {self.deadline_seconds})")
        if self.jobs < 1:
            raise ConfigError(f"jobs must be >= 1 (got {self.jobs})")
        if self.poll_interval <= 0:
            raise ConfigError(f"poll_interval must be > 0 (got {self.poll_interval})")
        for name in ("drain_grace", "idle_margin", "shutdown_timeout"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0 (got {getattr(self, name)})")

    @property
    def effective_deadline(self) -> float:
        """Deadline in seconds, with 0 meaning effectively unlimited."""
        if self.deadline_seconds == 0:
            return UNLIMITED_DEADLINE_SECONDS
        return float(self.deadline_seconds)

    @property
    def idle_timeout(self) -> float:
        """How long the collector waits on a silent channel before giving up.

        Longer than any single task may legitimately run.
        """
        return self.effective_deadline + self.poll_interval + self.idle_margin

    def resolved_output_path(self) -> Path:
        if self.output_path is not None:
            return anchor(self.output_path)
        return default_output_path(self.data_dir)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "RunConfig":
        known = {f.name: f for f in dataclasses.fields(cls)}
        unknown = sorted(set(d) - set(known))
        if unknown:
            raise ConfigError(f"Unknown run config keys: {unknown}")
        if d.get("corpus_root") in (None, ""):
            raise ConfigError("corpus_root is required")

        kwargs: Dict[str, Any] = {}
        for key, value in d.items():
            if value is None:
                continue
            kwargs[key] = _coerce(key, value)
        return cls(**kwargs)


def _coerce(key: str, value: Any) -> Any:
    try:
        if key in {"corpus_root", "output_path", "data_dir"}:
            return Path(str(value)).expanduser()
        if key in {"max_tasks", "jobs", "skip"}:
            if isinstance(value, bool):
                raise TypeError("bool")
            return int(value)
        if key in {"deadline_seconds", "poll_interval", "drain_grace", "idle_margin", "shutdown_timeout"}:
            return float(value)
        if key == "keep_noninterpreted":
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "yes", "y"}
            return bool(value)
        if key == "log_level":
            return str(value).upper()
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for {key}: {value!r}") from None
    return str(value)


def load_run_config_yaml(path: str | Path) -> Dict[str, Any]:
    """Load a run-config mapping from YAML."""
    import yaml

    p = Path(path).expanduser().resolve()
    if not p.exists():
        raise FileNotFoundError(f"Run config not found: {p}")
    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Run config YAML must be a mapping/object at top level: {p}")
    return raw


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    env = os.environ if environ is None else environ
    out: Dict[str, str] = {}
    for var, key in ENV_OVERRIDES.items():
        val = env.get(var)
        if val:
            out[key] = val
    return out


def build_run_config(
    cli_values: Mapping[str, Any],
    *,
    config_file: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RunConfig:
    """Merge file, environment and CLI values into one :class:`RunConfig`."""
    merged: Dict[str, Any] = {}
    if config_file:
        merged.update(load_run_config_yaml(config_file))
    merged.update(env_overrides(environ))
    merged.update({k: v for k, v in cli_values.items() if v is not None})
    return RunConfig.from_dict(merged)
