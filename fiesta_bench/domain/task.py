"""fiesta_bench.domain.task

What gets scheduled: one corpus item bound to its resolved sources.

Source bundles are a closed set of three variants. Every consumer handles all
three explicitly (``isinstance`` chains ending in a ``TypeError``), so adding
a fourth variant fails loudly instead of falling through.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union


class TargetNotFoundError(LookupError):
    """A multi-file bundle has no member declaring the task's contract."""


@dataclass(frozen=True)
class SingleFile:
    """Exactly one ``.sol`` file was found for the item."""

    filename: str
    text: str

    kind_label = "SingleFile"


@dataclass(frozen=True)
class MultiFile:
    """Several ``.sol`` files, as ``(filename, text)`` pairs sorted by filename."""

    files: Tuple[Tuple[str, str], ...]

    kind_label = "MultipleFiles"

    def __post_init__(self) -> None:
        # Normalize so equality and target selection never depend on walk order.
        object.__setattr__(self, "files", tuple(sorted(self.files, key=lambda f: f[0])))

    def find_declaring(self, contract_name: str) -> Optional[str]:
        """Return the first filename whose text declares ``contract <name> ``."""

        needle = f"contract {contract_name} "
        for name, text in self.files:
            if needle in text:
                return name
        return None


@dataclass(frozen=True)
class OpaqueMetadata:
    """A third-party ``contract.json`` blob; passed to the analyzer as-is."""

    filename: str
    blob: str

    kind_label = "JSON"


SourceBundle = Union[SingleFile, MultiFile, OpaqueMetadata]

# Hashes name result rows and sidecar files, so only plain hex is accepted.
BYTECODE_HASH_RE = re.compile(r"(?:0x)?[0-9a-fA-F]+")


def _as_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "yes"}
    return bool(v)


def _safe_int(v: Any) -> int:
    # bool is a subclass of int; treat as invalid.
    if isinstance(v, bool):
        return 0
    try:
        return int(v)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class FiestaMetadata:
    """One ``metadata.json`` from ``organized_contracts/<XX>/<hash>/``.

    Example::

        {"ContractName":"Vyper_contract","CompilerVersion":"vyper:0.3.1",
         "Runs":0,"OptimizationUsed":false,"BytecodeHash":"8321...abd"}
    """

    contract_name: str
    compiler_version: str
    runs: int
    optimization_used: bool
    bytecode_hash: str
    dir_path: Path

    @classmethod
    def from_dict(cls, d: Mapping[str, Any], *, dir_path: Path) -> "FiestaMetadata":
        for key in ("ContractName", "CompilerVersion", "BytecodeHash"):
            if not isinstance(d.get(key), str):
                raise ValueError(f"metadata field {key!r} missing or not a string")
        if not BYTECODE_HASH_RE.fullmatch(d["BytecodeHash"]):
            raise ValueError(f"metadata field 'BytecodeHash' is not a hex digest: {d['BytecodeHash']!r}")
        return cls(
            contract_name=d["ContractName"],
            compiler_version=d["CompilerVersion"],
            runs=_safe_int(d.get("Runs")),
            optimization_used=_as_bool(d.get("OptimizationUsed")),
            bytecode_hash=d["BytecodeHash"],
            dir_path=Path(dir_path).resolve(),
        )

    def compiler_is_supported(self) -> bool:
        return self.compiler_version.startswith("v0.8.") and "vyper" not in self.compiler_version


@dataclass(frozen=True)
class ContractTask:
    """The unit of scheduling. Immutable once it enters the execution layer."""

    bytecode_hash: str
    contract_name: str
    compiler_version: str
    dir_path: Path
    source: SourceBundle

    @classmethod
    def from_metadata(cls, meta: FiestaMetadata, source: SourceBundle) -> "ContractTask":
        return cls(
            bytecode_hash=meta.bytecode_hash,
            contract_name=meta.contract_name,
            compiler_version=meta.compiler_version,
            dir_path=meta.dir_path,
            source=source,
        )

    @property
    def source_kind(self) -> str:
        return self.source.kind_label

    def target_path(self) -> Path:
        """Resolve the single file handed to the analyzer.

        Raises :class:`TargetNotFoundError` for a multi-file bundle where no
        member declares ``contract <contract_name>``.
        """

        src = self.source
        if isinstance(src, SingleFile):
            return self.dir_path / src.filename
        if isinstance(src, OpaqueMetadata):
            return self.dir_path / src.filename
        if isinstance(src, MultiFile):
            name = src.find_declaring(self.contract_name)
            if name is None:
                raise TargetNotFoundError(
                    f"Could not find contract {self.contract_name} in {len(src.files)} files "
                    f"under {self.dir_path}"
                )
            return self.dir_path / name
        raise TypeError(f"Unknown source bundle: {type(src).__name__}")
