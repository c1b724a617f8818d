"""pipeline.corpus

Turn a smart-contract-fiesta checkout into the task queue.

Layout::

    <root>/organized_contracts/<XX>/<bytecode_hash>/metadata.json
    <root>/organized_contracts/<XX>/<bytecode_hash>/main.sol | *.sol | contract.json

Per item:

1. parse ``metadata.json`` and keep only supported compilers (``v0.8.*``, no vyper)
2. resolve the sources:
   ``contract.json`` anywhere under the item -> :class:`OpaqueMetadata`;
   else one ``.sol`` file -> :class:`SingleFile`;
   else several -> :class:`MultiFile` (sorted by filename);
   else nothing, and the item is dropped.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional

from fiesta_bench.domain.task import (
    ContractTask,
    FiestaMetadata,
    MultiFile,
    OpaqueMetadata,
    SingleFile,
    SourceBundle,
)

logger = logging.getLogger(__name__)

CONTRACTS_SUBDIR = "organized_contracts"
METADATA_FILENAME = "metadata.json"
CONTRACT_JSON_FILENAME = "contract.json"


def validate_corpus_root(root: Path | str) -> Path:
    p = Path(root).expanduser()
    if not p.exists() or not p.is_dir():
        raise NotADirectoryError(f"The path {root} does not exist or is not a dir")
    return p.resolve()


def _walk_files(base: Path) -> Iterator[Path]:
    """Yield files under *base* in a stable (sorted) order."""
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath) / name


def read_metadata(path: Path) -> Optional[FiestaMetadata]:
    """Parse one ``metadata.json``; ``None`` (with a warning) when unusable."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Skipping unreadable %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Skipping %s: top level is not a JSON object", path)
        return None
    try:
        return FiestaMetadata.from_dict(data, dir_path=path.parent)
    except ValueError as e:
        logger.warning("Skipping %s: %s", path, e)
        return None


def discover_metadata(root: Path) -> Iterator[FiestaMetadata]:
    base = Path(root) / CONTRACTS_SUBDIR
    if not base.is_dir():
        logger.warning("No %s directory under %s", CONTRACTS_SUBDIR, root)
        return
    for path in _walk_files(base):
        if path.name != METADATA_FILENAME:
            continue
        meta = read_metadata(path)
        if meta is not None:
            yield meta


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def resolve_source(dir_path: Path) -> Optional[SourceBundle]:
    dir_path = Path(dir_path)
    files = list(_walk_files(dir_path))

    for path in files:
        if path.name == CONTRACT_JSON_FILENAME:
            return OpaqueMetadata(
                filename=path.relative_to(dir_path).as_posix(),
                blob=_read_text(path),
            )

    sol_files = [p for p in files if p.suffix == ".sol"]
    if not sol_files:
        logger.info("Found no .sol files in %s (likely a main.vy labelled as solidity)", dir_path)
        return None

    if len(sol_files) == 1:
        only = sol_files[0]
        return SingleFile(filename=only.relative_to(dir_path).as_posix(), text=_read_text(only))

    return MultiFile(
        files=tuple((p.relative_to(dir_path).as_posix(), _read_text(p)) for p in sol_files)
    )


def load_tasks(root: Path, *, max_tasks: int = 0, skip: int = 0) -> List[ContractTask]:
    """Build the task queue.

    ``skip`` drops that many leading supported items; ``max_tasks`` caps the
    number of resolved tasks (``0`` = no cap).
    """
    tasks: List[ContractTask] = []
    unsupported = 0
    unresolved = 0
    skipped = 0

    for meta in discover_metadata(root):
        if max_tasks and len(tasks) >= max_tasks:
            break
        if not meta.compiler_is_supported():
            unsupported += 1
            continue
        if skipped < skip:
            skipped += 1
            continue

        source = resolve_source(meta.dir_path)
        if source is None:
            unresolved += 1
            continue
        tasks.append(ContractTask.from_metadata(meta, source))

    logger.info(
        "Loaded %d tasks (%d unsupported compilers, %d skipped, %d without sources)",
        len(tasks),
        unsupported,
        skipped,
        unresolved,
    )
    return tasks
