"""File collection: turn a directory into scanned files (path + checksum)."""

from __future__ import annotations

import hashlib
from pathlib import Path

import structlog

from compsentinel.core.config import ScanSettings
from compsentinel.engines.component_patterns.models import ScannedFile
from compsentinel.engines.component_patterns.wildcard import PatternSet

log = structlog.get_logger("compsentinel.engine")

_CHUNK_SIZE = 1 << 16


def file_checksum(path: Path, algorithm: str) -> str:
    digest = hashlib.new(algorithm)
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def collect_scanned_files(
    root: Path,
    algorithm: str | None = None,
    excludes: str | None = None,
) -> list[ScannedFile]:
    """Walk *root* and checksum every regular file.

    Paths are relative to *root* with ``/`` separators, in sorted order.
    Symlinks are not followed. *algorithm* and *excludes* default to the
    values of :class:`ScanSettings.from_env`.
    """
    if not root.is_dir():
        raise NotADirectoryError(f"not a directory: {root}")

    settings = ScanSettings.from_env()
    algorithm = algorithm or settings.checksum_algorithm
    exclude_set = PatternSet.parse(settings.scan_excludes if excludes is None else excludes)

    scanned: list[ScannedFile] = []
    skipped = 0
    for file_path in sorted(root.rglob("*")):
        if file_path.is_symlink() or not file_path.is_file():
            continue
        rel = file_path.relative_to(root).as_posix()
        if exclude_set.matches_relative(rel) or exclude_set.matches_absolute("/" + rel):
            skipped += 1
            continue
        try:
            checksum = file_checksum(file_path, algorithm)
        except OSError as exc:
            log.warning("filescan.unreadable", path=rel, error=str(exc))
            skipped += 1
            continue
        scanned.append(ScannedFile(path=rel, checksum=checksum))

    log.info(
        "filescan.completed",
        root=str(root),
        files=len(scanned),
        skipped=skipped,
        algorithm=algorithm,
    )
    return scanned
