"""Scan settings read from ``COMPSENTINEL_*`` environment variables."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass

DEFAULT_CHECKSUM_ALGORITHM = "md5"
DEFAULT_SCAN_EXCLUDES = "**/.git/**/*"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_str(key: str, default: str) -> str:
    value = os.environ.get(key)
    return value if value else default


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class ScanSettings:
    checksum_algorithm: str = DEFAULT_CHECKSUM_ALGORITHM
    scan_excludes: str = DEFAULT_SCAN_EXCLUDES
    skip_deferred: bool = False

    def __post_init__(self) -> None:
        if self.checksum_algorithm not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported checksum algorithm: {self.checksum_algorithm!r}")

    @classmethod
    def from_env(cls) -> ScanSettings:
        return cls(
            checksum_algorithm=_env_str(
                "COMPSENTINEL_CHECKSUM_ALGORITHM", DEFAULT_CHECKSUM_ALGORITHM
            ).lower(),
            scan_excludes=_env_str("COMPSENTINEL_SCAN_EXCLUDES", DEFAULT_SCAN_EXCLUDES),
            skip_deferred=_env_bool("COMPSENTINEL_SKIP_DEFERRED"),
        )
