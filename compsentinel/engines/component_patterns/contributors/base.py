"""Helpers shared by the built-in contributors."""

from __future__ import annotations

import posixpath
from pathlib import Path

from compsentinel.engines.component_patterns.models import DOT


def split_virtual_root(relative_path: str, suffixes: tuple[str, ...]) -> tuple[str, str]:
    """Split *relative_path* into ``(virtual_root, anchor)`` at the first matching suffix.

    ``usr/x/etc/os-release`` with suffix ``etc/os-release`` yields
    ``("usr/x", "etc/os-release")``; a path equal to the suffix yields the
    scan root ``.``.
    """
    lowered = relative_path.lower()
    for suffix in suffixes:
        suffix = suffix.strip("/").lower()
        if lowered == suffix:
            return DOT, relative_path
        if lowered.endswith("/" + suffix):
            cut = len(relative_path) - len(suffix)
            return relative_path[: cut - 1], relative_path[cut:]
    return posixpath.dirname(relative_path) or DOT, posixpath.basename(relative_path)


def parent_dir(relative_path: str) -> str:
    return posixpath.dirname(relative_path) or DOT


def resolve(base_dir: Path, relative_path: str) -> Path:
    return base_dir if relative_path == DOT else base_dir / relative_path


def read_text(base_dir: Path, relative_path: str) -> str:
    return resolve(base_dir, relative_path).read_text(encoding="utf-8", errors="replace")
