"""Shared pytest fixtures and helpers for compsentinel tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from compsentinel.engines.component_patterns.context import ScanContext
from compsentinel.engines.component_patterns.models import (
    ComponentPatternDescriptor,
    ScannedFile,
)


def make_context(files: dict[str, str | None], base_dir: str | Path = "/scan") -> ScanContext:
    """Build a scan context from ``{relative_path: checksum}``."""
    return ScanContext.from_scanned_files(
        base_dir, [ScannedFile(path=p, checksum=c) for p, c in files.items()]
    )


def make_descriptor(**overrides) -> ComponentPatternDescriptor:
    defaults = {
        "name": "foo",
        "version": "1.0.0",
        "version_anchor": "foo/package.json",
        "version_anchor_checksum": "*",
        "include_pattern": "foo/**",
    }
    defaults.update(overrides)
    return ComponentPatternDescriptor(**defaults)


def file_paths(context: ScanContext) -> set[str]:
    return {a.path_in_asset for a in context.file_artifacts()}


class StaticContributor:
    """Contributor returning canned descriptors for every path it sees."""

    def __init__(self, name="static", phase=0, suffixes=("package.json",), descriptors=None):
        self.name = name
        self.phase = phase
        self.suffixes = tuple(suffixes)
        self._descriptors = descriptors or (lambda path, checksum: [])
        self.calls: list[str] = []

    def applies(self, path: str) -> bool:
        return True

    def contribute(self, base_dir, relative_path, checksum, context):
        self.calls.append(relative_path)
        return self._descriptors(relative_path, checksum)


class FailingContributor(StaticContributor):
    def contribute(self, base_dir, relative_path, checksum, context):
        self.calls.append(relative_path)
        if relative_path.endswith("bad.json"):
            raise ValueError("malformed manifest")
        return []


@pytest.fixture
def write_tree(tmp_path):
    """Write ``{relative_path: content}`` below ``tmp_path`` and return the root."""

    def _write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        return tmp_path

    return _write
