"""Scan context and pattern store shared by the extraction and matching passes."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from pathlib import Path

from compsentinel.engines.component_patterns.models import (
    Artifact,
    AssetMetadata,
    ComponentPatternDescriptor,
    Inventory,
    ScannedFile,
)
from compsentinel.exceptions import ScanContextError


class ScanContext:
    """Mutable state of one scan: base directory plus the managed inventory.

    Structural changes to the inventory go through the context and are
    serialized by :attr:`lock`.
    """

    def __init__(self, base_dir: str | Path, inventory: Inventory | None = None) -> None:
        self.base_dir = Path(base_dir)
        self.inventory = inventory if inventory is not None else Inventory()
        self.lock = threading.RLock()

    @classmethod
    def from_scanned_files(
        cls, base_dir: str | Path, scanned_files: Iterable[ScannedFile]
    ) -> ScanContext:
        context = cls(base_dir)
        for scanned in scanned_files:
            context.contribute(Artifact.from_scanned_file(scanned))
        return context

    @classmethod
    def from_directory(cls, base_dir: str | Path, **kwargs) -> ScanContext:
        from compsentinel.engines.component_patterns.filescan import collect_scanned_files

        return cls.from_scanned_files(base_dir, collect_scanned_files(Path(base_dir), **kwargs))

    @property
    def artifacts(self) -> list[Artifact]:
        return self.inventory.artifacts

    def file_artifacts(self) -> list[Artifact]:
        """Snapshot of the artifacts representing scanned files."""
        with self.lock:
            return [a for a in self.inventory.artifacts if a.is_file and a.path_in_asset]

    def contribute(self, artifact: Artifact) -> None:
        """Add *artifact* to the inventory. No deduplication is performed."""
        if artifact is None:
            raise ScanContextError("Artifact <None> contributed to scan inventory.")
        if not artifact.id or not artifact.id.strip():
            raise ScanContextError("Artifact with empty id contributed to scan inventory.")
        with self.lock:
            self.inventory.artifacts.append(artifact)

    def contribute_asset(self, asset: AssetMetadata) -> None:
        with self.lock:
            self.inventory.assets.append(asset)

    def contribute_pattern(self, descriptor: ComponentPatternDescriptor) -> None:
        with self.lock:
            self.inventory.component_patterns.append(descriptor)

    def remove_all(self, artifacts: Iterable[Artifact]) -> int:
        doomed = {id(a) for a in artifacts}
        if not doomed:
            return 0
        with self.lock:
            before = len(self.inventory.artifacts)
            self.inventory.artifacts[:] = [
                a for a in self.inventory.artifacts if id(a) not in doomed
            ]
            return before - len(self.inventory.artifacts)


class ComponentPatternStore:
    """Ordered collection of descriptors, deduplicated by qualifier."""

    def __init__(self, descriptors: Iterable[ComponentPatternDescriptor] = ()) -> None:
        self._descriptors: list[ComponentPatternDescriptor] = []
        self._qualifiers: set[str] = set()
        for descriptor in descriptors:
            self.add(descriptor)

    def __iter__(self) -> Iterator[ComponentPatternDescriptor]:
        return iter(list(self._descriptors))

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, qualifier: object) -> bool:
        return qualifier in self._qualifiers

    def add(self, descriptor: ComponentPatternDescriptor) -> bool:
        """Add *descriptor* unless its qualifier is already stored."""
        qualifier = descriptor.derive_qualifier()
        if qualifier in self._qualifiers:
            return False
        self._qualifiers.add(qualifier)
        self._descriptors.append(descriptor)
        return True

    @property
    def qualifiers(self) -> frozenset[str]:
        return frozenset(self._qualifiers)
