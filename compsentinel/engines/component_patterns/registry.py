"""Contributor registry -- contributors indexed by (phase, suffix)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from compsentinel.engines.component_patterns.models import ComponentPatternDescriptor

log = structlog.get_logger("compsentinel.engine")


@runtime_checkable
class ComponentPatternContributor(Protocol):
    """Interface that every contributor must satisfy.

    ``phase`` orders contributors (lower runs first); ``suffixes`` are
    lower-case wildcard strings the contributor anchors on; ``applies`` is a
    cheap pre-check on the relative path; ``contribute`` produces descriptors
    for one anchor file.
    """

    name: str
    phase: int
    suffixes: tuple[str, ...]

    def applies(self, path: str) -> bool: ...

    def contribute(
        self,
        base_dir: Path,
        relative_path: str,
        checksum: str | None,
        context: object,
    ) -> list[ComponentPatternDescriptor]: ...


def contributor_identity(contributor: object) -> str:
    return getattr(contributor, "name", None) or type(contributor).__qualname__


@dataclass(frozen=True)
class ContributorBucket:
    phase: int
    suffix: str
    contributors: tuple[ComponentPatternContributor, ...]


class ContributorRegistry:
    """Ordered registry: ascending phase, then registration order."""

    def __init__(self) -> None:
        self._by_phase: dict[int, dict[str, list[ComponentPatternContributor]]] = {}
        self._contributors: list[ComponentPatternContributor] = []

    def __len__(self) -> int:
        return len(self._contributors)

    def register(self, contributor: ComponentPatternContributor) -> bool:
        """Add *contributor* to every (phase, suffix) bucket it declares.

        A contributor without suffixes could never be dispatched; it is
        logged as a configuration error and left out.
        """
        suffixes = [s for s in (contributor.suffixes or ()) if s]
        if not suffixes:
            log.error(
                "registry.contributor_without_suffixes",
                contributor=contributor_identity(contributor),
            )
            return False

        buckets = self._by_phase.setdefault(contributor.phase, {})
        for suffix in suffixes:
            bucket = buckets.setdefault(suffix.lower(), [])
            if contributor not in bucket:
                bucket.append(contributor)
        self._contributors.append(contributor)
        log.debug(
            "registry.contributor_registered",
            contributor=contributor_identity(contributor),
            phase=contributor.phase,
            suffixes=suffixes,
        )
        return True

    def contributors(self) -> list[ComponentPatternContributor]:
        return list(self._contributors)

    def buckets(self) -> list[ContributorBucket]:
        return [
            ContributorBucket(phase=phase, suffix=suffix, contributors=tuple(members))
            for phase in sorted(self._by_phase)
            for suffix, members in self._by_phase[phase].items()
        ]


def create_default_registry() -> ContributorRegistry:
    """Create a registry with the built-in contributors."""
    from compsentinel.engines.component_patterns.contributors import (
        ApkPackageContributor,
        LinuxDistributionContributor,
        NpmPackageContributor,
        PythonDistInfoContributor,
    )

    registry = ContributorRegistry()
    registry.register(LinuxDistributionContributor())
    registry.register(ApkPackageContributor())
    registry.register(NpmPackageContributor())
    registry.register(PythonDistInfoContributor())
    return registry
