"""Dispatch one candidate file to every interested contributor."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from compsentinel.engines.component_patterns.models import ComponentPatternDescriptor
from compsentinel.engines.component_patterns.registry import (
    ComponentPatternContributor,
    ContributorRegistry,
    contributor_identity,
)
from compsentinel.engines.component_patterns.wildcard import PatternCache, lower
from compsentinel.exceptions import ContributorError

log = structlog.get_logger("compsentinel.engine")


@dataclass
class ContributionResult:
    """Outcome of invoking one contributor on one anchor file."""

    contributor: str
    path: str
    descriptors: list[ComponentPatternDescriptor] = field(default_factory=list)
    error: ContributorError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ContributorDispatcher:
    """Runs the registered contributors against single anchor files.

    The suffix matcher of a bucket is only evaluated when at least one of
    its contributors reports that it applies to the path.
    """

    def __init__(
        self,
        registry: ContributorRegistry,
        pattern_cache: PatternCache | None = None,
    ) -> None:
        self._registry = registry
        self._cache = pattern_cache if pattern_cache is not None else PatternCache()

    @property
    def pattern_cache(self) -> PatternCache:
        return self._cache

    @staticmethod
    def _failure(name: str, relative_path: str, exc: Exception) -> ContributionResult:
        return ContributionResult(
            contributor=name,
            path=relative_path,
            error=ContributorError(name, relative_path, exc),
        )

    def invoke(
        self,
        contributor: ComponentPatternContributor,
        base_dir: Path,
        relative_path: str,
        checksum: str | None,
        context: object,
    ) -> ContributionResult:
        name = contributor_identity(contributor)
        try:
            descriptors = list(contributor.contribute(base_dir, relative_path, checksum, context) or [])
            for descriptor in descriptors:
                descriptor.provenance = name
        except Exception as exc:
            return self._failure(name, relative_path, exc)
        return ContributionResult(contributor=name, path=relative_path, descriptors=descriptors)

    def run(
        self,
        base_dir: Path,
        relative_path: str,
        checksum: str | None,
        context: object = None,
    ) -> list[ContributionResult]:
        lowercased = lower(relative_path)
        results: list[ContributionResult] = []
        # a contributor matching several of its suffixes runs once per path
        invoked: set[int] = set()
        for bucket in self._registry.buckets():
            candidates = []
            for contributor in bucket.contributors:
                if id(contributor) in invoked:
                    continue
                try:
                    applies = contributor.applies(relative_path)
                except Exception as exc:
                    invoked.add(id(contributor))
                    results.append(
                        self._failure(contributor_identity(contributor), relative_path, exc)
                    )
                    continue
                if applies:
                    candidates.append(contributor)
            if not candidates:
                continue
            if not self._cache.matches(bucket.suffix, lowercased):
                continue
            for contributor in candidates:
                invoked.add(id(contributor))
                results.append(
                    self.invoke(contributor, base_dir, relative_path, checksum, context)
                )
        return results

    def dispatch(
        self,
        base_dir: Path,
        relative_path: str,
        checksum: str | None,
        context: object = None,
    ) -> list[ComponentPatternDescriptor]:
        """Collect the descriptors of all contributors; failures are logged."""
        descriptors: list[ComponentPatternDescriptor] = []
        for result in self.run(base_dir, relative_path, checksum, context):
            if result.error is not None:
                log.error(
                    "dispatch.contributor_failed",
                    contributor=result.contributor,
                    path=result.path,
                    checksum=checksum,
                    error=repr(result.error.cause),
                    exc_info=result.error.cause,
                )
                continue
            descriptors.extend(result.descriptors)
        return descriptors
