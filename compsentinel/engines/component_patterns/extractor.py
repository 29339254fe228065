"""Extraction pass -- derive component pattern descriptors from scanned files."""

from __future__ import annotations

import structlog

from compsentinel.engines.component_patterns.context import ComponentPatternStore, ScanContext
from compsentinel.engines.component_patterns.dispatch import ContributorDispatcher
from compsentinel.engines.component_patterns.models import (
    UNSPECIFIC_VERSION,
    Artifact,
    ComponentPatternDescriptor,
)
from compsentinel.engines.component_patterns.registry import (
    ContributorRegistry,
    create_default_registry,
)
from compsentinel.engines.component_patterns.wildcard import PatternCache

log = structlog.get_logger("compsentinel.engine")


def order_shortest_path_first(artifacts: list[Artifact]) -> list[Artifact]:
    """Order checksummed file artifacts by path length, ties case-insensitively."""
    candidates = [a for a in artifacts if a.path_in_asset and a.checksum]
    return sorted(candidates, key=lambda a: (len(a.path_in_asset), a.path_in_asset.lower()))


def _store_descriptor(descriptor: ComponentPatternDescriptor, pattern_store: ComponentPatternStore) -> bool:
    log.info(
        "patterns.identified",
        pattern=descriptor.describe(),
        provenance=descriptor.provenance,
    )
    if (descriptor.version or "").lower() == UNSPECIFIC_VERSION:
        log.debug("patterns.unspecific_version_skipped", pattern=descriptor.describe())
        return False
    return pattern_store.add(descriptor)


def extract_component_patterns(
    scan_context: ScanContext,
    pattern_store: ComponentPatternStore,
    registry: ContributorRegistry | None = None,
) -> int:
    """Run all contributors over the scanned files and fill *pattern_store*.

    Shallow anchors are processed first so an outer component claims its
    descriptor before a nested duplicate is discovered deeper in the tree.
    Returns the number of descriptors added.
    """
    if registry is None:
        registry = create_default_registry()

    # the suffix cache lives exactly as long as this pass
    dispatcher = ContributorDispatcher(registry, PatternCache())
    base_dir = scan_context.base_dir

    added = 0
    for artifact in order_shortest_path_first(scan_context.file_artifacts()):
        path = artifact.path_in_asset
        try:
            descriptors = dispatcher.dispatch(base_dir, path, artifact.checksum, scan_context)
        except Exception:
            log.exception("extract.dispatch_failed", path=path)
            continue

        for descriptor in descriptors:
            try:
                stored = _store_descriptor(descriptor, pattern_store)
            except Exception:
                log.exception(
                    "extract.descriptor_rejected",
                    path=path,
                    provenance=getattr(descriptor, "provenance", None),
                )
                continue
            if stored:
                added += 1

    log.info(
        "extract.completed",
        base_dir=str(base_dir),
        added=added,
        total=len(pattern_store),
        compiled_suffixes=len(dispatcher.pattern_cache),
    )
    return added
