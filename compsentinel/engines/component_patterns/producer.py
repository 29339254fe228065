"""Entry points of the component pattern engine.

Two-pass protocol::

    store = ComponentPatternStore()
    extract_component_patterns(context, store)
    match_and_apply_component_patterns(store, context)
    match_and_apply_component_patterns(store, context, deferred=True)
"""

from __future__ import annotations

import structlog

from compsentinel.engines.component_patterns.absorber import apply_match_results
from compsentinel.engines.component_patterns.context import ComponentPatternStore, ScanContext
from compsentinel.engines.component_patterns.extractor import extract_component_patterns
from compsentinel.engines.component_patterns.matcher import match_component_patterns
from compsentinel.engines.component_patterns.registry import ContributorRegistry

log = structlog.get_logger("compsentinel.engine")

__all__ = [
    "extract_component_patterns",
    "match_and_apply_component_patterns",
    "run_component_scan",
]


def match_and_apply_component_patterns(
    pattern_store: ComponentPatternStore,
    scan_context: ScanContext,
    deferred: bool = False,
) -> int:
    """Match the stored descriptors of one mode and absorb the covered files.

    Raises :class:`~compsentinel.exceptions.DescriptorConfigurationError` if
    a descriptor is malformed; the inventory is left untouched in that case.
    Returns the number of component artifacts added.
    """
    match_results = match_component_patterns(pattern_store, scan_context, deferred=deferred)
    if not match_results:
        log.debug("match.no_anchor_matches", deferred=deferred)
        return 0
    return len(apply_match_results(match_results, scan_context))


def run_component_scan(
    scan_context: ScanContext,
    registry: ContributorRegistry | None = None,
    skip_deferred: bool = False,
) -> ComponentPatternStore:
    """Run extraction, the immediate pass and (optionally) the deferred pass."""
    pattern_store = ComponentPatternStore()
    extract_component_patterns(scan_context, pattern_store, registry)

    components = match_and_apply_component_patterns(pattern_store, scan_context)
    if not skip_deferred:
        components += match_and_apply_component_patterns(pattern_store, scan_context, deferred=True)

    log.info(
        "scan.completed",
        base_dir=str(scan_context.base_dir),
        patterns=len(pattern_store),
        components=components,
        remaining_artifacts=len(scan_context.artifacts),
    )
    return pattern_store
