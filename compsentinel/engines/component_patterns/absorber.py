"""Coverage & absorption -- attribute scanned files to matched components."""

from __future__ import annotations

import structlog

from compsentinel.engines.component_patterns.context import ScanContext
from compsentinel.engines.component_patterns.models import (
    DOT,
    Artifact,
    Inventory,
    Marker,
    MatchResult,
)
from compsentinel.engines.component_patterns.wildcard import PatternSet, normalize_path

log = structlog.get_logger("compsentinel.engine")


def path_within(relative_path: str, directory: str) -> bool:
    if directory == DOT:
        return True
    return relative_path.lower().startswith(directory.lower() + "/")


def relative_to(relative_path: str, directory: str) -> str:
    if directory == DOT:
        return relative_path
    return relative_path[len(directory) + 1:]


def covers(
    artifact_path: str,
    anchor_root: str,
    includes: PatternSet,
    excludes: PatternSet,
) -> bool:
    """Decide whether the artifact at *artifact_path* belongs to the match.

    Absolute patterns are evaluated first; relative patterns only for paths
    inside the anchor root subtree.
    """
    absolute_path = "/" + artifact_path
    if excludes.matches_absolute(absolute_path):
        return False
    if includes.matches_absolute(absolute_path):
        return True

    if not path_within(artifact_path, anchor_root):
        return False
    local_path = relative_to(artifact_path, anchor_root)
    if excludes.matches_relative(local_path):
        return False
    return includes.matches_relative(local_path)


def mark_covered_files(match: MatchResult, scan_context: ScanContext) -> int:
    """Mark every file covered by *match* for deletion; return the count."""
    cpd = match.descriptor
    includes = PatternSet.parse(cpd.include_pattern)
    excludes = PatternSet.parse(cpd.exclude_pattern)

    absorbed = 0
    with scan_context.lock:
        for artifact in scan_context.file_artifacts():
            artifact_path = normalize_path(artifact.path_in_asset).lstrip("/")
            if not covers(artifact_path, match.anchor_root, includes, excludes):
                continue
            artifact.mark_absorbed(match.asset_id_chain)
            absorbed += 1
            log.debug(
                "absorb.artifact_covered",
                anchor=cpd.version_anchor,
                checksum=cpd.version_anchor_checksum,
                path=artifact_path,
            )
    return absorbed


def expand_inventory(
    match: MatchResult,
    component: Artifact,
    expansion: Inventory,
    scan_context: ScanContext,
) -> None:
    """Merge a component's nested inventory into the scan context.

    Expanded artifacts that already carry an asset id chain manage their
    own lineage; all others inherit the chain of the match.
    """
    asset_id = component.derive_asset_id()
    for artifact in expansion.artifacts:
        if artifact.asset_id_chain is None:
            artifact.asset_id_chain = match.asset_id_chain
        artifact.markers.setdefault(asset_id, Marker.CONTAINS)
        scan_context.contribute(artifact)
    for asset in expansion.assets:
        scan_context.contribute_asset(asset)
    log.info(
        "absorb.inventory_expanded",
        component=component.id,
        artifacts=len(expansion.artifacts),
        assets=len(expansion.assets),
    )


def apply_match_results(match_results: list[MatchResult], scan_context: ScanContext) -> list[MatchResult]:
    """Absorb covered files, add component artifacts, drop consumed files.

    Returns the match results that survived (absorbed at least one file or
    do not require a file match).
    """
    surviving: list[MatchResult] = []
    for match in match_results:
        absorbed = mark_covered_files(match, scan_context)
        if absorbed:
            surviving.append(match)
        elif match.descriptor.no_file_match_required:
            log.debug("absorb.no_file_match_required", pattern=match.descriptor.describe())
            surviving.append(match)
        else:
            log.info("absorb.no_files_matched", pattern=match.descriptor.describe())

    expanded_suppliers: set[int] = set()
    for match in surviving:
        component = match.derive_artifact()
        scan_context.contribute(component)

        supplier = match.descriptor.expansion_inventory_supplier
        if supplier is not None and id(supplier) not in expanded_suppliers:
            expanded_suppliers.add(id(supplier))
            try:
                expansion = supplier()
            except Exception:
                log.exception(
                    "absorb.expansion_failed",
                    component=component.id,
                    pattern=match.descriptor.describe(),
                )
                expansion = None
            if expansion is not None:
                expand_inventory(match, component, expansion, scan_context)

        scan_context.contribute_pattern(match.descriptor)

    doomed = [a for a in scan_context.artifacts if a.marked_for_deletion]
    removed = scan_context.remove_all(doomed)
    log.info(
        "absorb.completed",
        matches=len(match_results),
        components=len(surviving),
        removed=removed,
    )
    return surviving
