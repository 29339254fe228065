"""Anchor matching -- locate the files that satisfy descriptor version anchors."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from compsentinel.engines.component_patterns.context import ScanContext
from compsentinel.engines.component_patterns.models import (
    ASTERISK,
    DOT,
    DOUBLE_ASTERISK,
    ComponentPatternDescriptor,
    MatchResult,
)
from compsentinel.engines.component_patterns.wildcard import (
    AntPattern,
    longest_literal,
    lower,
    normalize_path,
)
from compsentinel.exceptions import DescriptorConfigurationError

log = structlog.get_logger("compsentinel.engine")


def validate_descriptor(cpd: ComponentPatternDescriptor) -> None:
    """Raise :class:`DescriptorConfigurationError` if *cpd* is malformed."""
    label = cpd.include_pattern or cpd.describe()
    if not cpd.version_anchor:
        raise DescriptorConfigurationError(
            f"The version anchor of component pattern [{label}] must be defined.",
            qualifier=cpd.derive_qualifier(),
        )
    if DOUBLE_ASTERISK in cpd.version_anchor:
        raise DescriptorConfigurationError(
            f"The version anchor of component pattern [{label}] must not contain **. Use * only.",
            qualifier=cpd.derive_qualifier(),
        )
    if not cpd.version_anchor_checksum:
        raise DescriptorConfigurationError(
            f"The version anchor checksum of component pattern [{label}] must be defined.",
            qualifier=cpd.derive_qualifier(),
        )
    if cpd.is_root_anchor and cpd.version_anchor_checksum != ASTERISK:
        raise DescriptorConfigurationError(
            f"The version anchor checksum of component pattern [{label}] with version anchor "
            f"[{cpd.version_anchor}] must be '*'.",
            qualifier=cpd.derive_qualifier(),
        )


def anchor_segment_count(anchor: str) -> int:
    return anchor.count("/") + 1


def walk_up(relative_path: str, steps: int) -> str:
    """Return the ancestor of *relative_path* that lies *steps* levels up.

    Walking past the top of the path falls back to the scan root (``.``).
    """
    parts = [p for p in relative_path.split("/") if p and p != DOT]
    remaining = len(parts) - steps
    if remaining <= 0:
        return DOT
    return "/".join(parts[:remaining])


def compute_anchor_root(relative_file: str, normalized_anchor: str) -> str:
    """Directory the anchor path is relative to."""
    if normalized_anchor in (ASTERISK, DOT):
        return DOT
    return walk_up(relative_file, anchor_segment_count(normalized_anchor))


def compute_component_base_dir(relative_file: str, normalized_anchor: str) -> str:
    """Directory holding the anchor's leading segment.

    For a one-segment anchor this is the directory of the matched file; for
    ``foo/package.json`` matching ``app/node_modules/foo/package.json`` it is
    ``app/node_modules/foo``.
    """
    if normalized_anchor in (ASTERISK, DOT):
        return DOT
    steps = max(anchor_segment_count(normalized_anchor) - 1, 1)
    return walk_up(relative_file, steps)


class _AnchorMatcher:
    def __init__(self, anchor: str) -> None:
        self.anchor = lower(normalize_path(anchor)).lstrip("/")
        self.is_pattern = ASTERISK in self.anchor
        self.literal = longest_literal(self.anchor)
        self._pattern = AntPattern.compile("**/" + self.anchor) if self.is_pattern else None

    def matches(self, lowercased_path: str) -> bool:
        if self.literal not in lowercased_path:
            return False
        if self._pattern is not None:
            return self._pattern.matches(lowercased_path)
        return lowercased_path == self.anchor or lowercased_path.endswith("/" + self.anchor)


def match_descriptor(
    cpd: ComponentPatternDescriptor,
    scan_context: ScanContext,
    candidates: list | None = None,
) -> list[MatchResult]:
    """Match one validated descriptor against the scanned files."""
    scan_root = str(scan_context.base_dir)

    if cpd.is_root_anchor:
        # a single match for the whole scan root; never one per file
        return [
            MatchResult(
                descriptor=cpd.copy(version_anchor_checksum=ASTERISK),
                anchor_path=DOT,
                scan_root=scan_root,
                base_dir=DOT,
                anchor_root=DOT,
            )
        ]

    matcher = _AnchorMatcher(cpd.version_anchor)
    specific_checksum = cpd.version_anchor_checksum != ASTERISK
    expected = lower(cpd.version_anchor_checksum)

    if candidates is None:
        candidates = scan_context.file_artifacts()

    results: list[MatchResult] = []
    for artifact in candidates:
        path = normalize_path(artifact.path_in_asset or "")
        if not path:
            continue
        if not matcher.matches(lower(path)):
            continue

        actual = artifact.checksum if specific_checksum else ASTERISK
        if lower(actual or "") != expected:
            log.debug(
                "match.checksum_mismatch",
                path=path,
                expected=cpd.version_anchor_checksum,
                actual=actual,
            )
            continue

        results.append(
            MatchResult(
                descriptor=cpd.copy(version_anchor_checksum=actual),
                anchor_path=path,
                scan_root=scan_root,
                base_dir=compute_component_base_dir(path, matcher.anchor),
                anchor_root=compute_anchor_root(path, matcher.anchor),
                asset_id_chain=artifact.asset_id_chain,
            )
        )
    return results


def match_component_patterns(
    descriptors: Iterable[ComponentPatternDescriptor],
    scan_context: ScanContext,
    deferred: bool = False,
) -> list[MatchResult]:
    """Match every descriptor of the requested mode; the inventory is not modified.

    Every descriptor is validated first, whatever its mode, so a malformed
    deferred descriptor aborts before the immediate pass touches anything.
    """
    descriptors = list(descriptors)
    for cpd in descriptors:
        validate_descriptor(cpd)

    candidates = scan_context.file_artifacts()
    results: list[MatchResult] = []
    for cpd in descriptors:
        if cpd.is_deferred != deferred:
            continue
        log.debug("match.checking", pattern=cpd.describe())
        results.extend(match_descriptor(cpd, scan_context, candidates))

    if results:
        log.info("match.completed", anchor_matches=len(results), deferred=deferred)
    return results
