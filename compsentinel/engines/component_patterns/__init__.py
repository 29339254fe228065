"""Component pattern engine: identify third-party components in scanned file trees."""

from compsentinel.engines.component_patterns.context import ComponentPatternStore, ScanContext
from compsentinel.engines.component_patterns.filescan import collect_scanned_files
from compsentinel.engines.component_patterns.models import (
    Artifact,
    AssetMetadata,
    ComponentPatternDescriptor,
    ComponentPatternMode,
    Inventory,
    MatchResult,
    ScannedFile,
)
from compsentinel.engines.component_patterns.producer import (
    extract_component_patterns,
    match_and_apply_component_patterns,
    run_component_scan,
)
from compsentinel.engines.component_patterns.registry import (
    ComponentPatternContributor,
    ContributorRegistry,
    create_default_registry,
)

__all__ = [
    "Artifact",
    "AssetMetadata",
    "ComponentPatternContributor",
    "ComponentPatternDescriptor",
    "ComponentPatternMode",
    "ComponentPatternStore",
    "ContributorRegistry",
    "Inventory",
    "MatchResult",
    "ScanContext",
    "ScannedFile",
    "collect_scanned_files",
    "create_default_registry",
    "extract_component_patterns",
    "match_and_apply_component_patterns",
    "run_component_scan",
]
