"""Data models for the component pattern engine."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

ASTERISK = "*"
DOT = "."
DOUBLE_ASTERISK = "**"

UNSPECIFIC_VERSION = "unspecific"

SCAN_DIRECTIVE_DELETE = "delete"

TYPE_FILE = "file"
TYPE_COMPONENT = "component"


class ComponentPatternMode(str, Enum):
    """When a descriptor is matched against the file set."""

    IMMEDIATE = "immediate"
    DEFERRED = "deferred"


class Marker(str, Enum):
    """Relationship of an artifact to an asset, keyed by asset id."""

    DESCRIBES = "describes"
    CONTAINS = "contains"
    DEVELOPMENT_DEPENDENCY = "development-dependency"
    DELETE = "delete"


@dataclass(frozen=True)
class ScannedFile:
    """A single file produced by the file-system walker."""

    path: str
    checksum: str | None
    root_paths: frozenset[str] = frozenset()


@dataclass(eq=False)
class Artifact:
    """A scanned file or a synthesized component.

    Identity semantics: two artifacts are only equal if they are the same
    object, so removal from an inventory never drops a lookalike.
    """

    id: str
    version: str | None = None
    checksum: str | None = None
    path_in_asset: str | None = None
    root_paths: set[str] = field(default_factory=set)
    component: str | None = None
    type: str = TYPE_FILE
    asset_id_chain: str | None = None
    scan_directive: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)
    markers: dict[str, Marker] = field(default_factory=dict)

    @classmethod
    def from_scanned_file(cls, scanned: ScannedFile) -> Artifact:
        name = scanned.path.rsplit("/", 1)[-1]
        return cls(
            id=name,
            checksum=scanned.checksum,
            path_in_asset=scanned.path,
            root_paths=set(scanned.root_paths),
        )

    @property
    def is_file(self) -> bool:
        return self.type == TYPE_FILE

    @property
    def marked_for_deletion(self) -> bool:
        return bool(self.scan_directive) and SCAN_DIRECTIVE_DELETE in self.scan_directive

    def mark_absorbed(self, asset_id_chain: str | None) -> None:
        self.scan_directive = SCAN_DIRECTIVE_DELETE
        self.asset_id_chain = asset_id_chain

    def derive_asset_id(self) -> str:
        return f"AID-{self.id}-{self.checksum}"


@dataclass
class AssetMetadata:
    """Metadata of an asset (an OS installation, a container image, ...)."""

    asset_id: str
    name: str | None = None
    version: str | None = None
    type: str | None = None
    path: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class Inventory:
    """Artifacts, assets and component patterns collected for one scan."""

    artifacts: list[Artifact] = field(default_factory=list)
    assets: list[AssetMetadata] = field(default_factory=list)
    component_patterns: list[ComponentPatternDescriptor] = field(default_factory=list)


ExpansionInventorySupplier = Callable[[], "Inventory | None"]


def _join_fields(values) -> str:
    return ":".join("" if value is None else str(value) for value in values)


@dataclass
class ComponentPatternDescriptor:
    """Rule describing how to recognize and bound one component instance.

    ``include_pattern`` and ``exclude_pattern`` are comma separated Ant-style
    glob lists. Patterns starting with ``/`` are rooted at the scan root, all
    others at the anchor root of a match.
    """

    name: str | None
    version: str | None
    version_anchor: str | None
    version_anchor_checksum: str | None
    include_pattern: str | None = None
    exclude_pattern: str | None = None
    part: str | None = None
    mode: ComponentPatternMode = ComponentPatternMode.IMMEDIATE
    provenance: str = "UNKNOWN"
    type: str | None = None
    component_source_type: str | None = None
    no_file_match_required: bool = False
    attributes: dict[str, Any] = field(default_factory=dict)
    expansion_inventory_supplier: ExpansionInventorySupplier | None = field(
        default=None, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.part is None and self.name:
            self.part = f"{self.name}-{self.version}" if self.version else self.name

    @property
    def is_deferred(self) -> bool:
        return self.mode is ComponentPatternMode.DEFERRED

    @property
    def is_root_anchor(self) -> bool:
        return self.version_anchor in (ASTERISK, DOT)

    def derive_qualifier(self) -> str:
        return _join_fields(
            (self.part or self.name, self.version, self.version_anchor, self.version_anchor_checksum)
        )

    def copy(self, **changes: Any) -> ComponentPatternDescriptor:
        changes.setdefault("attributes", dict(self.attributes))
        return dataclasses.replace(self, **changes)

    def describe(self) -> str:
        return _join_fields(
            (
                self.name,
                self.part,
                self.version,
                self.version_anchor,
                self.version_anchor_checksum,
            )
        )


@dataclass
class MatchResult:
    """A descriptor paired with the concrete location satisfying its anchor.

    All paths are relative to the scan root and use ``/`` separators; the
    scan root itself is ``.``.
    """

    descriptor: ComponentPatternDescriptor
    anchor_path: str
    scan_root: str
    base_dir: str
    anchor_root: str
    asset_id_chain: str | None = None

    def derive_artifact(self) -> Artifact:
        cpd = self.descriptor
        artifact = Artifact(
            id=cpd.part or cpd.name or cpd.version_anchor or "",
            version=cpd.version,
            checksum=cpd.version_anchor_checksum,
            path_in_asset=self.anchor_path,
            root_paths={self.base_dir},
            component=cpd.name,
            type=cpd.type or TYPE_COMPONENT,
            asset_id_chain=self.asset_id_chain,
        )
        for key, value in cpd.attributes.items():
            if value is not None:
                artifact.attributes[key] = str(value)
        if cpd.component_source_type:
            artifact.attributes["Component Source Type"] = cpd.component_source_type
        artifact.attributes["Provenance"] = cpd.provenance
        artifact.markers[artifact.derive_asset_id()] = Marker.DESCRIBES
        return artifact
