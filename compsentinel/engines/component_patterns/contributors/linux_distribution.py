"""Contributor for Linux distributions identified by their os-release file."""

from __future__ import annotations

import shlex
from pathlib import Path

import structlog

from compsentinel.engines.component_patterns.contributors.base import (
    read_text,
    split_virtual_root,
)
from compsentinel.engines.component_patterns.models import (
    AssetMetadata,
    ComponentPatternDescriptor,
    Inventory,
)

log = structlog.get_logger("compsentinel.engine")


def parse_os_release(content: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines; values may be shell quoted."""
    values: dict[str, str] = {}
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        try:
            parts = shlex.split(value)
        except ValueError:
            parts = [value.strip("\"'")]
        values[key.strip()] = " ".join(parts)
    return values


class LinuxDistributionContributor:
    name = "linux-distribution"
    phase = 0
    suffixes = ("etc/os-release", "usr/lib/os-release")

    def applies(self, path: str) -> bool:
        lowered = path.lower()
        return any(lowered == s or lowered.endswith("/" + s) for s in self.suffixes)

    def contribute(
        self,
        base_dir: Path,
        relative_path: str,
        checksum: str | None,
        context: object,
    ) -> list[ComponentPatternDescriptor]:
        release = parse_os_release(read_text(base_dir, relative_path))
        distro_id = release.get("ID")
        if not distro_id:
            log.debug("contributor.os_release_without_id", path=relative_path)
            return []

        distro_root, anchor = split_virtual_root(relative_path, self.suffixes)
        version_id = release.get("VERSION_ID") or release.get("BUILD_ID")

        def expansion() -> Inventory:
            asset = AssetMetadata(
                asset_id=f"OSID-{distro_root}",
                name=distro_id,
                version=version_id,
                type="os",
                path=distro_root,
                attributes={
                    key: value
                    for key, value in (
                        ("Distro - Id", distro_id),
                        ("Distro - VersionId", version_id),
                        ("Distro - CPE", release.get("CPE_NAME")),
                        ("Distro - Name", release.get("PRETTY_NAME") or release.get("NAME")),
                        ("Distro - Version", release.get("VERSION")),
                        ("Distro - URL", release.get("HOME_URL")),
                    )
                    if value
                },
            )
            return Inventory(assets=[asset])

        return [
            ComponentPatternDescriptor(
                name=release.get("PRETTY_NAME") or release.get("NAME") or distro_id,
                version=version_id,
                part=f"{distro_id}-{version_id}" if version_id else distro_id,
                version_anchor=anchor,
                version_anchor_checksum=checksum,
                include_pattern=", ".join(self.suffixes),
                type="distro",
                component_source_type="linux-distro",
                expansion_inventory_supplier=expansion,
            )
        ]
