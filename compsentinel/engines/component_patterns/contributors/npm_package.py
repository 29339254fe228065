"""Contributor for npm modules anchored on their package.json."""

from __future__ import annotations

import json
import posixpath
from pathlib import Path

import structlog

from compsentinel.engines.component_patterns.contributors.base import (
    parent_dir,
    read_text,
    resolve,
)
from compsentinel.engines.component_patterns.models import (
    DOT,
    UNSPECIFIC_VERSION,
    Artifact,
    ComponentPatternDescriptor,
    Inventory,
    Marker,
)

log = structlog.get_logger("compsentinel.engine")

PACKAGE_JSON = "package.json"
PACKAGE_LOCK_JSON = "package-lock.json"


def _purl(name: str, version: str) -> str:
    return f"pkg:npm/{name.replace('@', '%40')}@{version}"


def _as_text(value: object) -> str | None:
    """Manifest scalars as strings; numbers are tolerated, anything else is dropped."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _lock_entries(lock: object) -> list[tuple[str, str, bool]]:
    """Return ``(name, version, dev)`` for every locked dependency.

    lockfileVersion 2 and 3 list ``packages`` keyed by install path; version 1
    only has the nested ``dependencies`` tree.
    """
    entries: list[tuple[str, str, bool]] = []
    if not isinstance(lock, dict):
        return entries
    packages = lock.get("packages")
    if isinstance(packages, dict):
        for install_path, meta in packages.items():
            if not install_path or not isinstance(meta, dict) or meta.get("link"):
                continue
            version = _as_text(meta.get("version"))
            if not version:
                continue
            name = _as_text(meta.get("name")) or install_path.rsplit("node_modules/", 1)[-1]
            entries.append((name, version, bool(meta.get("dev"))))
        return entries

    def walk(dependencies: object) -> None:
        if not isinstance(dependencies, dict):
            return
        for name, meta in dependencies.items():
            if not isinstance(meta, dict):
                continue
            version = _as_text(meta.get("version"))
            if not version:
                continue
            entries.append((name, version, bool(meta.get("dev"))))
            walk(meta.get("dependencies"))

    walk(lock.get("dependencies"))
    return entries


def load_lock_inventory(lock_file: Path, module_dir: str, asset_id: str) -> Inventory | None:
    try:
        lock = json.loads(lock_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        log.warning("contributor.npm_lock_unreadable", path=str(lock_file), error=str(exc))
        return None

    inventory = Inventory()
    seen: set[tuple[str, str]] = set()
    for name, version, dev in _lock_entries(lock):
        if (name, version) in seen:
            continue
        seen.add((name, version))
        artifact = Artifact(
            id=f"{name}-{version}",
            version=version,
            component=name,
            type="web-module",
            root_paths={module_dir},
            attributes={"PURL": _purl(name, version), "Component Source Type": "npm-module"},
        )
        if dev:
            artifact.markers[asset_id] = Marker.DEVELOPMENT_DEPENDENCY
        inventory.artifacts.append(artifact)
    return inventory


class NpmPackageContributor:
    name = "npm-package"
    phase = 2
    suffixes = ("/package.json", "package.json")

    def applies(self, path: str) -> bool:
        lowered = path.lower()
        return lowered == PACKAGE_JSON or lowered.endswith("/" + PACKAGE_JSON)

    def contribute(
        self,
        base_dir: Path,
        relative_path: str,
        checksum: str | None,
        context: object,
    ) -> list[ComponentPatternDescriptor]:
        try:
            manifest = json.loads(read_text(base_dir, relative_path))
        except ValueError:
            log.debug("contributor.npm_manifest_invalid", path=relative_path)
            return []
        if not isinstance(manifest, dict):
            return []

        module_dir = parent_dir(relative_path)
        folder = "" if module_dir == DOT else posixpath.basename(module_dir)
        name = _as_text(manifest.get("name")) or folder
        if not name:
            return []
        version = _as_text(manifest.get("version")) or UNSPECIFIC_VERSION

        if folder:
            anchor = f"{folder}/{PACKAGE_JSON}"
            include = f"{folder}/**/*"
            exclude = f"{folder}/**/node_modules/**/*, {folder}/**/bower_components/**/*"
        else:
            anchor = PACKAGE_JSON
            include = "**/*"
            exclude = "**/node_modules/**/*, **/bower_components/**/*"

        part = f"{name}-{version}"
        license_ = manifest.get("license")
        if isinstance(license_, dict):
            license_ = license_.get("type")
        license_ = _as_text(license_)

        supplier = None
        lock_file = resolve(base_dir, module_dir) / PACKAGE_LOCK_JSON
        if lock_file.is_file():
            asset_id = f"AID-{part}-{checksum}"

            def expansion() -> Inventory | None:
                return load_lock_inventory(lock_file, module_dir, asset_id)

            supplier = expansion

        return [
            ComponentPatternDescriptor(
                name=name,
                version=version,
                part=part,
                version_anchor=anchor,
                version_anchor_checksum=checksum,
                include_pattern=include,
                exclude_pattern=exclude,
                type="web-module",
                component_source_type="npm-module",
                attributes={
                    "Module Specified License": license_,
                    "PURL": _purl(name, version),
                },
                expansion_inventory_supplier=supplier,
            )
        ]
