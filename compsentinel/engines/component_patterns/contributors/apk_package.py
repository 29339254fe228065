"""Contributor for Alpine packages listed in the apk installed database."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from compsentinel.engines.component_patterns.contributors.base import (
    read_text,
    split_virtual_root,
)
from compsentinel.engines.component_patterns.models import ComponentPatternDescriptor

log = structlog.get_logger("compsentinel.engine")

APK_DB_INCLUDE = "lib/apk/db/**/*"
APK_EXCLUDES = "**/*.jar, **/node_modules/**/*"


@dataclass
class ApkPackage:
    name: str | None = None
    version: str | None = None
    architecture: str | None = None
    license: str | None = None
    files: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return bool(self.name and self.version and self.architecture)

    @property
    def purl(self) -> str:
        return f"pkg:apk/alpine/{self.name}@{self.version}?arch={self.architecture}"


def parse_installed_db(content: str) -> list[ApkPackage]:
    """Parse the apk ``installed`` database into package records.

    Records are separated by blank lines. ``F:`` opens a folder, every
    following ``R:`` names a file in that folder.
    """
    packages: list[ApkPackage] = []
    current = ApkPackage()
    folder: str | None = None

    for raw_line in content.splitlines() + [""]:
        line = raw_line.strip()
        if not line:
            if current.complete:
                packages.append(current)
            current = ApkPackage()
            folder = None
            continue

        key, _, value = line.partition(":")
        value = value.strip()
        if key == "P":
            current.name = value
        elif key == "V":
            current.version = value
        elif key == "A":
            current.architecture = value
        elif key == "L":
            current.license = value
        elif key == "F":
            folder = value
        elif key == "R" and value:
            current.files.append(f"{folder}/{value}" if folder else value)
    return packages


class ApkPackageContributor:
    name = "apk-package"
    phase = 1
    suffixes = ("lib/apk/db/installed",)

    def applies(self, path: str) -> bool:
        return path.lower().endswith("lib/apk/db/installed")

    def contribute(
        self,
        base_dir: Path,
        relative_path: str,
        checksum: str | None,
        context: object,
    ) -> list[ComponentPatternDescriptor]:
        _, anchor = split_virtual_root(relative_path, self.suffixes)
        packages = parse_installed_db(read_text(base_dir, relative_path))
        log.debug("contributor.apk_packages_parsed", path=relative_path, packages=len(packages))

        descriptors = []
        for package in packages:
            include = ", ".join([APK_DB_INCLUDE] + package.files)
            descriptors.append(
                ComponentPatternDescriptor(
                    name=package.name,
                    version=package.version,
                    version_anchor=anchor,
                    version_anchor_checksum=checksum,
                    include_pattern=include,
                    exclude_pattern=APK_EXCLUDES,
                    type="package",
                    component_source_type="apk",
                    no_file_match_required=True,
                    attributes={
                        "Package Specified License": package.license,
                        "PURL": package.purl,
                    },
                )
            )
        return descriptors
