"""Contributor for installed Python distributions (``*.dist-info/METADATA``)."""

from __future__ import annotations

import posixpath
import re
from email.parser import HeaderParser
from pathlib import Path

from compsentinel.engines.component_patterns.contributors.base import (
    parent_dir,
    read_text,
    resolve,
)
from compsentinel.engines.component_patterns.models import ComponentPatternDescriptor

_DIST_INFO = ".dist-info"


def _normalize(name: str) -> str:
    return re.sub(r"[-_.]+", "_", name).lower()


class PythonDistInfoContributor:
    name = "python-dist-info"
    phase = 2
    suffixes = ("*.dist-info/metadata",)

    def applies(self, path: str) -> bool:
        return path.lower().endswith(".dist-info/metadata")

    def contribute(
        self,
        base_dir: Path,
        relative_path: str,
        checksum: str | None,
        context: object,
    ) -> list[ComponentPatternDescriptor]:
        metadata = HeaderParser().parsestr(read_text(base_dir, relative_path))
        dist_info_dir = parent_dir(relative_path)
        folder = posixpath.basename(dist_info_dir)
        stem = folder[: -len(_DIST_INFO)] if folder.lower().endswith(_DIST_INFO) else folder

        name = metadata.get("Name")
        version = metadata.get("Version")
        if not name or not version:
            # fall back to the <name>-<version>.dist-info folder convention
            guessed_name, _, guessed_version = stem.rpartition("-")
            name = name or guessed_name
            version = version or guessed_version
        if not name:
            return []

        includes = [f"{folder}/**/*"]
        top_level = resolve(base_dir, dist_info_dir) / "top_level.txt"
        if top_level.is_file():
            modules = [
                line.strip()
                for line in top_level.read_text(encoding="utf-8", errors="replace").splitlines()
                if line.strip()
            ]
        else:
            modules = [_normalize(name)]
        for module in modules:
            includes.extend((f"{module}/**/*", f"{module}.py"))

        return [
            ComponentPatternDescriptor(
                name=name,
                version=version or None,
                part=stem,
                version_anchor=f"{folder}/METADATA",
                version_anchor_checksum=checksum,
                include_pattern=", ".join(includes),
                exclude_pattern=f"{folder}/**/node_modules/**/*",
                type="python-module",
                component_source_type="python-library",
                attributes={
                    "Summary": metadata.get("Summary"),
                    "URL": metadata.get("Home-page"),
                    "Package Specified Licenses": metadata.get("License-Expression")
                    or metadata.get("License"),
                    "PURL": f"pkg:pypi/{_normalize(name).replace('_', '-')}@{version}",
                },
            )
        ]
