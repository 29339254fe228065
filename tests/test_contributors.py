"""Tests for the built-in contributors, on real file trees."""

from __future__ import annotations

import json

import pytest

from compsentinel.engines.component_patterns.context import ScanContext
from compsentinel.engines.component_patterns.contributors import (
    ApkPackageContributor,
    LinuxDistributionContributor,
    NpmPackageContributor,
    PythonDistInfoContributor,
)
from compsentinel.engines.component_patterns.contributors.apk_package import parse_installed_db
from compsentinel.engines.component_patterns.contributors.base import split_virtual_root
from compsentinel.engines.component_patterns.contributors.linux_distribution import (
    parse_os_release,
)
from compsentinel.engines.component_patterns.models import UNSPECIFIC_VERSION, Marker
from compsentinel.engines.component_patterns.producer import run_component_scan

_OS_RELEASE = """\
NAME="Alpine Linux"
ID=alpine
VERSION_ID=3.19.1
PRETTY_NAME="Alpine Linux v3.19"
HOME_URL="https://alpinelinux.org/"
"""

_APK_INSTALLED = """\
C:Q1abc=
P:musl
V:1.2.4-r2
A:x86_64
L:MIT
F:lib
R:ld-musl-x86_64.so.1
R:libc.musl-x86_64.so.1

P:busybox
V:1.36.1-r15
A:x86_64
L:GPL-2.0-only
F:bin
R:busybox
F:etc
R:securetty

P:incomplete
V:1.0
"""

_METADATA = """\
Metadata-Version: 2.1
Name: requests
Version: 2.31.0
Summary: Python HTTP for Humans.
Home-page: https://requests.readthedocs.io
License: Apache 2.0
"""


# ── helpers ──


class TestHelpers:
    def test_split_virtual_root(self):
        suffixes = ("etc/os-release", "usr/lib/os-release")
        assert split_virtual_root("etc/os-release", suffixes) == (".", "etc/os-release")
        assert split_virtual_root("rootfs/etc/os-release", suffixes) == (
            "rootfs",
            "etc/os-release",
        )
        assert split_virtual_root("img/usr/lib/os-release", suffixes) == (
            "img",
            "usr/lib/os-release",
        )

    def test_parse_os_release(self):
        release = parse_os_release(_OS_RELEASE + "# comment\nBROKEN\n")
        assert release["ID"] == "alpine"
        assert release["PRETTY_NAME"] == "Alpine Linux v3.19"
        assert "BROKEN" not in release

    def test_parse_installed_db(self):
        packages = parse_installed_db(_APK_INSTALLED)
        assert [p.name for p in packages] == ["musl", "busybox"]
        assert packages[1].files == ["bin/busybox", "etc/securetty"]
        assert packages[0].purl == "pkg:apk/alpine/musl@1.2.4-r2?arch=x86_64"


# ── npm ──


class TestNpmPackageContributor:
    def test_nested_module(self, write_tree):
        root = write_tree(
            {
                "app/node_modules/foo/package.json": json.dumps(
                    {"name": "foo", "version": "1.2.3", "license": "MIT"}
                )
            }
        )
        (cpd,) = NpmPackageContributor().contribute(
            root, "app/node_modules/foo/package.json", "H1", None
        )
        assert cpd.name == "foo"
        assert cpd.part == "foo-1.2.3"
        assert cpd.version_anchor == "foo/package.json"
        assert cpd.version_anchor_checksum == "H1"
        assert cpd.include_pattern == "foo/**/*"
        assert "foo/**/node_modules/**/*" in cpd.exclude_pattern
        assert cpd.attributes["PURL"] == "pkg:npm/foo@1.2.3"
        assert cpd.attributes["Module Specified License"] == "MIT"
        assert cpd.expansion_inventory_supplier is None

    def test_missing_version_is_unspecific(self, write_tree):
        root = write_tree({"x/bar/package.json": json.dumps({"name": "bar"})})
        (cpd,) = NpmPackageContributor().contribute(root, "x/bar/package.json", "H1", None)
        assert cpd.version == UNSPECIFIC_VERSION

    def test_invalid_json_yields_nothing(self, write_tree):
        root = write_tree({"x/bar/package.json": "{not json"})
        assert NpmPackageContributor().contribute(root, "x/bar/package.json", "H1", None) == []

    def test_applies(self):
        contributor = NpmPackageContributor()
        assert contributor.applies("package.json")
        assert contributor.applies("a/b/Package.json")
        assert not contributor.applies("a/my-package.json")

    def test_lock_file_expansion(self, write_tree):
        lock = {
            "lockfileVersion": 3,
            "packages": {
                "": {"name": "web", "version": "1.0.0"},
                "node_modules/left-pad": {"version": "1.3.0"},
                "node_modules/jest": {"version": "29.0.0", "dev": True},
                "node_modules/linked": {"link": True},
            },
        }
        root = write_tree(
            {
                "web/package.json": json.dumps({"name": "web", "version": "1.0.0"}),
                "web/package-lock.json": json.dumps(lock),
            }
        )
        (cpd,) = NpmPackageContributor().contribute(root, "web/package.json", "H1", None)
        inventory = cpd.expansion_inventory_supplier()
        by_id = {a.id: a for a in inventory.artifacts}
        assert set(by_id) == {"left-pad-1.3.0", "jest-29.0.0"}
        assert by_id["jest-29.0.0"].markers == {"AID-web-1.0.0-H1": Marker.DEVELOPMENT_DEPENDENCY}
        assert by_id["left-pad-1.3.0"].markers == {}

    def test_lock_file_v1(self, write_tree):
        lock = {
            "lockfileVersion": 1,
            "dependencies": {
                "a": {"version": "1.0.0", "dependencies": {"b": {"version": "2.0.0"}}},
            },
        }
        root = write_tree(
            {
                "web/package.json": json.dumps({"name": "web", "version": "1.0.0"}),
                "web/package-lock.json": json.dumps(lock),
            }
        )
        (cpd,) = NpmPackageContributor().contribute(root, "web/package.json", "H1", None)
        ids = [a.id for a in cpd.expansion_inventory_supplier().artifacts]
        assert ids == ["a-1.0.0", "b-2.0.0"]

    @pytest.mark.parametrize(
        ("lock", "expected"),
        [
            ([], []),
            ({"dependencies": []}, []),
            ({"dependencies": {"a": {"version": 3, "dependencies": [1]}}}, ["a-3"]),
        ],
    )
    def test_malformed_lock_file_is_tolerated(self, write_tree, lock, expected):
        root = write_tree(
            {
                "web/package.json": json.dumps({"name": "web", "version": "1.0.0"}),
                "web/package-lock.json": json.dumps(lock),
            }
        )
        (cpd,) = NpmPackageContributor().contribute(root, "web/package.json", "H1", None)
        ids = [a.id for a in cpd.expansion_inventory_supplier().artifacts]
        assert ids == expected


# ── Linux distribution ──


class TestLinuxDistributionContributor:
    def test_distribution_at_scan_root(self, write_tree):
        root = write_tree({"etc/os-release": _OS_RELEASE})
        (cpd,) = LinuxDistributionContributor().contribute(root, "etc/os-release", "H1", None)
        assert cpd.name == "Alpine Linux v3.19"
        assert cpd.version == "3.19.1"
        assert cpd.part == "alpine-3.19.1"
        assert cpd.version_anchor == "etc/os-release"
        inventory = cpd.expansion_inventory_supplier()
        (asset,) = inventory.assets
        assert asset.asset_id == "OSID-."
        assert asset.type == "os"
        assert asset.attributes["Distro - Id"] == "alpine"

    def test_nested_distribution_root(self, write_tree):
        root = write_tree({"rootfs/etc/os-release": _OS_RELEASE})
        (cpd,) = LinuxDistributionContributor().contribute(
            root, "rootfs/etc/os-release", "H1", None
        )
        assert cpd.version_anchor == "etc/os-release"
        assert cpd.expansion_inventory_supplier().assets[0].asset_id == "OSID-rootfs"

    def test_missing_id_yields_nothing(self, write_tree):
        root = write_tree({"etc/os-release": "NAME=Thing\n"})
        assert LinuxDistributionContributor().contribute(root, "etc/os-release", "H1", None) == []


# ── apk ──


class TestApkPackageContributor:
    def test_one_descriptor_per_package(self, write_tree):
        root = write_tree({"lib/apk/db/installed": _APK_INSTALLED})
        descriptors = ApkPackageContributor().contribute(root, "lib/apk/db/installed", "H1", None)
        assert [d.part for d in descriptors] == ["musl-1.2.4-r2", "busybox-1.36.1-r15"]
        busybox = descriptors[1]
        assert busybox.version_anchor == "lib/apk/db/installed"
        assert busybox.include_pattern == "lib/apk/db/**/*, bin/busybox, etc/securetty"
        assert busybox.no_file_match_required
        assert busybox.component_source_type == "apk"
        assert busybox.attributes["Package Specified License"] == "GPL-2.0-only"


# ── Python ──


class TestPythonDistInfoContributor:
    def test_metadata_and_top_level(self, write_tree):
        root = write_tree(
            {
                "site/requests-2.31.0.dist-info/METADATA": _METADATA,
                "site/requests-2.31.0.dist-info/top_level.txt": "requests\n",
            }
        )
        (cpd,) = PythonDistInfoContributor().contribute(
            root, "site/requests-2.31.0.dist-info/METADATA", "H1", None
        )
        assert cpd.name == "requests"
        assert cpd.version == "2.31.0"
        assert cpd.part == "requests-2.31.0"
        assert cpd.version_anchor == "requests-2.31.0.dist-info/METADATA"
        assert cpd.include_pattern == (
            "requests-2.31.0.dist-info/**/*, requests/**/*, requests.py"
        )
        assert cpd.attributes["PURL"] == "pkg:pypi/requests@2.31.0"

    def test_falls_back_to_folder_name(self, write_tree):
        root = write_tree({"site/six-1.16.0.dist-info/METADATA": "Metadata-Version: 2.1\n"})
        (cpd,) = PythonDistInfoContributor().contribute(
            root, "site/six-1.16.0.dist-info/METADATA", "H1", None
        )
        assert (cpd.name, cpd.version) == ("six", "1.16.0")
        assert "six/**/*" in cpd.include_pattern


# ── End to end ──


class TestEndToEnd:
    def test_scan_directory(self, write_tree):
        root = write_tree(
            {
                "app/package.json": json.dumps({"name": "app", "version": "1.0.0"}),
                "app/src/main.js": "console.log(1)",
                "app/node_modules/foo/package.json": json.dumps(
                    {"name": "foo", "version": "2.0.0"}
                ),
                "app/node_modules/foo/index.js": "module.exports = 1",
                "site/requests-2.31.0.dist-info/METADATA": _METADATA,
                "site/requests-2.31.0.dist-info/top_level.txt": "requests\n",
                "site/requests/__init__.py": "",
                "notes.txt": "loose",
            }
        )
        context = ScanContext.from_directory(root)
        store = run_component_scan(context)

        assert len(store) == 3
        loose = {a.path_in_asset for a in context.file_artifacts()}
        assert loose == {"notes.txt"}
        components = {a.component: a for a in context.artifacts if not a.is_file}
        assert set(components) == {"app", "foo", "requests"}
        assert components["foo"].root_paths == {"app/node_modules/foo"}
        assert components["requests"].attributes["Provenance"] == "python-dist-info"

    @pytest.mark.parametrize("lock", ["[]", '{"dependencies": []}', '"lockfile"'])
    def test_malformed_lock_file_does_not_abort_the_scan(self, write_tree, lock):
        root = write_tree(
            {
                "app/package.json": json.dumps({"name": "app", "version": "1.0.0"}),
                "app/package-lock.json": lock,
                "app/index.js": "module.exports = 1",
            }
        )
        context = ScanContext.from_directory(root)
        store = run_component_scan(context)

        assert len(store) == 1
        assert context.file_artifacts() == []
        (component,) = [a for a in context.artifacts if not a.is_file]
        assert component.component == "app"
        assert component.version == "1.0.0"
