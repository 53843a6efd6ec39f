"""Tests for parsing ``gitpin.yaml`` manifests."""

from __future__ import annotations

from pathlib import Path

import pytest

from gitpin.exceptions import ConfigurationError
from gitpin.manifest import (
    MANIFEST_FILENAME,
    ManifestPackage,
    ManifestRequirement,
    load_manifest,
    load_requirements,
)

FULL_MANIFEST = """\
extern_dir: third_party
build_descriptor: meson.build
packages:
  - name: clean-core
    url: https://github.com/project-arcana/clean-core.git
    commit: "dfc52ee09fe3da37638d8d7d0c6176c59a367562"
    checkout: full
    update_ref: main
    wire: false
    auto_update: false
  - name: glfw
    url: https://github.com/glfw/glfw.git
    commit: 3eaf1255b29fdf5c2895856c7be7d7185ef2b241
requires:
  - name: clean-core
    url: https://github.com/project-arcana/clean-core.git
    min_commit: 4f1c0b6e0d3a1c2b9f8e7d6c5b4a392817161514
  - name: glfw
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / MANIFEST_FILENAME
    path.write_text(text)
    return path


class TestLoadManifest:
    """Tests for ``load_manifest``."""

    def test_full_document(self, tmp_path: Path) -> None:
        manifest = load_manifest(_write(tmp_path, FULL_MANIFEST))
        assert manifest.extern_dir == "third_party"
        assert manifest.build_descriptor == "meson.build"
        assert manifest.packages == [
            ManifestPackage(
                name="clean-core",
                url="https://github.com/project-arcana/clean-core.git",
                commit="dfc52ee09fe3da37638d8d7d0c6176c59a367562",
                checkout="full",
                update_ref="main",
                wire=False,
                auto_update=False,
            ),
            ManifestPackage(
                name="glfw",
                url="https://github.com/glfw/glfw.git",
                commit="3eaf1255b29fdf5c2895856c7be7d7185ef2b241",
            ),
        ]
        assert manifest.requires == [
            ManifestRequirement(
                name="clean-core",
                url="https://github.com/project-arcana/clean-core.git",
                min_commit="4f1c0b6e0d3a1c2b9f8e7d6c5b4a392817161514",
            ),
            ManifestRequirement(name="glfw"),
        ]

    def test_empty_file(self, tmp_path: Path) -> None:
        manifest = load_manifest(_write(tmp_path, ""))
        assert manifest.packages == [] and manifest.requires == []
        assert manifest.extern_dir is None

    def test_unknown_top_level_key(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="unknown key"):
            load_manifest(_write(tmp_path, "pakages: []\n"))

    def test_unknown_package_key(self, tmp_path: Path) -> None:
        text = "packages:\n  - {name: a, url: u, commit: c, branch: main}\n"
        with pytest.raises(ConfigurationError, match=r"packages\[0\]: unknown key\(s\) branch"):
            load_manifest(_write(tmp_path, text))

    @pytest.mark.parametrize("missing", ["name", "url", "commit"])
    def test_required_package_fields(self, tmp_path: Path, missing: str) -> None:
        entry = {"name": "a", "url": "u", "commit": "c"}
        del entry[missing]
        body = ", ".join(f"{k}: {v}" for k, v in entry.items())
        with pytest.raises(ConfigurationError, match=f"'{missing}' is required"):
            load_manifest(_write(tmp_path, f"packages:\n  - {{{body}}}\n"))

    def test_numeric_commit_must_be_quoted(self, tmp_path: Path) -> None:
        text = "packages:\n  - {name: a, url: u, commit: 1234567}\n"
        with pytest.raises(ConfigurationError, match="quote commit ids"):
            load_manifest(_write(tmp_path, text))

    def test_wire_must_be_boolean(self, tmp_path: Path) -> None:
        text = "packages:\n  - {name: a, url: u, commit: c, wire: maybe}\n"
        with pytest.raises(ConfigurationError, match="'wire' must be true or false"):
            load_manifest(_write(tmp_path, text))

    def test_packages_must_be_a_list(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="must be a list"):
            load_manifest(_write(tmp_path, "packages: {a: 1}\n"))

    def test_entries_must_be_mappings(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_manifest(_write(tmp_path, "packages:\n  - clean-core\n"))

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="top level"):
            load_manifest(_write(tmp_path, "- a\n- b\n"))

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="invalid YAML"):
            load_manifest(_write(tmp_path, "packages: [\n"))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="cannot read manifest"):
            load_manifest(tmp_path / MANIFEST_FILENAME)


class TestLoadRequirements:
    """Tests for ``load_requirements``."""

    def test_reads_only_requires(self, tmp_path: Path) -> None:
        requires = load_requirements(_write(tmp_path, FULL_MANIFEST))
        assert [r.name for r in requires] == ["clean-core", "glfw"]

    def test_package_manifest_may_use_other_sections(self, tmp_path: Path) -> None:
        text = "packages: not even a list\nrequires:\n  - {name: a, min_commit: abc}\n"
        assert load_requirements(_write(tmp_path, text)) == [
            ManifestRequirement(name="a", min_commit="abc")
        ]

    def test_unknown_requirement_key(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="unknown key"):
            load_requirements(_write(tmp_path, "requires:\n  - {name: a, commit: abc}\n"))
