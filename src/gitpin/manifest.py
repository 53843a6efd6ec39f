"""Project manifest: the ``gitpin.yaml`` declaration file.

The root project's manifest declares every package and may also declare
requirements. A wired package may ship its own manifest; only its
``requires`` section is read, because the root owns the complete package
mapping and dependents merely state what they need.

Example::

    extern_dir: extern
    build_descriptor: CMakeLists.txt
    packages:
      - name: clean-core
        url: https://github.com/project-arcana/clean-core.git
        commit: dfc52ee09fe3da37638d8d7d0c6176c59a367562
        checkout: worktree
        update_ref: main
    requires:
      - name: typed-geometry
        url: https://github.com/project-arcana/typed-geometry.git
        min_commit: 4b0f5c5e1d0b9b6f0c62b1bd3b5a1f4f6b1d7e10
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from gitpin.exceptions import ConfigurationError

MANIFEST_FILENAME = "gitpin.yaml"

_TOP_KEYS = {"extern_dir", "build_descriptor", "packages", "requires"}
_PACKAGE_KEYS = {"name", "url", "commit", "checkout", "update_ref", "wire", "auto_update"}
_REQUIRE_KEYS = {"name", "url", "min_commit"}


@dataclass(frozen=True)
class ManifestPackage:
    """One entry of the ``packages`` section."""

    name: str
    url: str
    commit: str
    checkout: str | None = None
    update_ref: str | None = None
    wire: bool = True
    auto_update: bool = True


@dataclass(frozen=True)
class ManifestRequirement:
    """One entry of the ``requires`` section."""

    name: str
    url: str | None = None
    min_commit: str | None = None


@dataclass
class Manifest:
    """A parsed manifest.

    Attributes:
        path: File the manifest was read from.
        extern_dir: Package directory, relative to the project root.
        build_descriptor: File wired packages must contain.
        packages: Package entries in declaration order.
        requires: Requirement entries in declaration order.
    """

    path: Path
    extern_dir: str | None = None
    build_descriptor: str | None = None
    packages: list[ManifestPackage] = field(default_factory=list)
    requires: list[ManifestRequirement] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _check_keys(where: str, data: dict[str, Any], allowed: set[str]) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigurationError(f"{where}: unknown key(s) {', '.join(unknown)}")


def _opt_str(where: str, data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(
            f"{where}: '{key}' must be a string, got {type(value).__name__} "
            "(quote commit ids in YAML)"
        )
    return value


def _req_str(where: str, data: dict[str, Any], key: str) -> str:
    value = _opt_str(where, data, key)
    if not value:
        raise ConfigurationError(f"{where}: '{key}' is required")
    return value


def _opt_bool(where: str, data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{where}: '{key}' must be true or false")
    return value


def _entries(path: Path, data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise ConfigurationError(f"{path}: '{key}' must be a list")
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ConfigurationError(f"{path}: {key}[{i}] must be a mapping")
    return items


def _parse_requires(path: Path, data: dict[str, Any]) -> list[ManifestRequirement]:
    requires = []
    for i, item in enumerate(_entries(path, data, "requires")):
        where = f"{path}: requires[{i}]"
        _check_keys(where, item, _REQUIRE_KEYS)
        requires.append(
            ManifestRequirement(
                name=_req_str(where, item, "name"),
                url=_opt_str(where, item, "url"),
                min_commit=_opt_str(where, item, "min_commit"),
            )
        )
    return requires


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"cannot read manifest {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")
    return data


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_manifest(path: Path) -> Manifest:
    """Parse a root project manifest.

    Raises:
        ConfigurationError: If the file cannot be read or does not match
            the manifest schema.
    """
    path = Path(path)
    data = _read_yaml(path)
    _check_keys(str(path), data, _TOP_KEYS)

    packages = []
    for i, item in enumerate(_entries(path, data, "packages")):
        where = f"{path}: packages[{i}]"
        _check_keys(where, item, _PACKAGE_KEYS)
        packages.append(
            ManifestPackage(
                name=_req_str(where, item, "name"),
                url=_req_str(where, item, "url"),
                commit=_req_str(where, item, "commit"),
                checkout=_opt_str(where, item, "checkout"),
                update_ref=_opt_str(where, item, "update_ref"),
                wire=_opt_bool(where, item, "wire", True),
                auto_update=_opt_bool(where, item, "auto_update", True),
            )
        )

    return Manifest(
        path=path,
        extern_dir=_opt_str(str(path), data, "extern_dir"),
        build_descriptor=_opt_str(str(path), data, "build_descriptor"),
        packages=packages,
        requires=_parse_requires(path, data),
    )


def load_requirements(path: Path) -> list[ManifestRequirement]:
    """Read only the ``requires`` section of a (package) manifest.

    Other sections are ignored: a package cannot declare packages for the
    root project.
    """
    path = Path(path)
    return _parse_requires(path, _read_yaml(path))
