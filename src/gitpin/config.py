"""Runtime settings for gitpin.

Settings come from three layers, later ones overriding earlier ones:

1. Environment variables:

   - ``GITPIN_CACHE_DIR``: base cache directory (mirrors, ancestry facts).
   - ``XDG_CACHE_HOME`` / ``LOCALAPPDATA``: OS cache roots used when
     ``GITPIN_CACHE_DIR`` is not set.
   - ``GITPIN_GIT``: git executable (default ``git``).
   - ``GITPIN_AUTO_UPDATE``: global auto-update switch (default on).
   - ``GITPIN_PKG_<NORMALIZED_NAME>_AUTO_UPDATE``: per-package switch,
     e.g. ``GITPIN_PKG_CLEAN_CORE_AUTO_UPDATE=off``.

2. The project manifest (``extern_dir``, ``build_descriptor`` and each
   package's ``auto_update``).

3. CLI options.

Booleans accept ``1/0``, ``on/off``, ``true/false`` and ``yes/no`` in any
case; anything else is a configuration error.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from gitpin.core.package.realizer import DEFAULT_BUILD_DESCRIPTOR
from gitpin.exceptions import ConfigurationError

ENV_CACHE_DIR = "GITPIN_CACHE_DIR"
ENV_GIT = "GITPIN_GIT"
ENV_AUTO_UPDATE = "GITPIN_AUTO_UPDATE"
ENV_PKG_AUTO_UPDATE = "GITPIN_PKG_{}_AUTO_UPDATE"

DEFAULT_EXTERN_DIR = "extern"
ANCESTRY_FILENAME = "ancestry.json"

_TRUE = {"1", "on", "true", "yes"}
_FALSE = {"0", "off", "false", "no"}


def parse_bool(value: str | bool, source: str) -> bool:
    """Parse a boolean switch value.

    Args:
        value: The raw value.
        source: Where it came from, for the error message.

    Raises:
        ConfigurationError: If the value is not a recognised boolean.
    """
    if isinstance(value, bool):
        return value
    key = str(value).strip().lower()
    if key in _TRUE:
        return True
    if key in _FALSE:
        return False
    raise ConfigurationError(f"{source}: expected a boolean (on/off), got {value!r}")


def resolve_cache_dir(environ: Mapping[str, str] | None = None, platform: str | None = None) -> Path:
    """Return the base cache directory.

    Resolution order:
        1. ``$GITPIN_CACHE_DIR``
        2. Windows: ``%LOCALAPPDATA%/gitpin/git-cache``
        3. ``$XDG_CACHE_HOME/gitpin/git-cache``, else
           ``~/.cache/gitpin/git-cache``
    """
    env = os.environ if environ is None else environ
    platform = sys.platform if platform is None else platform

    if env.get(ENV_CACHE_DIR):
        return Path(env[ENV_CACHE_DIR])
    if platform == "win32" and env.get("LOCALAPPDATA"):
        return Path(env["LOCALAPPDATA"]) / "gitpin" / "git-cache"
    if env.get("XDG_CACHE_HOME"):
        return Path(env["XDG_CACHE_HOME"]) / "gitpin" / "git-cache"
    return Path.home() / ".cache" / "gitpin" / "git-cache"


@dataclass
class Settings:
    """Resolved settings for one run.

    Attributes:
        project_dir: Root project directory.
        extern_dir: Directory holding the package checkouts.
        cache_dir: Base directory of the repository cache.
        git_executable: The git binary.
        auto_update: Global auto-update switch.
        allow_mode_switch: Allow replacing checkouts realized in a
            different checkout mode.
        build_descriptor: File a wired package must contain.
        package_auto_update: Per-package switches keyed by normalized name.
    """

    project_dir: Path
    extern_dir: Path
    cache_dir: Path
    git_executable: str = "git"
    auto_update: bool = True
    allow_mode_switch: bool = False
    build_descriptor: str = DEFAULT_BUILD_DESCRIPTOR
    package_auto_update: dict[str, bool] = field(default_factory=dict)

    @property
    def ancestry_store_path(self) -> Path:
        return self.cache_dir / ANCESTRY_FILENAME

    @classmethod
    def from_env(
        cls,
        project_dir: Path,
        environ: Mapping[str, str] | None = None,
    ) -> Settings:
        """Build settings for ``project_dir`` from environment variables."""
        env = os.environ if environ is None else environ
        project_dir = Path(project_dir)

        prefix, suffix = ENV_PKG_AUTO_UPDATE.split("{}")
        package_auto_update = {
            key[len(prefix):-len(suffix)]: parse_bool(value, key)
            for key, value in env.items()
            if key.startswith(prefix) and key.endswith(suffix) and len(key) > len(prefix) + len(suffix)
        }

        return cls(
            project_dir=project_dir,
            extern_dir=project_dir / DEFAULT_EXTERN_DIR,
            cache_dir=resolve_cache_dir(env),
            git_executable=env.get(ENV_GIT) or "git",
            auto_update=parse_bool(env.get(ENV_AUTO_UPDATE, "on"), ENV_AUTO_UPDATE),
            package_auto_update=package_auto_update,
        )
