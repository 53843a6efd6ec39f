"""Tests for runtime settings resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from gitpin.config import Settings, parse_bool, resolve_cache_dir
from gitpin.exceptions import ConfigurationError


class TestParseBool:
    """Tests for ``parse_bool``."""

    @pytest.mark.parametrize("raw", ["1", "on", "TRUE", "Yes", " true ", True])
    def test_true(self, raw) -> None:
        assert parse_bool(raw, "TEST") is True

    @pytest.mark.parametrize("raw", ["0", "off", "False", "NO", False])
    def test_false(self, raw) -> None:
        assert parse_bool(raw, "TEST") is False

    def test_invalid(self) -> None:
        with pytest.raises(ConfigurationError, match="GITPIN_AUTO_UPDATE"):
            parse_bool("maybe", "GITPIN_AUTO_UPDATE")


class TestResolveCacheDir:
    """Tests for ``resolve_cache_dir``."""

    def test_explicit_override(self, tmp_path: Path) -> None:
        env = {"GITPIN_CACHE_DIR": str(tmp_path), "XDG_CACHE_HOME": "/xdg"}
        assert resolve_cache_dir(env, "linux") == tmp_path

    def test_xdg(self) -> None:
        assert resolve_cache_dir({"XDG_CACHE_HOME": "/xdg"}, "linux") == Path(
            "/xdg/gitpin/git-cache"
        )

    def test_home_fallback(self) -> None:
        assert resolve_cache_dir({}, "darwin") == Path.home() / ".cache" / "gitpin" / "git-cache"

    def test_windows_local_app_data(self) -> None:
        env = {"LOCALAPPDATA": "C:/Users/dev/AppData/Local", "XDG_CACHE_HOME": "/xdg"}
        assert resolve_cache_dir(env, "win32") == Path(
            "C:/Users/dev/AppData/Local/gitpin/git-cache"
        )

    def test_local_app_data_ignored_elsewhere(self) -> None:
        env = {"LOCALAPPDATA": "/appdata", "XDG_CACHE_HOME": "/xdg"}
        assert resolve_cache_dir(env, "linux") == Path("/xdg/gitpin/git-cache")

    def test_empty_override_ignored(self) -> None:
        env = {"GITPIN_CACHE_DIR": "", "XDG_CACHE_HOME": "/xdg"}
        assert resolve_cache_dir(env, "linux") == Path("/xdg/gitpin/git-cache")


class TestSettingsFromEnv:
    """Tests for ``Settings.from_env``."""

    def test_defaults(self, tmp_path: Path) -> None:
        settings = Settings.from_env(tmp_path, {"GITPIN_CACHE_DIR": str(tmp_path / "c")})
        assert settings.project_dir == tmp_path
        assert settings.extern_dir == tmp_path / "extern"
        assert settings.cache_dir == tmp_path / "c"
        assert settings.ancestry_store_path == tmp_path / "c" / "ancestry.json"
        assert settings.git_executable == "git"
        assert settings.auto_update is True
        assert settings.allow_mode_switch is False
        assert settings.build_descriptor == "CMakeLists.txt"
        assert settings.package_auto_update == {}

    def test_switches(self, tmp_path: Path) -> None:
        env = {
            "GITPIN_AUTO_UPDATE": "off",
            "GITPIN_GIT": "/opt/git/bin/git",
            "GITPIN_PKG_CLEAN_CORE_AUTO_UPDATE": "no",
            "GITPIN_PKG_GLFW_AUTO_UPDATE": "1",
            "GITPIN_PKG__AUTO_UPDATE": "1",
            "UNRELATED": "x",
        }
        settings = Settings.from_env(tmp_path, env)
        assert settings.auto_update is False
        assert settings.git_executable == "/opt/git/bin/git"
        assert settings.package_auto_update == {"CLEAN_CORE": False, "GLFW": True}

    def test_invalid_switch(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="GITPIN_PKG_CORE_AUTO_UPDATE"):
            Settings.from_env(tmp_path, {"GITPIN_PKG_CORE_AUTO_UPDATE": "sometimes"})
