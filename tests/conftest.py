"""Shared fixtures for gitpin tests.

Tests that need real repositories build them locally: an "origin" is a
plain git repository in ``tmp_path`` served over a ``file://`` URL, with
fetching arbitrary commits and object filters enabled the way hosting
services enable them. Every fixture that touches git skips the test when
no git executable is installed.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import pytest

from gitpin.core.git.cache import RepositoryCache
from gitpin.core.git.runner import GitResult
from gitpin.core.package.realizer import PackageRealizer


def run_git(cwd: Path, *args: str) -> str:
    """Run git in ``cwd`` with a fixed test identity and return stdout."""
    proc = subprocess.run(
        [
            "git",
            "-c", "user.name=gitpin tests",
            "-c", "user.email=tests@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return proc.stdout.strip()


# ---------------------------------------------------------------------------
# Local origin repositories
# ---------------------------------------------------------------------------


@dataclass
class OriginRepo:
    """A local repository standing in for a remote package.

    Attributes:
        path: Working tree of the origin.
        commits: Commits on the main line, oldest first.
    """

    path: Path
    commits: list[str] = field(default_factory=list)

    @property
    def url(self) -> str:
        return self.path.as_uri()

    def commit(self, files: dict[str, str], message: str = "update") -> str:
        """Write ``files``, commit them on the current branch, return the id."""
        for rel, content in files.items():
            target = self.path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        run_git(self.path, "add", "-A")
        run_git(self.path, "commit", "--quiet", "-m", message)
        sha = run_git(self.path, "rev-parse", "HEAD")
        self.commits.append(sha)
        return sha

    def side_commit(self, base: str, files: dict[str, str], branch: str = "side") -> str:
        """Commit on a new branch forked from ``base``; not added to ``commits``."""
        run_git(self.path, "checkout", "--quiet", "-b", branch, base)
        for rel, content in files.items():
            (self.path / rel).write_text(content)
        run_git(self.path, "add", "-A")
        run_git(self.path, "commit", "--quiet", "-m", f"{branch} work")
        sha = run_git(self.path, "rev-parse", "HEAD")
        run_git(self.path, "checkout", "--quiet", "-")
        return sha


@pytest.fixture
def git_available() -> None:
    """Skip the requesting test when git is not installed."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")


@pytest.fixture
def make_origin(tmp_path: Path, git_available: None) -> Callable[..., OriginRepo]:
    """Factory for origin repositories with a linear history.

    Each commit contains a ``CMakeLists.txt`` and a ``version.txt`` holding
    the commit's 1-based position; ``extra_files`` are added to every
    commit.
    """

    def factory(
        name: str = "core",
        commits: int = 3,
        extra_files: dict[str, str] | None = None,
    ) -> OriginRepo:
        path = tmp_path / "origins" / name
        path.mkdir(parents=True)
        run_git(path, "init", "--quiet")
        run_git(path, "config", "uploadpack.allowAnySHA1InWant", "true")
        run_git(path, "config", "uploadpack.allowFilter", "true")
        origin = OriginRepo(path)
        for n in range(1, commits + 1):
            files = {
                "CMakeLists.txt": f"project({name})\n",
                "version.txt": f"{n}\n",
                **(extra_files or {}),
            }
            origin.commit(files, message=f"{name} v{n}")
        return origin

    return factory


@pytest.fixture
def origin(make_origin: Callable[..., OriginRepo]) -> OriginRepo:
    """A three-commit origin repository named ``core``."""
    return make_origin()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def cache(cache_dir: Path) -> RepositoryCache:
    return RepositoryCache(cache_dir)


@pytest.fixture
def extern_dir(tmp_path: Path) -> Path:
    return tmp_path / "project" / "extern"


@pytest.fixture
def realizer(extern_dir: Path, cache: RepositoryCache) -> PackageRealizer:
    return PackageRealizer(extern_dir, cache)


# ---------------------------------------------------------------------------
# Scripted runner for tests that must not spawn git
# ---------------------------------------------------------------------------


class ScriptedRunner:
    """Stands in for ``GitRunner`` and answers from a script.

    ``merge_base_codes`` are consumed by successive ``merge-base`` calls;
    every other command succeeds unless ``fetch_code`` says otherwise for
    fetches. All calls are recorded in ``calls``.
    """

    def __init__(self, merge_base_codes: list[int] | None = None, fetch_code: int = 0) -> None:
        self.merge_base_codes = list(merge_base_codes or [])
        self.fetch_code = fetch_code
        self.calls: list[tuple[str, ...]] = []

    def run(self, *args: str, cwd: Path | None = None, ok_codes=(0,), operation: str = "") -> GitResult:
        self.calls.append(args)
        code = 0
        if args[0] == "merge-base":
            code = self.merge_base_codes.pop(0)
        elif args[0] == "fetch":
            code = self.fetch_code
        return GitResult(args=("git", *args), cwd=cwd, returncode=code)

    def count(self, command: str) -> int:
        return sum(1 for call in self.calls if call[0] == command)


@pytest.fixture
def scripted_runner() -> ScriptedRunner:
    return ScriptedRunner()
