"""Tests for the git subprocess runner and its uniform diagnostics."""

from __future__ import annotations

from pathlib import Path

import pytest

from gitpin.core.git.runner import GitResult, GitRunner
from gitpin.exceptions import GitCommandError, GitPinError


class TestGitResult:
    """Tests for ``GitResult`` properties and ``describe``."""

    def test_ok_only_for_zero(self) -> None:
        assert GitResult(("git", "status"), None, 0).ok
        assert not GitResult(("git", "status"), None, 1).ok

    def test_command_joins_arguments(self) -> None:
        result = GitResult(("git", "fetch", "origin", "abc"), None, 0)
        assert result.command == "git fetch origin abc"

    def test_describe_names_everything(self, tmp_path: Path) -> None:
        result = GitResult(
            ("git", "fetch", "origin", "abc"),
            tmp_path,
            128,
            stdout="partial\n",
            stderr="fatal: not our ref\n",
        )
        message = result.describe("fetch abc into cache")
        assert message.startswith("git failed: fetch abc into cache")
        assert "command: git fetch origin abc" in message
        assert str(tmp_path) in message
        assert "output : partial" in message
        assert "error  : fatal: not our ref" in message
        assert message.endswith("Exit code: 128")

    def test_describe_without_operation(self) -> None:
        assert GitResult(("git",), None, 2).describe().startswith("git failed\n")


class TestGitRunner:
    """Tests for ``GitRunner.run`` against a real git executable."""

    def test_version_succeeds(self, git_available: None) -> None:
        result = GitRunner().run("--version")
        assert result.ok
        assert result.stdout.startswith("git version")

    def test_unexpected_exit_code_raises(self, git_available: None, tmp_path: Path) -> None:
        with pytest.raises(GitCommandError) as excinfo:
            GitRunner().run("rev-parse", "HEAD", cwd=tmp_path, operation="read HEAD")
        err = excinfo.value
        assert err.operation == "read HEAD"
        assert err.result.returncode != 0
        assert err.result.cwd == tmp_path
        assert "git failed: read HEAD" in str(err)

    def test_declared_exit_code_is_returned(self, git_available: None, tmp_path: Path) -> None:
        result = GitRunner().run("rev-parse", "HEAD", cwd=tmp_path, ok_codes=range(0, 256))
        assert not result.ok

    def test_missing_executable_raises_git_error(self, tmp_path: Path) -> None:
        runner = GitRunner(executable=str(tmp_path / "no-such-git"))
        with pytest.raises(GitCommandError) as excinfo:
            runner.run("--version", operation="probe")
        assert excinfo.value.result.returncode == -1
        assert isinstance(excinfo.value, GitPinError)

    def test_terminal_prompts_disabled(self) -> None:
        runner = GitRunner(env={"EXTRA": "1"})
        assert runner._env["GIT_TERMINAL_PROMPT"] == "0"
        assert runner._env["EXTRA"] == "1"
