"""Subprocess helper for git invocations.

Every interaction with a repository goes through ``GitRunner.run``: it
executes ``git`` with a working directory, captures both output streams,
and returns a ``GitResult``. When the exit code is not one the caller
declared acceptable, a ``GitCommandError`` is raised whose message is built
in one place (``GitResult.describe``), so call sites never format their own
diagnostics.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from gitpin.exceptions import GitCommandError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# GitResult: structured outcome of one invocation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GitResult:
    """Outcome of a single git invocation.

    Attributes:
        args: Full command line, executable first.
        cwd: Working directory the command ran in (None = process cwd).
        returncode: Process exit status.
        stdout: Captured standard output (text).
        stderr: Captured standard error (text).
    """

    args: tuple[str, ...]
    cwd: Path | None
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """True when the command exited with status 0."""
        return self.returncode == 0

    @property
    def command(self) -> str:
        """The command line as a single display string."""
        return " ".join(self.args)

    def describe(self, operation: str = "") -> str:
        """Build the uniform diagnostic for this invocation.

        Args:
            operation: What was being attempted, e.g. "initialize cache".

        Returns:
            A multi-line message naming the command, working directory,
            exit code, and captured output.
        """
        head = f"git failed: {operation}" if operation else "git failed"
        return (
            f"{head}\n"
            f"  command: {self.command}\n"
            f"  cwd    : {self.cwd if self.cwd is not None else os.getcwd()}\n"
            f"  output : {self.stdout.strip()}\n"
            f"  error  : {self.stderr.strip()}\n"
            f"Exit code: {self.returncode}"
        )


# ---------------------------------------------------------------------------
# GitRunner
# ---------------------------------------------------------------------------


class GitRunner:
    """Runs git as a subprocess with captured output.

    Args:
        executable: The git binary to invoke (default ``"git"``).
        env: Extra environment variables layered over ``os.environ``.
            Terminal credential prompts are always disabled so a missing
            credential fails the command instead of blocking the run.
    """

    def __init__(self, executable: str = "git", env: dict[str, str] | None = None) -> None:
        self.executable = executable
        self._env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", **(env or {})}

    def run(
        self,
        *args: str,
        cwd: Path | None = None,
        ok_codes: Iterable[int] = (0,),
        operation: str = "",
    ) -> GitResult:
        """Run ``git <args>`` and return its result.

        Args:
            *args: Arguments passed to git.
            cwd: Working directory for the command.
            ok_codes: Exit codes the caller knows how to interpret. Any
                other code raises ``GitCommandError``.
            operation: Description used in the diagnostic on failure.

        Returns:
            The ``GitResult`` of the invocation.

        Raises:
            GitCommandError: If the exit code is not in ``ok_codes``, or
                the executable could not be started.
        """
        cmd: Sequence[str] = (self.executable, *args)
        logger.debug("git: %s (cwd=%s)", " ".join(cmd), cwd)
        try:
            proc = subprocess.run(
                list(cmd),
                cwd=str(cwd) if cwd is not None else None,
                capture_output=True,
                text=True,
                env=self._env,
                check=False,
            )
        except OSError as exc:
            result = GitResult(args=tuple(cmd), cwd=cwd, returncode=-1, stderr=str(exc))
            raise GitCommandError(result, operation) from exc

        result = GitResult(
            args=tuple(cmd),
            cwd=cwd,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        if result.returncode not in tuple(ok_codes):
            raise GitCommandError(result, operation)
        return result
