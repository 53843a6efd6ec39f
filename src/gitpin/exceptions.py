"""gitpin exception hierarchy.

All public exceptions inherit from GitPinError, giving callers a single
base class to catch when they want to handle any gitpin-specific failure
without swallowing unrelated errors. Every one of them is fatal for the
run: the CLI reports the message and exits non-zero.

Safety-guard refusals (a foreign directory, auto-update switched off, a
refused checkout-mode switch) are *not* exceptions. They are
logged as warnings and the run continues with the prior state intact.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitpin.core.git.runner import GitResult


class GitPinError(Exception):
    """Base exception for all gitpin errors."""


class ConfigurationError(GitPinError):
    """Raised for invalid declarations, manifests, or settings.

    Covers missing required fields, invalid package names, duplicate
    normalized names, unknown checkout modes, malformed metadata records,
    and a missing build descriptor when a package is wired into the build.
    """


class GitCommandError(GitPinError):
    """Raised when a git invocation exits with an unexpected code.

    The message carries the full invocation context: operation, command
    line, working directory, exit code, and both captured streams.

    Attributes:
        result: The ``GitResult`` of the failing invocation.
        operation: Short description of what was being attempted.
    """

    def __init__(self, result: GitResult, operation: str = "") -> None:
        self.result = result
        self.operation = operation
        super().__init__(result.describe(operation))


class AncestryError(GitCommandError):
    """Raised when ancestry stays indeterminate after the single re-fetch.

    Indeterminate means ``git merge-base --is-ancestor`` exited with neither
    0 nor 1, which happens when one of the commits is not available in the
    cache mirror even after fetching it.
    """


class DirtyCheckoutError(GitPinError):
    """Raised when realization would overwrite uncommitted local work.

    Only history-carrying checkouts are guarded; the working tree is left
    exactly as it was found.
    """


class ConstraintError(GitPinError):
    """Base class for failures while finalizing requirements."""


class MissingPackageError(ConstraintError):
    """Raised when a requirement names a package that was never declared."""


class ConstraintViolationError(ConstraintError):
    """Raised when a package's commit does not descend from a required minimum."""
