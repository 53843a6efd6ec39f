"""Requirement records declared by dependents."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Requirement:
    """A dependent's assertion that a package must include a given commit.

    Attributes:
        origin: Where the assertion came from, e.g. the relative path of
            the manifest that declared it.
        package_name: Name of the required package.
        advisory_repository_url: Canonical place to find the package.
            Documentation only; the root's declaration decides the URL.
        min_commit: Commit the chosen one must descend from. None makes
            the requirement documentation-only.
    """

    origin: str
    package_name: str
    advisory_repository_url: str | None = None
    min_commit: str | None = None

    @property
    def is_checked(self) -> bool:
        return bool(self.min_commit)
