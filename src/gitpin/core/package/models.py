"""Package data models: checkout modes, declarations, and metadata records.

These are pure data holders with validation only, safe to import from
anywhere without circular-dependency concerns.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from gitpin.exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def normalize_name(name: str) -> str:
    """Normalize a package name into its run-unique identifier.

    Upper-cases the name and replaces ``-`` and ``.`` with ``_``::

        >>> normalize_name("clean-core")
        'CLEAN_CORE'
        >>> normalize_name("foo.bar")
        'FOO_BAR'
    """
    return name.upper().replace("-", "_").replace(".", "_")


def validate_name(name: str) -> str:
    """Return ``name`` unchanged if it is a valid package name.

    Raises:
        ConfigurationError: If the name is empty or contains characters
            outside ``[A-Za-z0-9_.-]``, or consists only of dots.
    """
    if not name:
        raise ConfigurationError("package name is required")
    if set(name) == {"."}:
        raise ConfigurationError(f"package name {name!r} is not a directory name")
    if not _NAME_RE.match(name):
        raise ConfigurationError(
            f"package name {name!r} is invalid. Allowed: [A-Za-z0-9_.-]+"
        )
    return name


# ---------------------------------------------------------------------------
# CheckoutMode
# ---------------------------------------------------------------------------


class CheckoutMode(Enum):
    """How much version-control state a realized package keeps.

    - **WORKTREE**: plain snapshot of the commit, no history, marked as
      ignored for the outer project's version control.
    - **FULL**: a nested, history-carrying git checkout fed from the
      repository cache. Guarded against overwriting local changes.
    - **VENDORED**: plain snapshot like WORKTREE but without the ignore
      marker; its files are meant to be committed to the root project.
    """

    WORKTREE = "WORKTREE"
    FULL = "FULL"
    VENDORED = "VENDORED"

    @property
    def is_snapshot(self) -> bool:
        return self is not CheckoutMode.FULL

    @classmethod
    def parse(cls, value: str | CheckoutMode | None) -> CheckoutMode:
        """Parse a mode name case-insensitively.

        ``None`` or an empty string yields the default ``WORKTREE``;
        ``NESTED`` is accepted as an alias for ``FULL``.

        Raises:
            ConfigurationError: For any other value.
        """
        if isinstance(value, CheckoutMode):
            return value
        if value is None or value == "":
            return cls.WORKTREE
        key = str(value).strip().upper()
        if key == "NESTED":
            return cls.FULL
        try:
            return cls(key)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ConfigurationError(
                f"invalid checkout mode {value!r}. Allowed: {allowed}"
            ) from None


# ---------------------------------------------------------------------------
# PackageDeclaration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PackageDeclaration:
    """One ``declare_package`` call: the desired state of a package.

    Attributes:
        name: Package name, also the directory name under the extern dir.
        repository_url: Where the package's git repository lives.
        commit: The exact commit to realize.
        checkout_mode: How the package is materialized.
        update_ref: Advisory branch name; never used for resolution.
        wire_into_build: Whether the package is composed into the root
            build (requires a build descriptor in the package directory).
        auto_update: Per-package auto-update switch for stale checkouts.
    """

    name: str
    repository_url: str
    commit: str
    checkout_mode: CheckoutMode = CheckoutMode.WORKTREE
    update_ref: str | None = None
    wire_into_build: bool = True
    auto_update: bool = True
    normalized_name: str = field(init=False)

    def __post_init__(self) -> None:
        validate_name(self.name)
        if not self.repository_url:
            raise ConfigurationError(f"package {self.name!r}: repository URL is required")
        if not self.commit:
            raise ConfigurationError(f"package {self.name!r}: commit is required")
        object.__setattr__(self, "checkout_mode", CheckoutMode.parse(self.checkout_mode))
        object.__setattr__(self, "normalized_name", normalize_name(self.name))


# ---------------------------------------------------------------------------
# PackageMetadata: the persisted record next to a realized checkout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PackageMetadata:
    """What was last realized for a package.

    Attributes:
        name: Package name.
        repository_url: Repository the checkout was realized from.
        commit: Realized commit.
        checkout_mode: Realized checkout mode.
    """

    name: str
    repository_url: str
    commit: str
    checkout_mode: CheckoutMode

    @classmethod
    def from_declaration(cls, decl: PackageDeclaration) -> PackageMetadata:
        return cls(
            name=decl.name,
            repository_url=decl.repository_url,
            commit=decl.commit,
            checkout_mode=decl.checkout_mode,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "repository_url": self.repository_url,
            "commit": self.commit,
            "checkout_mode": self.checkout_mode.value,
        }
