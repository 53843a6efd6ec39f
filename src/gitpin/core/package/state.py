"""Package state machine: what to do with a declared package.

Each package is in one of four states across runs:

- **ABSENT**: no checkout directory.
- **FOREIGN**: a directory exists but has no metadata record. It was placed
  by hand or by another tool and is never touched automatically.
- **STALE**: a record exists but does not match the desired state.
- **CURRENT**: the record matches the desired state exactly.

``decide`` maps (desired, recorded, flags, directory-exists) to a
``Decision`` and performs no I/O, so the whole transition table is unit
testable without a git binary.

Transition table::

    ABSENT   -> REALIZE                     (unconditional)
    FOREIGN  -> SKIP_FOREIGN                (warn, leave untouched)
    CURRENT  -> NONE                        (no writes, no git)
    STALE    -> SKIP_MODE_SWITCH            mode differs, switch not allowed
             -> REALIZE                     global and package auto-update on
             -> SKIP_AUTO_UPDATE_DISABLED   otherwise
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from gitpin.core.package.models import PackageDeclaration, PackageMetadata


class PackageState(Enum):
    """Observed state of a package directory relative to its declaration."""

    ABSENT = "absent"
    FOREIGN = "foreign"
    STALE = "stale"
    CURRENT = "current"


class RealizeAction(Enum):
    """What the realizer does for a package."""

    REALIZE = "realize"
    NONE = "none"
    SKIP_FOREIGN = "skip-foreign"
    SKIP_AUTO_UPDATE_DISABLED = "skip-auto-update-disabled"
    SKIP_MODE_SWITCH = "skip-mode-switch"

    @property
    def is_refusal(self) -> bool:
        """True for the actions that leave a differing checkout in place."""
        return self in (
            RealizeAction.SKIP_FOREIGN,
            RealizeAction.SKIP_AUTO_UPDATE_DISABLED,
            RealizeAction.SKIP_MODE_SWITCH,
        )


@dataclass(frozen=True)
class UpdateFlags:
    """Switches that govern updating an existing, stale checkout.

    Attributes:
        auto_update: Global auto-update switch.
        package_auto_update: Per-package auto-update switch.
        allow_mode_switch: Allow replacing a checkout realized in a
            different checkout mode.
    """

    auto_update: bool = True
    package_auto_update: bool = True
    allow_mode_switch: bool = False


@dataclass(frozen=True)
class Decision:
    """Result of ``decide``.

    Attributes:
        state: Observed package state.
        action: What the realizer should do.
        reason: Human-readable diagnostic; empty for the quiet paths.
    """

    state: PackageState
    action: RealizeAction
    reason: str = ""


def matches(desired: PackageDeclaration, recorded: PackageMetadata) -> bool:
    """True if the recorded realization is exactly the desired one."""
    return (
        recorded.commit == desired.commit
        and recorded.checkout_mode is desired.checkout_mode
        and recorded.repository_url == desired.repository_url
    )


def decide(
    desired: PackageDeclaration,
    recorded: PackageMetadata | None,
    flags: UpdateFlags,
    dir_exists: bool,
) -> Decision:
    """Decide the state of a package and the action to take.

    Args:
        desired: The package declaration.
        recorded: The metadata record found in the package directory, if any.
        flags: Auto-update and mode-switch switches.
        dir_exists: Whether the package directory exists.

    Returns:
        The ``Decision`` for this package.
    """
    name = desired.name
    if not dir_exists:
        return Decision(PackageState.ABSENT, RealizeAction.REALIZE)

    if recorded is None:
        return Decision(
            PackageState.FOREIGN,
            RealizeAction.SKIP_FOREIGN,
            f"package '{name}' exists without a metadata record; assuming it is "
            "managed manually and leaving it untouched.",
        )

    if matches(desired, recorded):
        return Decision(PackageState.CURRENT, RealizeAction.NONE)

    have = f"commit '{recorded.commit}', mode '{recorded.checkout_mode.value}'"
    want = f"commit '{desired.commit}', mode '{desired.checkout_mode.value}'"

    if recorded.checkout_mode is not desired.checkout_mode and not flags.allow_mode_switch:
        return Decision(
            PackageState.STALE,
            RealizeAction.SKIP_MODE_SWITCH,
            f"package '{name}' was realized in mode '{recorded.checkout_mode.value}' "
            f"but is now declared as '{desired.checkout_mode.value}'. Switching "
            "checkout modes is never automatic; rerun with --allow-mode-switch "
            "to convert it. Keeping existing checkout.",
        )

    if flags.auto_update and flags.package_auto_update:
        return Decision(
            PackageState.STALE,
            RealizeAction.REALIZE,
            f"package '{name}' is out of date (have {have}; want {want}).",
        )

    return Decision(
        PackageState.STALE,
        RealizeAction.SKIP_AUTO_UPDATE_DISABLED,
        f"package '{name}' is out of date (have {have}; want {want}), but "
        "auto-update is disabled globally or for this package. Keeping "
        "existing checkout.",
    )
