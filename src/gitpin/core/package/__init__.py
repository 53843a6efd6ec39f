"""Package declarations, metadata records, state machine, and realizer.

All public names are re-exported here so callers can write
``from gitpin.core.package import PackageRealizer``.
"""

from gitpin.core.package.metadata import (
    METADATA_FILENAME,
    metadata_path,
    read_metadata,
    write_metadata,
)
from gitpin.core.package.models import (
    CheckoutMode,
    PackageDeclaration,
    PackageMetadata,
    normalize_name,
    validate_name,
)
from gitpin.core.package.realizer import (
    DEFAULT_BUILD_DESCRIPTOR,
    PackageRealizer,
    RealizationOutcome,
    remove_tree,
)
from gitpin.core.package.state import (
    Decision,
    PackageState,
    RealizeAction,
    UpdateFlags,
    decide,
    matches,
)

__all__ = [
    "CheckoutMode",
    "DEFAULT_BUILD_DESCRIPTOR",
    "Decision",
    "METADATA_FILENAME",
    "PackageDeclaration",
    "PackageMetadata",
    "PackageRealizer",
    "PackageState",
    "RealizationOutcome",
    "RealizeAction",
    "UpdateFlags",
    "decide",
    "matches",
    "metadata_path",
    "normalize_name",
    "read_metadata",
    "remove_tree",
    "validate_name",
    "write_metadata",
]
