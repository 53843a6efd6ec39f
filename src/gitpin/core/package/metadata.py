"""Package State Store: the metadata record beside each realized checkout.

The record is a small JSON document, ``.gitpin-meta.json``, inside the
package directory. It lives *with the checkout*, so every build directory
and tool sees the same state. Reading it is the only work done for a
package that is already current.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from gitpin.core.package.models import CheckoutMode, PackageMetadata
from gitpin.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

METADATA_FILENAME = ".gitpin-meta.json"

_FIELDS = ("name", "repository_url", "commit", "checkout_mode")


def metadata_path(package_dir: Path) -> Path:
    return package_dir / METADATA_FILENAME


def read_metadata(package_dir: Path) -> PackageMetadata | None:
    """Read the metadata record of ``package_dir``.

    Returns:
        The record, or None if the package directory has none.

    Raises:
        ConfigurationError: If the record exists but is not a valid
            metadata document.
    """
    path = metadata_path(package_dir)
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"cannot read package metadata {path}: {exc}") from exc

    if not isinstance(data, dict) or any(not isinstance(data.get(f), str) for f in _FIELDS):
        raise ConfigurationError(
            f"package metadata {path} is malformed; expected string fields "
            f"{', '.join(_FIELDS)}"
        )
    return PackageMetadata(
        name=data["name"],
        repository_url=data["repository_url"],
        commit=data["commit"],
        checkout_mode=CheckoutMode.parse(data["checkout_mode"]),
    )


def write_metadata(package_dir: Path, meta: PackageMetadata) -> Path:
    """Overwrite the metadata record of ``package_dir`` with ``meta``."""
    path = metadata_path(package_dir)
    path.write_text(json.dumps(meta.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.debug("Wrote %s", path)
    return path
