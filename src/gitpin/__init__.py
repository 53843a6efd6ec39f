"""gitpin: pin and realize git source dependencies for a root project."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
