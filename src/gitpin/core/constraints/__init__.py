"""Requirement records validated by ``RunContext.finalize``."""

from gitpin.core.constraints.models import Requirement

__all__ = ["Requirement"]
