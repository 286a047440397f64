"""Shared utilities used by BitFleet packages."""

from .version import __version__

__all__ = ["__version__"]
