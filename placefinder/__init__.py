"""Incremental search, caching and history layer for the place finder."""

from placefinder.version import __version__

__all__ = ["__version__"]
