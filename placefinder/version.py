"""
Version information for placefinder package.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("placefinder")
except PackageNotFoundError:
    # Package is not installed
    __version__ = "0.0.0+unknown"
