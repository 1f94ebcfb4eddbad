"""Hackteam API package."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("hackteam-api")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
