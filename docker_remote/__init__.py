"""Pooled SSH command execution and managed-service lifecycle for remote Docker hosts."""

from ._version import __version__

__all__ = ["__version__"]
