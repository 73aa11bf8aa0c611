"""Managed service lifecycle on remote Docker hosts."""

from .manager import ServiceLifecycleManager
from .store import ServiceStore

__all__ = ["ServiceLifecycleManager", "ServiceStore"]
