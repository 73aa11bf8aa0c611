"""Pooled SSH execution against remote Docker hosts."""

from .adapter import RemoteExecutionAdapter, Tunnel
from .executor import CommandExecutor
from .pool import ConnectionPool
from .reaper import IdleReaper
from .transport import CommandResult, SSHTransport

__all__ = [
    "CommandExecutor",
    "CommandResult",
    "ConnectionPool",
    "IdleReaper",
    "RemoteExecutionAdapter",
    "SSHTransport",
    "Tunnel",
]
