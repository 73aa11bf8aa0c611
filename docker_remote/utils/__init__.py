"""Utility modules for docker-remote."""

from .logging import setup_logging, get_logger
from .rwlock import AsyncRWLock
from .shutdown import GracefulShutdownHandler, setup_graceful_shutdown

__all__ = [
    "setup_logging",
    "get_logger",
    "AsyncRWLock",
    "GracefulShutdownHandler",
    "setup_graceful_shutdown",
]
