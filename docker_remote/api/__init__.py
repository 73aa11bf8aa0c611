"""API endpoints for docker-remote."""

from . import connections, exec, health, services

__all__ = ["connections", "exec", "health", "services"]
