"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from .._version import __version__
from ..dependencies.services import ConnectionPoolDep, LifecycleManagerDep

router = APIRouter()


@router.get("/health", summary="Basic health check")
async def basic_health_check(pool: ConnectionPoolDep, manager: LifecycleManagerDep):
    """Report liveness plus pool and deployment counters. No remote I/O."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "docker-remote",
        "active_connections": len(pool.list_active_keys()),
        "pending_deployments": manager.pending_deployments,
    }
