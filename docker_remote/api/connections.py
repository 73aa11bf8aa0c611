"""Pooled SSH connection endpoints."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, status

from ..dependencies.services import ConnectionPoolDep
from ..models.api import (
    ActiveConnectionsResponse,
    ConnectionRequest,
    ConnectionStatusResponse,
)
from ..models.connection import ConnectionKey

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/connections",
    response_model=ConnectionStatusResponse,
    status_code=status.HTTP_201_CREATED,
)
async def open_connection(request: ConnectionRequest, pool: ConnectionPoolDep):
    """Establish (or reuse) the pooled session for a host."""
    key = ConnectionKey(username=request.username, hostname=request.hostname)
    await pool.acquire(key)
    return ConnectionStatusResponse(
        target=key.target, active=True, checked_at=datetime.now(timezone.utc)
    )


@router.get("/connections", response_model=ActiveConnectionsResponse)
async def list_connections(pool: ConnectionPoolDep):
    targets = sorted(key.target for key in pool.list_active_keys())
    return ActiveConnectionsResponse(connections=targets, count=len(targets))


@router.get("/connections/{target}/status", response_model=ConnectionStatusResponse)
async def connection_status(target: str, pool: ConnectionPoolDep):
    """Re-probe the session for ``user@host``. Never opens a new one."""
    key = ConnectionKey.parse(target)
    active = await pool.is_active(key)
    return ConnectionStatusResponse(
        target=key.target, active=active, checked_at=datetime.now(timezone.utc)
    )


@router.delete("/connections/{target}", status_code=status.HTTP_204_NO_CONTENT)
async def close_connection(target: str, pool: ConnectionPoolDep):
    key = ConnectionKey.parse(target)
    await pool.close(key)
    logger.info("Connection closed by request", target=key.target)
