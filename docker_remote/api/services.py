"""Managed service endpoints.

Operations that reach the remote host run inside the caller's
``X-SSH-Target`` binding; background deployments started here inherit it.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Query, status

from ..dependencies.services import (
    LifecycleManagerDep,
    RemoteAdapterDep,
    SSHTargetDep,
)
from ..models.service import ConnectionInfo, LogEntry, ManagedService, ServiceCreate

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/services")


@router.post("", response_model=ManagedService, status_code=status.HTTP_202_ACCEPTED)
async def create_service(
    request: ServiceCreate,
    manager: LifecycleManagerDep,
    adapter: RemoteAdapterDep,
    target: SSHTargetDep,
):
    """Register a service and start deploying it. Poll GET for the outcome."""
    with adapter.bind(target):
        return await manager.create(request)


@router.get("", response_model=List[ManagedService])
async def list_services(manager: LifecycleManagerDep):
    return await manager.list()


@router.get("/connections", response_model=List[ConnectionInfo])
async def list_connection_info(manager: LifecycleManagerDep):
    return await manager.get_all_connection_info()


@router.get("/{service_id}", response_model=ManagedService)
async def get_service(service_id: str, manager: LifecycleManagerDep):
    return await manager.get(service_id)


@router.post("/{service_id}/start", response_model=ManagedService)
async def start_service(
    service_id: str,
    manager: LifecycleManagerDep,
    adapter: RemoteAdapterDep,
    target: SSHTargetDep,
):
    with adapter.bind(target):
        return await manager.start(service_id)


@router.post("/{service_id}/stop", response_model=ManagedService)
async def stop_service(
    service_id: str,
    manager: LifecycleManagerDep,
    adapter: RemoteAdapterDep,
    target: SSHTargetDep,
):
    with adapter.bind(target):
        return await manager.stop(service_id)


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: str,
    manager: LifecycleManagerDep,
    adapter: RemoteAdapterDep,
    target: SSHTargetDep,
):
    with adapter.bind(target):
        await manager.delete(service_id)


@router.get("/{service_id}/logs", response_model=List[LogEntry])
async def get_service_logs(
    service_id: str,
    manager: LifecycleManagerDep,
    adapter: RemoteAdapterDep,
    target: SSHTargetDep,
    lines: Optional[int] = Query(default=None, ge=1, le=10000),
):
    with adapter.bind(target):
        return await manager.get_logs(service_id, lines)


@router.get("/{service_id}/connection", response_model=ConnectionInfo)
async def get_service_connection(service_id: str, manager: LifecycleManagerDep):
    return await manager.get_connection_info(service_id)
