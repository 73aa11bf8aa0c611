"""Lifecycle management for containerized services on remote Docker hosts.

State machine::

    (none) --create--> CREATING --deployed--> RUNNING <--start/stop--> STOPPED
                       CREATING --failed----> ERROR
    RUNNING | STOPPED | ERROR --delete--> (removed)

The manager talks to the remote host only through a RemoteExecutionAdapter.
Status changes happen under the index write lock and every change is
persisted; remote I/O runs outside the lock using values captured under a
brief read.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

import structlog

from ...config import ServicesConfig
from ...models.errors import (
    DockerRemoteException,
    InvalidServiceStateError,
    PersistenceError,
    ServiceNotFoundError,
)
from ...models.service import (
    ConnectionInfo,
    LogEntry,
    ManagedService,
    ServiceCreate,
    ServiceStatus,
)
from ...utils.id_generator import generate_service_id
from ...utils.rwlock import AsyncRWLock
from ..remote.adapter import RemoteExecutionAdapter
from . import commands
from .store import ServiceStore

logger = structlog.get_logger(__name__)


class ServiceLifecycleManager:
    """Owns the managed service index and drives each service's lifecycle."""

    def __init__(
        self,
        adapter: RemoteExecutionAdapter,
        store: ServiceStore,
        config: Optional[ServicesConfig] = None,
    ):
        self.adapter = adapter
        self.store = store
        self.config = config or ServicesConfig()
        self._services: Dict[str, ManagedService] = {}
        self._lock = AsyncRWLock()
        self._deployments: Dict[str, asyncio.Task] = {}
        self._deploy_semaphore = asyncio.Semaphore(self.config.max_concurrent_deployments)

    async def load(self) -> None:
        """Load the persisted index.

        Services still CREATING were being deployed by a previous process;
        that deployment cannot be resumed, so they are marked ERROR.
        """
        services = await asyncio.to_thread(self.store.load)
        async with self._lock.write_lock():
            self._services = {service.id: service for service in services}
            orphaned = [
                s for s in self._services.values() if s.status == ServiceStatus.CREATING
            ]
            for service in orphaned:
                service.status = ServiceStatus.ERROR
                logger.warning("Interrupted deployment marked as error", service_id=service.id)
            if orphaned:
                await self._persist()

        logger.info("Service index loaded", services=len(self._services))

    async def close(self) -> None:
        """Cancel and wait for in-flight deployments."""
        tasks = list(self._deployments.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled in-flight deployments", count=len(tasks))
        self._deployments.clear()

    @property
    def pending_deployments(self) -> int:
        return len(self._deployments)

    # Index helpers (callers hold the lock)

    def _next_port(self) -> int:
        if not self._services:
            return self.config.base_port
        highest = max(service.port for service in self._services.values())
        return max(self.config.base_port, highest) + 1

    def _new_id(self, service_type: str) -> str:
        service_id = generate_service_id(service_type)
        while service_id in self._services:
            service_id = generate_service_id(service_type)
        return service_id

    async def _persist(self) -> None:
        snapshot = [s.model_copy(deep=True) for s in self._services.values()]
        try:
            await asyncio.to_thread(self.store.save, snapshot)
        except PersistenceError as e:
            logger.error("Failed to persist service index", error=str(e))

    async def _update(
        self,
        service_id: str,
        expected: Optional[ServiceStatus] = None,
        **changes,
    ) -> Optional[ManagedService]:
        """Apply field changes to a record and persist.

        Returns None, changing nothing, if the record was deleted or is no
        longer in the ``expected`` status.
        """
        async with self._lock.write_lock():
            service = self._services.get(service_id)
            if service is None:
                logger.info(
                    "Dropping update for deleted service",
                    service_id=service_id,
                    changes=list(changes),
                )
                return None
            if expected is not None and service.status != expected:
                return None
            for field, value in changes.items():
                setattr(service, field, value)
            await self._persist()
            return service.model_copy(deep=True)

    async def _snapshot(self, service_id: str) -> ManagedService:
        async with self._lock.read_lock():
            service = self._services.get(service_id)
            if service is None:
                raise ServiceNotFoundError(service_id)
            return service.model_copy(deep=True)

    # Queries

    async def get(self, service_id: str) -> ManagedService:
        return await self._snapshot(service_id)

    async def list(self) -> List[ManagedService]:
        async with self._lock.read_lock():
            services = sorted(self._services.values(), key=lambda s: s.created_at)
            return [s.model_copy(deep=True) for s in services]

    # Lifecycle operations

    async def create(self, request: ServiceCreate) -> ManagedService:
        """Register a new service and deploy it in the background.

        Returns immediately with status CREATING; poll ``get`` for the outcome.
        """
        async with self._lock.write_lock():
            service = ManagedService(
                id=self._new_id(request.config.type),
                name=request.name,
                status=ServiceStatus.CREATING,
                port=self._next_port(),
                created_at=datetime.now(timezone.utc),
                config=request.config.model_copy(deep=True),
            )
            self._services[service.id] = service
            await self._persist()
            snapshot = service.model_copy(deep=True)

        logger.info(
            "Service created",
            service_id=snapshot.id,
            name=snapshot.name,
            type=snapshot.type.value,
            port=snapshot.port,
        )

        # The task copies the current context, including the SSH target binding
        task = asyncio.create_task(self._deploy(snapshot), name=f"deploy-{snapshot.id}")
        self._deployments[snapshot.id] = task
        task.add_done_callback(lambda t, sid=snapshot.id: self._deployments.pop(sid, None))

        return snapshot

    async def _deploy(self, service: ManagedService) -> None:
        try:
            async with self._deploy_semaphore:
                await self._run_deployment(service)
        except asyncio.CancelledError:
            logger.warning("Deployment cancelled", service_id=service.id)
            await self._update(
                service.id, expected=ServiceStatus.CREATING, status=ServiceStatus.ERROR
            )
            raise
        except Exception:
            logger.exception("Unexpected error during deployment", service_id=service.id)
            await self._update(
                service.id, expected=ServiceStatus.CREATING, status=ServiceStatus.ERROR
            )

    async def _run_deployment(self, service: ManagedService) -> None:
        command = commands.build_run_command(service, self.config.label_prefix)
        logger.info("Deploying service", service_id=service.id, command=command)

        try:
            output = await self.adapter.execute_command(command)
        except DockerRemoteException as e:
            logger.error("Failed to deploy service", service_id=service.id, error=e.message)
            await self._update(
                service.id, expected=ServiceStatus.CREATING, status=ServiceStatus.ERROR
            )
            return

        handle = commands.parse_remote_handle(output)
        if not handle:
            logger.error("docker run returned no container id", service_id=service.id)
            await self._update(
                service.id, expected=ServiceStatus.CREATING, status=ServiceStatus.ERROR
            )
            return

        updated = await self._update(
            service.id, remote_handle=handle, status=ServiceStatus.RUNNING
        )
        if updated is None:
            return

        if service.publishes_port:
            await self._open_tunnel(service)
            if service.id not in self._services:
                await self._close_tunnel(service.id)

        logger.info("Service deployed", service_id=service.id, remote_handle=handle)

    async def _open_tunnel(self, service: ManagedService) -> None:
        try:
            endpoint = await self.adapter.create_tunnel(service.id, service.port, service.port)
            logger.info("Service tunnel ready", service_id=service.id, endpoint=endpoint)
        except Exception as e:
            # Not fatal: the container is running without its tunnel
            logger.warning(
                "Failed to create tunnel for service", service_id=service.id, error=str(e)
            )

    async def _close_tunnel(self, service_id: str) -> None:
        try:
            await self.adapter.close_tunnel(service_id)
        except Exception as e:
            logger.warning("Failed to close tunnel for service", service_id=service_id, error=str(e))

    def _require_handle(self, service: ManagedService, operation: str) -> str:
        if not service.remote_handle:
            raise InvalidServiceStateError(service.id, service.status.value, operation)
        return service.remote_handle

    async def start(self, service_id: str) -> ManagedService:
        service = await self._snapshot(service_id)
        if service.status == ServiceStatus.RUNNING:
            return service
        if service.status != ServiceStatus.STOPPED:
            raise InvalidServiceStateError(service_id, service.status.value, "start")

        handle = self._require_handle(service, "start")
        await self.adapter.execute_command(commands.start_command(handle))

        updated = await self._update(service_id, status=ServiceStatus.RUNNING)
        if updated is None:
            raise ServiceNotFoundError(service_id)
        logger.info("Service started", service_id=service_id)

        if service.publishes_port:
            await self._open_tunnel(service)
        return updated

    async def stop(self, service_id: str) -> ManagedService:
        service = await self._snapshot(service_id)
        if service.status == ServiceStatus.STOPPED:
            return service
        if service.status != ServiceStatus.RUNNING:
            raise InvalidServiceStateError(service_id, service.status.value, "stop")

        handle = self._require_handle(service, "stop")
        await self.adapter.execute_command(commands.stop_command(handle))

        updated = await self._update(service_id, status=ServiceStatus.STOPPED)
        if updated is None:
            raise ServiceNotFoundError(service_id)
        logger.info("Service stopped", service_id=service_id)

        await self._close_tunnel(service_id)
        return updated

    async def delete(self, service_id: str) -> None:
        """Remove a service. A running service is stopped first.

        Container removal is best effort: the record is dropped even when
        ``docker rm`` fails.
        """
        service = await self._snapshot(service_id)
        if service.status == ServiceStatus.CREATING:
            raise InvalidServiceStateError(service_id, service.status.value, "delete")

        if service.status == ServiceStatus.RUNNING:
            await self.stop(service_id)

        if service.remote_handle:
            try:
                await self.adapter.execute_command(
                    commands.remove_command(service.remote_handle)
                )
            except DockerRemoteException as e:
                logger.error(
                    "Failed to remove service container",
                    service_id=service_id,
                    remote_handle=service.remote_handle,
                    error=e.message,
                )

        await self._close_tunnel(service_id)

        async with self._lock.write_lock():
            self._services.pop(service_id, None)
            await self._persist()

        logger.info("Service deleted", service_id=service_id)

    async def get_logs(self, service_id: str, lines: Optional[int] = None) -> List[LogEntry]:
        service = await self._snapshot(service_id)
        handle = self._require_handle(service, "read logs of")
        lines = lines or self.config.default_log_lines

        output = await self.adapter.execute_command(commands.logs_command(handle, lines))
        return [
            LogEntry(
                timestamp=datetime.now(timezone.utc),
                level="info",
                message=output,
                service_id=service_id,
            )
        ]

    async def get_connection_info(self, service_id: str) -> ConnectionInfo:
        service = await self._snapshot(service_id)
        if service.status != ServiceStatus.RUNNING:
            raise InvalidServiceStateError(
                service_id, service.status.value, "get connection info for"
            )
        return commands.build_connection_info(service)

    async def get_all_connection_info(self) -> List[ConnectionInfo]:
        services = await self.list()
        return [
            commands.build_connection_info(s)
            for s in services
            if s.status == ServiceStatus.RUNNING
        ]
