"""Remote execution capability handed to the lifecycle manager.

The adapter exposes four operations and nothing else. Which host they act
on is decided by the caller's binding, set per request with ``bind()`` and
stored in a context variable, so concurrent requests to different hosts
never see each other's target and tasks spawned inside a binding inherit it.
"""

import asyncio
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

import structlog

from ...models.connection import ConnectionKey
from ...models.errors import ConnectivityError, RemoteCommandError
from .executor import CommandExecutor

logger = structlog.get_logger(__name__)

_current_target: ContextVar[Optional[ConnectionKey]] = ContextVar(
    "docker_remote_ssh_target", default=None
)


@dataclass(frozen=True)
class Tunnel:
    """A local port forwarded to a service port on the remote host."""

    key: ConnectionKey
    local_port: int
    remote_port: int

    @property
    def endpoint(self) -> str:
        return f"localhost:{self.local_port}"


class RemoteExecutionAdapter:
    """execute_command / create_tunnel / close_tunnel / get_tunnel_endpoint."""

    def __init__(self, executor: CommandExecutor):
        self.executor = executor
        self._tunnels: Dict[str, Tunnel] = {}
        self._tunnel_lock = asyncio.Lock()

    @contextmanager
    def bind(self, key: ConnectionKey) -> Iterator[ConnectionKey]:
        token = _current_target.set(key)
        try:
            yield key
        finally:
            _current_target.reset(token)

    @staticmethod
    def current_target() -> Optional[ConnectionKey]:
        return _current_target.get()

    def _require_target(self) -> ConnectionKey:
        key = _current_target.get()
        if key is None:
            raise ConnectivityError("no SSH environment configured")
        return key

    async def execute_command(self, command: str) -> str:
        key = self._require_target()
        return await self.executor.execute_text(key, command)

    async def create_tunnel(self, tunnel_id: str, local_port: int, remote_port: int) -> str:
        """Forward ``localhost:local_port`` to ``remote_port`` on the bound host."""
        key = self._require_target()
        async with self._tunnel_lock:
            existing = self._tunnels.get(tunnel_id)
            if existing is not None:
                if existing == Tunnel(key, local_port, remote_port):
                    return existing.endpoint
                await self._cancel(tunnel_id, existing)

            handle = await self.executor.pool.acquire(key)
            result = await self.executor.transport.forward(
                key, handle.control_path, local_port, remote_port
            )
            if not result.ok:
                raise RemoteCommandError(
                    f"forward -L {local_port}:localhost:{remote_port}",
                    result.exit_code,
                    result.text,
                )

            tunnel = Tunnel(key=key, local_port=local_port, remote_port=remote_port)
            self._tunnels[tunnel_id] = tunnel
            logger.info(
                "Tunnel created",
                tunnel_id=tunnel_id,
                target=key.target,
                local_port=local_port,
                remote_port=remote_port,
            )
            return tunnel.endpoint

    async def close_tunnel(self, tunnel_id: str) -> None:
        """Remove a tunnel. Unknown ids are ignored."""
        async with self._tunnel_lock:
            tunnel = self._tunnels.get(tunnel_id)
            if tunnel is None:
                return
            await self._cancel(tunnel_id, tunnel)

    async def _cancel(self, tunnel_id: str, tunnel: Tunnel) -> None:
        del self._tunnels[tunnel_id]
        # A tunnel lives on its master; if the session is gone so is the forward
        if tunnel.key not in self.executor.pool.list_active_keys():
            return
        handle = await self.executor.pool.acquire(tunnel.key)
        result = await self.executor.transport.cancel_forward(
            tunnel.key, handle.control_path, tunnel.local_port, tunnel.remote_port
        )
        if not result.ok:
            logger.warning(
                "Failed to cancel tunnel",
                tunnel_id=tunnel_id,
                exit_code=result.exit_code,
                output=result.text.strip(),
            )
        else:
            logger.info("Tunnel closed", tunnel_id=tunnel_id)

    def get_tunnel_endpoint(self, tunnel_id: str) -> Optional[str]:
        tunnel = self._tunnels.get(tunnel_id)
        return tunnel.endpoint if tunnel else None
