"""Pool of multiplexed SSH master sessions.

One ControlMaster per (user, host). Commands ride on the master's control
socket, so only the first command to a host pays for the SSH handshake.

Establishment, probing and teardown all run under one pool-wide lock:
concurrent first use of a key yields exactly one master. Command execution
happens outside the lock (see CommandExecutor).
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Set

import structlog

from ...config import SSHConfig
from ...models.connection import Connection, ConnectionKey, SessionHandle
from ...models.errors import ConnectivityError
from .transport import SSHTransport

logger = structlog.get_logger(__name__)


class ConnectionPool:
    """Owns zero or one active master session per ConnectionKey."""

    def __init__(self, transport: SSHTransport, config: Optional[SSHConfig] = None):
        self.transport = transport
        self.config = config or transport.config
        self._connections: Dict[ConnectionKey, Connection] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._connections)

    async def acquire(self, key: ConnectionKey) -> SessionHandle:
        """Return a handle to an active session, establishing one if needed."""
        async with self._lock:
            conn = self._connections.get(key)
            if conn is not None and conn.active:
                conn.touch()
                return conn.handle()

            if conn is not None:
                logger.info("Replacing inactive SSH connection", target=key.target)
                await self._teardown(conn)
                del self._connections[key]

            conn = await self._establish(key)
            self._connections[key] = conn
            return conn.handle()

    async def _establish(self, key: ConnectionKey) -> Connection:
        control_path = self.transport.control_path(key)
        logger.info(
            "Establishing SSH connection", target=key.target, control_path=str(control_path)
        )

        process = await self.transport.start_master(key, control_path)
        try:
            await asyncio.sleep(self.config.settle_delay)
            result = await self.transport.probe(key, control_path, self.config.connect_timeout)
        except BaseException:
            await self.transport.terminate(process)
            self.transport.remove_socket(control_path)
            raise

        if not result.ok:
            await self.transport.terminate(process)
            self.transport.remove_socket(control_path)
            logger.warning(
                "SSH connection test failed",
                target=key.target,
                exit_code=result.exit_code,
                output=result.text.strip(),
            )
            raise ConnectivityError(
                "SSH connection test failed", target=key.target, output=result.text
            )

        logger.info("SSH connection established", target=key.target)
        return Connection(key=key, control_path=control_path, process=process)

    async def _teardown(self, conn: Connection) -> None:
        """Close one master session. Never raises."""
        if conn.process is None and not conn.active:
            return
        conn.active = False
        try:
            result = await self.transport.exit_master(conn.key, conn.control_path)
            exited = result.ok
            if not exited:
                logger.warning(
                    "SSH master did not exit cleanly, killing it",
                    target=conn.key.target,
                    exit_code=result.exit_code,
                    output=result.text.strip(),
                )
        except ConnectivityError as e:
            logger.warning("Failed to request SSH master exit", target=conn.key.target, error=str(e))
            exited = False

        if not exited:
            await self.transport.terminate(conn.process)
        self.transport.remove_socket(conn.control_path)

    async def close(self, key: ConnectionKey) -> None:
        """Tear down and forget the session for ``key``. Idempotent."""
        async with self._lock:
            conn = self._connections.pop(key, None)
            if conn is None:
                return
            await self._teardown(conn)
            logger.info("SSH connection closed", target=key.target)

    async def close_all(self) -> None:
        async with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
            for conn in connections:
                await self._teardown(conn)
        if connections:
            logger.info("All SSH connections closed", count=len(connections))

    async def is_active(self, key: ConnectionKey) -> bool:
        """Re-probe the session for ``key``. Unknown keys are never created here."""
        async with self._lock:
            conn = self._connections.get(key)
            if conn is None or not conn.active:
                return False

            result = await self.transport.probe(key, conn.control_path, self.config.probe_timeout)
            if not result.ok:
                logger.warning(
                    "SSH connection appears to be broken",
                    target=key.target,
                    exit_code=result.exit_code,
                )
                # Release the master and socket now; the inactive entry stays
                # until the next acquire replaces it
                await self._teardown(conn)
                conn.process = None
                return False
            return True

    def list_active_keys(self) -> Set[ConnectionKey]:
        return {key for key, conn in self._connections.items() if conn.active}

    async def cleanup_idle_connections(self, idle_timeout: timedelta) -> int:
        """Close active sessions unused for longer than ``idle_timeout``.

        Returns the number of sessions closed. Sessions within the timeout
        keep their ``last_used_at``.
        """
        threshold = idle_timeout.total_seconds()
        closed = 0
        async with self._lock:
            now = datetime.now(timezone.utc)
            idle = [
                conn
                for conn in self._connections.values()
                if conn.active and conn.idle_for(now) > threshold
            ]
            for conn in idle:
                logger.info(
                    "Closing idle SSH connection",
                    target=conn.key.target,
                    idle_seconds=int(conn.idle_for(now)),
                )
                await self._teardown(conn)
                del self._connections[conn.key]
                closed += 1
        return closed
