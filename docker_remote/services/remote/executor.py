"""Remote command execution over pooled SSH sessions."""

import structlog

from ...models.connection import ConnectionKey
from ...models.errors import ConnectivityError, RemoteCommandError
from .pool import ConnectionPool
from .transport import SSH_FAILURE_EXIT_CODE, SSHTransport

logger = structlog.get_logger(__name__)


class CommandExecutor:
    """Runs opaque command strings on a remote host.

    Each call acquires the session once (reconnecting lazily if it was
    closed or found broken) and then runs the command without holding the
    pool lock, so commands to the same host run concurrently.
    """

    def __init__(self, pool: ConnectionPool, transport: SSHTransport = None):
        self.pool = pool
        self.transport = transport or pool.transport

    async def execute(self, key: ConnectionKey, command: str) -> bytes:
        handle = await self.pool.acquire(key)

        logger.debug("Executing remote command", target=key.target, command=command)
        result = await self.transport.run(key, handle.control_path, command)

        if result.ok:
            return result.output

        if result.exit_code == SSH_FAILURE_EXIT_CODE:
            logger.warning(
                "SSH failed while running command",
                target=key.target,
                output=result.text.strip(),
            )
            raise ConnectivityError(
                "SSH session failed while running command",
                target=key.target,
                output=result.text,
            )

        logger.info(
            "Remote command failed",
            target=key.target,
            exit_code=result.exit_code,
        )
        raise RemoteCommandError(command, result.exit_code, result.text)

    async def execute_text(self, key: ConnectionKey, command: str) -> str:
        output = await self.execute(key, command)
        return output.decode("utf-8", errors="replace")
