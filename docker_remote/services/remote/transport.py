"""SSH transport: the only place that spawns the system ``ssh`` client.

Sessions are multiplexed with OpenSSH ControlMaster. A master process owns
the authenticated connection and listens on a control socket; every other
invocation here passes ``-S <socket>`` and rides on that master.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import structlog

from ...config import SSHConfig
from ...models.connection import ConnectionKey
from ...models.errors import ConnectivityError
from ...utils.id_generator import generate_socket_token

logger = structlog.get_logger(__name__)

# ssh reports its own failures (connect, auth, mux) with this exit status
SSH_FAILURE_EXIT_CODE = 255


@dataclass
class CommandResult:
    """Exit status and combined stdout+stderr of one ssh invocation."""

    exit_code: int
    output: bytes = b""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")


class SSHTransport:
    """Builds ssh argument vectors and runs them as asyncio subprocesses."""

    def __init__(self, config: SSHConfig):
        self.config = config

    def control_path(self, key: ConnectionKey) -> Path:
        """Fresh control socket path for a new master session."""
        return self.config.control_dir / f"ssh-{key.target}-{generate_socket_token()}.sock"

    def prepare_control_dir(self) -> None:
        self.config.control_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        self.config.known_hosts_file.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    @staticmethod
    def remove_socket(control_path: Path) -> None:
        try:
            control_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(
                "Failed to remove control socket", control_path=str(control_path), error=str(e)
            )

    # Argument vectors

    def master_args(self, key: ConnectionKey, control_path: Path) -> List[str]:
        c = self.config
        return [
            c.binary,
            "-M",
            "-S", str(control_path),
            "-o", f"ControlPersist={c.control_persist}",
            "-o", f"ServerAliveInterval={c.server_alive_interval}",
            "-o", f"ServerAliveCountMax={c.server_alive_count_max}",
            "-o", "TCPKeepAlive=yes",
            "-o", "BatchMode=yes",
            "-o", f"StrictHostKeyChecking={c.strict_host_key_checking}",
            "-o", f"UserKnownHostsFile={c.known_hosts_file}",
            "-o", "ExitOnForwardFailure=no",
            "-N",
            key.target,
        ]

    def command_args(
        self,
        key: ConnectionKey,
        control_path: Path,
        command: str,
        connect_timeout: Optional[int] = None,
    ) -> List[str]:
        c = self.config
        return [
            c.binary,
            "-o", f"ConnectTimeout={connect_timeout or c.connect_timeout}",
            "-o", f"ServerAliveInterval={c.server_alive_interval}",
            "-S", str(control_path),
            "-o", "BatchMode=yes",
            key.target,
            command,
        ]

    def control_args(
        self, key: ConnectionKey, control_path: Path, operation: str, *extra: str
    ) -> List[str]:
        """``ssh -O <operation>`` against a running master."""
        return [
            self.config.binary,
            "-o", f"ConnectTimeout={self.config.close_timeout}",
            "-S", str(control_path),
            "-O", operation,
            *extra,
            key.target,
        ]

    # Process execution

    async def _run(self, args: List[str], timeout: Optional[float] = None) -> CommandResult:
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise ConnectivityError(f"Failed to spawn {args[0]}: {e}") from e

        try:
            if timeout is None:
                stdout, _ = await proc.communicate()
            else:
                stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return CommandResult(exit_code=-1, output=f"timeout after {timeout}s".encode())
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await asyncio.shield(proc.wait())
            raise

        return CommandResult(exit_code=proc.returncode or 0, output=stdout or b"")

    async def start_master(
        self, key: ConnectionKey, control_path: Path
    ) -> asyncio.subprocess.Process:
        """Spawn the ControlMaster for ``key`` in the background."""
        args = self.master_args(key, control_path)
        logger.debug("Starting SSH master", target=key.target, control_path=str(control_path))
        try:
            self.prepare_control_dir()
            self.remove_socket(control_path)
            return await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise ConnectivityError(
                f"Failed to start SSH master: {e}", target=key.target
            ) from e

    async def probe(
        self, key: ConnectionKey, control_path: Path, timeout: Optional[int] = None
    ) -> CommandResult:
        """Run a trivial command through the master to prove it is usable."""
        connect_timeout = timeout or self.config.connect_timeout
        args = self.command_args(
            key, control_path, "echo 'Connection test'", connect_timeout=connect_timeout
        )
        return await self._run(args, timeout=connect_timeout * 2)

    async def run(self, key: ConnectionKey, control_path: Path, command: str) -> CommandResult:
        """Run ``command`` through the master. No overall timeout."""
        return await self._run(self.command_args(key, control_path, command))

    async def exit_master(self, key: ConnectionKey, control_path: Path) -> CommandResult:
        return await self._run(
            self.control_args(key, control_path, "exit"),
            timeout=self.config.close_timeout,
        )

    async def forward(
        self, key: ConnectionKey, control_path: Path, local_port: int, remote_port: int
    ) -> CommandResult:
        """Add a local port forward to the running master."""
        spec = f"{local_port}:localhost:{remote_port}"
        return await self._run(
            self.control_args(key, control_path, "forward", "-L", spec),
            timeout=self.config.connect_timeout,
        )

    async def cancel_forward(
        self, key: ConnectionKey, control_path: Path, local_port: int, remote_port: int
    ) -> CommandResult:
        spec = f"{local_port}:localhost:{remote_port}"
        return await self._run(
            self.control_args(key, control_path, "cancel", "-L", spec),
            timeout=self.config.close_timeout,
        )

    async def terminate(self, process: Optional[asyncio.subprocess.Process]) -> None:
        """Kill a master process that did not exit on request."""
        if process is None or process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=self.config.close_timeout)
        except asyncio.TimeoutError:
            logger.warning("SSH master did not exit after kill", pid=process.pid)
