"""Pytest configuration and shared fixtures."""

import asyncio
import itertools
from pathlib import Path
from typing import Callable, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from docker_remote.config import ServicesConfig, SSHConfig
from docker_remote.models.connection import ConnectionKey
from docker_remote.models.service import (
    FilesystemOptions,
    FilesystemServiceConfig,
    ServiceCreate,
)
from docker_remote.services.lifecycle import ServiceLifecycleManager, ServiceStore
from docker_remote.services.remote import (
    CommandExecutor,
    CommandResult,
    ConnectionPool,
    RemoteExecutionAdapter,
)


class FakeSSHTransport:
    """Stand-in for SSHTransport that records calls instead of spawning ssh."""

    def __init__(self, config: SSHConfig):
        self.config = config
        self._paths = itertools.count(1)
        self.started: List[ConnectionKey] = []
        self.probes: List[Tuple[ConnectionKey, Optional[int]]] = []
        self.commands: List[Tuple[ConnectionKey, str]] = []
        self.exited: List[ConnectionKey] = []
        self.terminated: List[object] = []
        self.removed: List[Path] = []
        self.forwards: List[Tuple[ConnectionKey, int, int]] = []
        self.cancelled: List[Tuple[ConnectionKey, int, int]] = []

        self.probe_ok = True
        self.exit_ok = True
        self.forward_ok = True
        self.start_delay = 0.0
        self.run_handler: Callable[[str], CommandResult] = lambda command: CommandResult(0, b"")

    def control_path(self, key: ConnectionKey) -> Path:
        return self.config.control_dir / f"ssh-{key.target}-{next(self._paths)}.sock"

    def remove_socket(self, control_path: Path) -> None:
        self.removed.append(control_path)

    async def start_master(self, key, control_path):
        await asyncio.sleep(self.start_delay)
        self.started.append(key)
        process = MagicMock()
        process.returncode = None
        return process

    async def probe(self, key, control_path, timeout=None):
        self.probes.append((key, timeout))
        if self.probe_ok:
            return CommandResult(0, b"Connection test\n")
        return CommandResult(255, b"Permission denied (publickey).\n")

    async def run(self, key, control_path, command):
        self.commands.append((key, command))
        return self.run_handler(command)

    async def exit_master(self, key, control_path):
        self.exited.append(key)
        return CommandResult(0 if self.exit_ok else 255, b"")

    async def forward(self, key, control_path, local_port, remote_port):
        self.forwards.append((key, local_port, remote_port))
        return CommandResult(0 if self.forward_ok else 255, b"" if self.forward_ok else b"mux error")

    async def cancel_forward(self, key, control_path, local_port, remote_port):
        self.cancelled.append((key, local_port, remote_port))
        return CommandResult(0, b"")

    async def terminate(self, process):
        self.terminated.append(process)


@pytest.fixture
def ssh_config(tmp_path):
    """SSH settings with no settle delay and a throwaway control directory."""
    return SSHConfig(
        ssh_control_dir=tmp_path / "ssh",
        ssh_known_hosts_file=tmp_path / "known_hosts",
        ssh_settle_delay=0.0,
    )


@pytest.fixture
def fake_transport(ssh_config):
    return FakeSSHTransport(ssh_config)


@pytest.fixture
def pool(fake_transport, ssh_config):
    return ConnectionPool(fake_transport, ssh_config)


@pytest.fixture
def executor(pool):
    return CommandExecutor(pool)


@pytest.fixture
def adapter(executor):
    return RemoteExecutionAdapter(executor)


@pytest.fixture
def key():
    return ConnectionKey(username="deploy", hostname="docker-01.example.com")


@pytest.fixture
def services_config(tmp_path):
    return ServicesConfig(
        services_data_file=tmp_path / "mcp-servers.json",
        services_base_port=9000,
    )


@pytest.fixture
def store(services_config):
    return ServiceStore(services_config.data_file)


@pytest.fixture
def mock_adapter():
    """Adapter double: docker run prints a container id, everything else succeeds."""
    adapter = MagicMock(spec=RemoteExecutionAdapter)
    adapter.execute_command = AsyncMock(return_value="3f9a1c2b7d4e\n")
    adapter.create_tunnel = AsyncMock(return_value="localhost:9000")
    adapter.close_tunnel = AsyncMock()
    adapter.get_tunnel_endpoint = MagicMock(return_value=None)
    return adapter


@pytest.fixture
def manager(mock_adapter, store, services_config):
    return ServiceLifecycleManager(mock_adapter, store, services_config)


@pytest.fixture
def filesystem_request():
    return ServiceCreate(
        name="workspace-files",
        config=FilesystemServiceConfig(
            image="mcp/filesystem:latest",
            env={"MCP_MODE": "http"},
            filesystem=FilesystemOptions(root_path="/srv/data", read_only=True),
        ),
    )


@pytest.fixture
def settle():
    """Returns a coroutine function that waits for a manager's background deployments."""

    async def wait_for_deployments(manager: ServiceLifecycleManager) -> None:
        tasks = list(manager._deployments.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    return wait_for_deployments
