"""Unit tests for the service index snapshot."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from docker_remote.models.errors import PersistenceError
from docker_remote.models.service import (
    CustomOptions,
    CustomServiceConfig,
    DockerOptions,
    DockerServiceConfig,
    FilesystemOptions,
    FilesystemServiceConfig,
    ManagedService,
    ServiceStatus,
    ServiceType,
    ShellOptions,
    ShellServiceConfig,
)
from docker_remote.services.lifecycle import ServiceLifecycleManager, ServiceStore


@pytest.fixture
def services():
    return [
        ManagedService(
            id="mcp-filesystem-1700000000-1",
            name="files",
            status=ServiceStatus.RUNNING,
            remote_handle="3f9a1c2b7d4e",
            port=9000,
            created_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            config=FilesystemServiceConfig(
                image="mcp/filesystem",
                env={"MCP_MODE": "http"},
                filesystem=FilesystemOptions(root_path="/srv", read_only=True),
            ),
        ),
        ManagedService(
            id="mcp-docker-1700000001-2",
            name="docker",
            status=ServiceStatus.STOPPED,
            remote_handle="77aa",
            port=9001,
            created_at=datetime(2024, 1, 2, 3, 5, 0, tzinfo=timezone.utc),
            config=DockerServiceConfig(image="mcp/docker", docker=DockerOptions()),
        ),
        ManagedService(
            id="mcp-shell-1700000002-3",
            name="shell",
            status=ServiceStatus.RUNNING,
            remote_handle="b0c1",
            port=9002,
            created_at=datetime(2024, 1, 2, 3, 6, 0, tzinfo=timezone.utc),
            config=ShellServiceConfig(
                image="mcp/shell",
                shell=ShellOptions(
                    shell="/bin/bash",
                    working_dir="/srv",
                    allowed_cmds=["ls", "cat"],
                    blocked_cmds=["rm", "shutdown"],
                ),
            ),
        ),
        ManagedService(
            id="mcp-custom-1700000003-4",
            name="custom",
            status=ServiceStatus.ERROR,
            port=9003,
            created_at=datetime(2024, 1, 2, 3, 7, 0, tzinfo=timezone.utc),
            config=CustomServiceConfig(
                image="python:3.12-slim",
                command=["python", "-m", "server"],
                custom=CustomOptions(
                    extra_volumes={"/data/cache": "/cache"},
                    git_repo="https://github.com/example/mcp-server.git",
                    build_cmd="pip install .",
                    run_cmd="python -m server",
                ),
            ),
        ),
    ]


class TestLoad:
    """Tests for ServiceStore.load()."""

    def test_missing_file_is_empty(self, store):
        assert store.load() == []

    def test_malformed_file_is_empty(self, store):
        store.path.write_text("{not json")

        assert store.load() == []

    def test_wrong_shape_is_empty(self, store):
        store.path.write_text(json.dumps([{"id": "x"}]))

        assert store.load() == []


class TestSave:
    """Tests for ServiceStore.save()."""

    def test_round_trip_preserves_fields(self, store, services):
        store.save(services)

        loaded = store.load()

        assert loaded == services
        assert isinstance(loaded[0].config, FilesystemServiceConfig)
        assert loaded[0].config.filesystem.read_only is True
        assert isinstance(loaded[1].config, DockerServiceConfig)
        assert loaded[1].type == ServiceType.DOCKER
        assert loaded[2].config.shell.allowed_cmds == ["ls", "cat"]
        assert loaded[2].config.shell.blocked_cmds == ["rm", "shutdown"]
        assert loaded[3].config.custom.extra_volumes == {"/data/cache": "/cache"}
        assert loaded[3].config.custom.git_repo.endswith("mcp-server.git")
        assert loaded[3].remote_handle is None

    def test_snapshot_is_json_list(self, store, services):
        store.save(services)

        data = json.loads(store.path.read_text())

        assert [entry["id"] for entry in data] == [s.id for s in services]
        assert data[0]["status"] == "running"
        assert data[0]["config"]["type"] == "filesystem"

    def test_replaces_previous_snapshot(self, store, services):
        store.save(services)
        store.save(services[:1])

        assert [s.id for s in store.load()] == [services[0].id]

    @pytest.mark.asyncio
    async def test_fresh_manager_reloads_every_service_type(self, store, services):
        store.save(services)

        manager = ServiceLifecycleManager(MagicMock(), store)
        await manager.load()

        assert await manager.list() == services
        assert {s.type for s in await manager.list()} == set(ServiceType)

    def test_leaves_no_temporary_files(self, store, services):
        store.save(services)

        assert [p.name for p in store.path.parent.iterdir()] == [store.path.name]

    def test_creates_parent_directory(self, tmp_path, services):
        store = ServiceStore(tmp_path / "nested" / "dir" / "services.json")

        store.save(services)

        assert store.path.exists()

    def test_unwritable_location_raises(self, tmp_path, services):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = ServiceStore(blocker / "services.json")

        with pytest.raises(PersistenceError) as exc_info:
            store.save(services)

        assert exc_info.value.status_code == 500
