"""Unit tests for docker command construction and connection info."""

import pytest

from docker_remote.models.service import (
    CustomOptions,
    CustomServiceConfig,
    DockerOptions,
    DockerServiceConfig,
    FilesystemOptions,
    FilesystemServiceConfig,
    ManagedService,
    ServiceStatus,
    ShellOptions,
    ShellServiceConfig,
)
from docker_remote.services.lifecycle import commands


def make_service(config, **overrides) -> ManagedService:
    fields = dict(
        id="mcp-filesystem-1700000000-1",
        name="files",
        status=ServiceStatus.RUNNING,
        remote_handle="3f9a1c2b7d4e",
        port=9000,
        config=config,
    )
    fields.update(overrides)
    return ManagedService(**fields)


class TestBuildRunCommand:
    """Tests for build_run_command()."""

    def test_filesystem_service(self):
        service = make_service(
            FilesystemServiceConfig(
                image="mcp/filesystem:latest",
                env={"MCP_MODE": "http"},
                filesystem=FilesystemOptions(root_path="/srv/data", read_only=True),
            )
        )

        cmd = commands.build_run_command(service)

        assert cmd.startswith("docker run -d --name mcp-filesystem-1700000000-1 ")
        assert "--restart unless-stopped" in cmd
        assert "-l mcp.server.id=mcp-filesystem-1700000000-1" in cmd
        assert "-l mcp.server.name=files" in cmd
        assert "-l mcp.server.type=filesystem" in cmd
        assert "-p 9000:9000" in cmd
        assert "-e MCP_MODE=http" in cmd
        assert "-v /srv/data:/workspace:ro" in cmd
        assert cmd.endswith("mcp/filesystem:latest")

    def test_docker_service_mounts_socket(self):
        service = make_service(
            DockerServiceConfig(
                image="mcp/docker",
                env={"MCP_MODE": "http"},
                docker=DockerOptions(socket_path="/run/user/1000/docker.sock"),
            )
        )

        cmd = commands.build_run_command(service)

        assert "-v /run/user/1000/docker.sock:/var/run/docker.sock" in cmd

    def test_shell_service_sets_working_dir(self):
        service = make_service(
            ShellServiceConfig(
                image="mcp/shell",
                env={"MCP_MODE": "http"},
                shell=ShellOptions(working_dir="/home/app"),
            )
        )

        assert "-w /home/app" in commands.build_run_command(service)

    def test_custom_service_extra_volumes_and_command(self):
        service = make_service(
            CustomServiceConfig(
                image="ghcr.io/acme/tool:1.2",
                command=["python", "-m", "tool", "--port", "9000"],
                env={"MCP_MODE": "http"},
                volumes={"/data": "/data"},
                custom=CustomOptions(extra_volumes={"/cache": "/root/.cache"}),
            )
        )

        cmd = commands.build_run_command(service)

        assert "-v /data:/data" in cmd
        assert "-v /cache:/root/.cache" in cmd
        assert cmd.endswith("ghcr.io/acme/tool:1.2 python -m tool --port 9000")

    def test_custom_label_prefix(self):
        service = make_service(FilesystemServiceConfig(image="mcp/filesystem"))

        cmd = commands.build_run_command(service, label_prefix="acme.mcp")

        assert "-l acme.mcp.id=" in cmd
        assert "mcp.server" not in cmd

    def test_explicit_stdio_keeps_container_alive_without_port(self):
        service = make_service(
            FilesystemServiceConfig(image="mcp/filesystem", env={"MCP_MODE": "stdio"})
        )

        cmd = commands.build_run_command(service)

        assert "-p " not in cmd
        assert cmd.endswith("mcp/filesystem tail -f /dev/null")

    def test_unset_mode_still_publishes_port(self):
        service = make_service(FilesystemServiceConfig(image="mcp/filesystem"))

        cmd = commands.build_run_command(service)

        assert "-p 9000:9000" in cmd
        assert "tail -f /dev/null" not in cmd

    def test_values_are_quoted(self):
        service = make_service(
            ShellServiceConfig(
                image="mcp/shell",
                env={"MCP_MODE": "http", "GREETING": "hello world; rm -rf /"},
            ),
            name="my service",
        )

        cmd = commands.build_run_command(service)

        assert "-e 'GREETING=hello world; rm -rf /'" in cmd
        assert "-l 'mcp.server.name=my service'" in cmd


class TestSimpleCommands:
    """Tests for start/stop/remove/logs command lines."""

    def test_start_stop_remove(self):
        assert commands.start_command("abc123") == "docker start abc123"
        assert commands.stop_command("abc123") == "docker stop abc123"
        assert commands.remove_command("abc123") == "docker rm -f abc123"

    def test_logs(self):
        assert commands.logs_command("abc123", 50) == "docker logs --tail 50 --timestamps abc123"


class TestParseRemoteHandle:
    """Tests for parse_remote_handle()."""

    def test_plain_id(self):
        assert commands.parse_remote_handle("3f9a1c2b7d4e\n") == "3f9a1c2b7d4e"

    def test_id_after_pull_progress(self):
        output = (
            "Unable to find image 'mcp/filesystem:latest' locally\n"
            "latest: Pulling from mcp/filesystem\n"
            "Status: Downloaded newer image for mcp/filesystem:latest\n"
            "3f9a1c2b7d4e\n\n"
        )

        assert commands.parse_remote_handle(output) == "3f9a1c2b7d4e"

    @pytest.mark.parametrize("output", ["", "\n", "   \n \n"])
    def test_empty_output(self, output):
        assert commands.parse_remote_handle(output) == ""


class TestConnectionInfo:
    """Tests for build_connection_info()."""

    def test_stdio(self):
        service = make_service(
            FilesystemServiceConfig(image="mcp/filesystem", env={"MCP_MODE": "stdio"})
        )

        info = commands.build_connection_info(service)

        assert info.connection_type == "stdio"
        assert info.endpoint is None
        assert "docker exec -i 3f9a1c2b7d4e node index.js" in info.instructions
        assert info.capabilities == ["read_file", "write_file", "list_directory", "search_files"]

    def test_unset_mode_reports_stdio(self):
        service = make_service(FilesystemServiceConfig(image="mcp/filesystem"))

        assert commands.build_connection_info(service).connection_type == "stdio"

    def test_http(self):
        service = make_service(
            DockerServiceConfig(image="mcp/docker", env={"MCP_MODE": "http"}), port=9003
        )

        info = commands.build_connection_info(service)

        assert info.endpoint == "http://localhost:9003"
        assert '"url": "http://localhost:9003"' in info.instructions
        assert "list_containers" in info.capabilities

    def test_websocket(self):
        service = make_service(
            ShellServiceConfig(image="mcp/shell", env={"MCP_MODE": "websocket"})
        )

        info = commands.build_connection_info(service)

        assert info.endpoint == "ws://localhost:9000"
        assert '"transport": "websocket"' in info.instructions
        assert "execute_command" in info.capabilities

    def test_unsupported_mode(self):
        service = make_service(CustomServiceConfig(image="acme/tool", env={"MCP_MODE": "grpc"}))

        info = commands.build_connection_info(service)

        assert info.endpoint is None
        assert info.instructions == "Unsupported MCP_MODE: grpc"
        assert info.capabilities == ["unknown"]

    def test_only_known_env_keys_exposed(self):
        service = make_service(
            FilesystemServiceConfig(
                image="mcp/filesystem",
                env={"MCP_MODE": "http", "FILESYSTEM_ROOT": "/workspace", "API_TOKEN": "secret"},
            )
        )

        info = commands.build_connection_info(service)

        assert info.environment == {"MCP_MODE": "http", "FILESYSTEM_ROOT": "/workspace"}
