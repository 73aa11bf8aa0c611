"""Docker CLI command lines for managed services.

Everything here is pure: a ManagedService goes in, a shell command string
for the remote host comes out. Values are quoted with shlex so names, env
values and paths reach docker as single arguments.
"""

import shlex
from typing import List, assert_never

from ...models.service import (
    ConnectionInfo,
    ConnectionType,
    CustomServiceConfig,
    DockerServiceConfig,
    FilesystemServiceConfig,
    ManagedService,
    ShellServiceConfig,
)

# Environment keys safe to hand back to clients in connection info
EXPOSED_ENV_KEYS = ("MCP_MODE", "FILESYSTEM_ROOT", "MEMORY_STORE")

KEEPALIVE_COMMAND = ["tail", "-f", "/dev/null"]


def _flag(option: str, value: str) -> str:
    return f"{option} {shlex.quote(value)}"


def _type_specific_args(service: ManagedService) -> List[str]:
    config = service.config
    if isinstance(config, FilesystemServiceConfig):
        if config.filesystem is None:
            return []
        mount = f"{config.filesystem.root_path}:/workspace"
        if config.filesystem.read_only:
            mount += ":ro"
        return [_flag("-v", mount)]
    elif isinstance(config, DockerServiceConfig):
        if config.docker is None:
            return []
        return [_flag("-v", f"{config.docker.socket_path}:/var/run/docker.sock")]
    elif isinstance(config, ShellServiceConfig):
        if config.shell is None or not config.shell.working_dir:
            return []
        return [_flag("-w", config.shell.working_dir)]
    elif isinstance(config, CustomServiceConfig):
        if config.custom is None:
            return []
        return [_flag("-v", f"{src}:{dst}") for src, dst in config.custom.extra_volumes.items()]
    else:
        assert_never(config)


def build_run_command(service: ManagedService, label_prefix: str = "mcp.server") -> str:
    """``docker run -d`` for a new service container named after its id."""
    config = service.config
    parts = [
        "docker run -d",
        _flag("--name", service.id),
        "--restart unless-stopped",
        _flag("-l", f"{label_prefix}.id={service.id}"),
        _flag("-l", f"{label_prefix}.name={service.name}"),
        _flag("-l", f"{label_prefix}.type={service.type.value}"),
    ]

    if config.publishes_port:
        parts.append(f"-p {service.port}:{service.port}")

    parts.extend(_flag("-e", f"{k}={v}") for k, v in config.env.items())
    parts.extend(_flag("-v", f"{src}:{dst}") for src, dst in config.volumes.items())
    parts.extend(_type_specific_args(service))

    parts.append(shlex.quote(config.image))

    command = config.command
    if not command and not config.publishes_port:
        # stdio services are driven with docker exec; keep PID 1 alive
        command = KEEPALIVE_COMMAND
    parts.extend(shlex.quote(arg) for arg in command)

    return " ".join(parts)


def start_command(handle: str) -> str:
    return f"docker start {shlex.quote(handle)}"


def stop_command(handle: str) -> str:
    return f"docker stop {shlex.quote(handle)}"


def remove_command(handle: str) -> str:
    return f"docker rm -f {shlex.quote(handle)}"


def logs_command(handle: str, lines: int) -> str:
    return f"docker logs --tail {int(lines)} --timestamps {shlex.quote(handle)}"


def parse_remote_handle(output: str) -> str:
    """Container id from ``docker run -d`` output.

    Image pull progress can precede the id, so take the last non-empty line.
    """
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    return lines[-1] if lines else ""


def capabilities_for(service: ManagedService) -> List[str]:
    config = service.config
    if isinstance(config, FilesystemServiceConfig):
        return ["read_file", "write_file", "list_directory", "search_files"]
    elif isinstance(config, DockerServiceConfig):
        return [
            "list_containers",
            "start_container",
            "stop_container",
            "exec_command",
            "container_logs",
            "list_images",
        ]
    elif isinstance(config, ShellServiceConfig):
        return ["execute_command", "execute_script", "get_environment", "get_working_directory"]
    elif isinstance(config, CustomServiceConfig):
        return ["unknown"]
    else:
        assert_never(config)


def build_connection_info(service: ManagedService) -> ConnectionInfo:
    """Client connection details for a running service."""
    connection_type = service.config.mcp_mode
    handle = service.remote_handle or service.id
    endpoint = None

    if connection_type == ConnectionType.STDIO.value:
        instructions = (
            "To connect via stdio:\n"
            f"docker exec -i {handle} node index.js\n\n"
            "MCP client configuration:\n"
            "{\n"
            '  "mcpServers": {\n'
            f'    "{service.name}": {{\n'
            '      "command": "docker",\n'
            f'      "args": ["exec", "-i", "{handle}", "node", "index.js"]\n'
            "    }\n"
            "  }\n"
            "}"
        )
    elif connection_type == ConnectionType.HTTP.value:
        endpoint = f"http://localhost:{service.port}"
        instructions = (
            f"HTTP endpoint: {endpoint}\n\n"
            "MCP client configuration:\n"
            "{\n"
            '  "mcpServers": {\n'
            f'    "{service.name}": {{\n'
            f'      "url": "{endpoint}"\n'
            "    }\n"
            "  }\n"
            "}"
        )
    elif connection_type == ConnectionType.WEBSOCKET.value:
        endpoint = f"ws://localhost:{service.port}"
        instructions = (
            f"WebSocket endpoint: {endpoint}\n\n"
            "MCP client configuration:\n"
            "{\n"
            '  "mcpServers": {\n'
            f'    "{service.name}": {{\n'
            f'      "url": "{endpoint}",\n'
            '      "transport": "websocket"\n'
            "    }\n"
            "  }\n"
            "}"
        )
    else:
        instructions = f"Unsupported MCP_MODE: {connection_type}"

    return ConnectionInfo(
        service_id=service.id,
        name=service.name,
        type=service.type,
        status=service.status,
        connection_type=connection_type,
        endpoint=endpoint,
        remote_handle=service.remote_handle,
        environment={k: v for k, v in service.config.env.items() if k in EXPOSED_ENV_KEYS},
        capabilities=capabilities_for(service),
        instructions=instructions,
    )
