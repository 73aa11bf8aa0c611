"""Managed service data models."""

# Standard library imports
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

# Third-party imports
from pydantic import BaseModel, Field, computed_field


class ServiceType(str, Enum):
    """Kinds of managed service."""

    FILESYSTEM = "filesystem"
    DOCKER = "docker"
    SHELL = "shell"
    CUSTOM = "custom"


class ServiceStatus(str, Enum):
    """Managed service status enumeration."""

    CREATING = "creating"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


class DockerPermission(str, Enum):
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"


class ConnectionType(str, Enum):
    """How a client talks to a running service."""

    STDIO = "stdio"
    HTTP = "http"
    WEBSOCKET = "websocket"


class FilesystemOptions(BaseModel):
    """Filesystem service options."""

    root_path: str = Field(..., description="Host directory mounted at /workspace")
    read_only: bool = Field(default=False)
    allowed_dirs: List[str] = Field(default_factory=list)


class DockerOptions(BaseModel):
    """Docker service options."""

    socket_path: str = Field(default="/var/run/docker.sock")
    api_version: Optional[str] = Field(default=None)
    permissions: DockerPermission = Field(default=DockerPermission.READ)


class ShellOptions(BaseModel):
    """Shell service options."""

    shell: str = Field(default="/bin/sh")
    working_dir: Optional[str] = Field(default=None)
    allowed_cmds: List[str] = Field(default_factory=list)
    blocked_cmds: List[str] = Field(default_factory=list)


class CustomOptions(BaseModel):
    """Custom service options."""

    extra_volumes: Dict[str, str] = Field(default_factory=dict)
    git_repo: Optional[str] = Field(default=None)
    build_cmd: Optional[str] = Field(default=None)
    run_cmd: Optional[str] = Field(default=None)


class _ServiceConfigBase(BaseModel):
    image: str = Field(..., min_length=1, description="Container image reference")
    command: List[str] = Field(default_factory=list, description="Container command")
    env: Dict[str, str] = Field(default_factory=dict, description="Environment variables")
    volumes: Dict[str, str] = Field(
        default_factory=dict, description="Host path to container path mounts"
    )

    @property
    def mcp_mode(self) -> str:
        return self.env.get("MCP_MODE", ConnectionType.STDIO.value)

    @property
    def publishes_port(self) -> bool:
        """Only an explicit MCP_MODE=stdio keeps the service port unpublished."""
        return self.env.get("MCP_MODE") != ConnectionType.STDIO.value


class FilesystemServiceConfig(_ServiceConfigBase):
    type: Literal["filesystem"] = "filesystem"
    filesystem: Optional[FilesystemOptions] = None


class DockerServiceConfig(_ServiceConfigBase):
    type: Literal["docker"] = "docker"
    docker: Optional[DockerOptions] = None


class ShellServiceConfig(_ServiceConfigBase):
    type: Literal["shell"] = "shell"
    shell: Optional[ShellOptions] = None


class CustomServiceConfig(_ServiceConfigBase):
    type: Literal["custom"] = "custom"
    custom: Optional[CustomOptions] = None


ServiceConfig = Annotated[
    Union[
        FilesystemServiceConfig,
        DockerServiceConfig,
        ShellServiceConfig,
        CustomServiceConfig,
    ],
    Field(discriminator="type"),
]


class ServiceCreate(BaseModel):
    """Request model for creating a managed service."""

    name: str = Field(..., min_length=1, max_length=128, description="Display name")
    config: ServiceConfig


class ManagedService(BaseModel):
    """A containerized service deployed to a remote Docker host."""

    id: str = Field(..., description="Unique service identifier")
    name: str = Field(..., description="Display name")
    status: ServiceStatus = Field(default=ServiceStatus.CREATING)
    remote_handle: Optional[str] = Field(
        default=None, description="Container id reported by docker run"
    )
    port: int = Field(..., ge=1, le=65535)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    config: ServiceConfig

    @computed_field
    @property
    def type(self) -> ServiceType:
        return ServiceType(self.config.type)

    @property
    def publishes_port(self) -> bool:
        return self.config.publishes_port


class LogEntry(BaseModel):
    """A chunk of service log output."""

    timestamp: datetime
    level: str = "info"
    message: str
    service_id: str


class ConnectionInfo(BaseModel):
    """How a client should connect to a running service."""

    service_id: str
    name: str
    type: ServiceType
    status: ServiceStatus
    connection_type: str
    endpoint: Optional[str] = None
    remote_handle: Optional[str] = None
    environment: Dict[str, str] = Field(default_factory=dict)
    capabilities: List[str] = Field(default_factory=list)
    instructions: str = ""
