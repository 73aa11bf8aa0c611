"""Data models for docker-remote."""

from .connection import Connection, ConnectionKey, SessionHandle
from .service import (
    ConnectionInfo,
    ConnectionType,
    CustomOptions,
    CustomServiceConfig,
    DockerOptions,
    DockerPermission,
    DockerServiceConfig,
    FilesystemOptions,
    FilesystemServiceConfig,
    LogEntry,
    ManagedService,
    ServiceConfig,
    ServiceCreate,
    ServiceStatus,
    ServiceType,
    ShellOptions,
    ShellServiceConfig,
)
from .api import (
    ActiveConnectionsResponse,
    ConnectionRequest,
    ConnectionStatusResponse,
    ExecRequest,
    ExecResponse,
)
from .errors import (
    ErrorType,
    ErrorDetail,
    ErrorResponse,
    DockerRemoteException,
    ValidationError,
    ServiceNotFoundError,
    InvalidServiceStateError,
    ConnectivityError,
    RemoteCommandError,
    PersistenceError,
)

__all__ = [
    # Connection models
    "Connection",
    "ConnectionKey",
    "SessionHandle",
    # Service models
    "ConnectionInfo",
    "ConnectionType",
    "CustomOptions",
    "CustomServiceConfig",
    "DockerOptions",
    "DockerPermission",
    "DockerServiceConfig",
    "FilesystemOptions",
    "FilesystemServiceConfig",
    "LogEntry",
    "ManagedService",
    "ServiceConfig",
    "ServiceCreate",
    "ServiceStatus",
    "ServiceType",
    "ShellOptions",
    "ShellServiceConfig",
    # API models
    "ActiveConnectionsResponse",
    "ConnectionRequest",
    "ConnectionStatusResponse",
    "ExecRequest",
    "ExecResponse",
    # Error models
    "ErrorType",
    "ErrorDetail",
    "ErrorResponse",
    "DockerRemoteException",
    "ValidationError",
    "ServiceNotFoundError",
    "InvalidServiceStateError",
    "ConnectivityError",
    "RemoteCommandError",
    "PersistenceError",
]
