"""Service dependency injection for docker-remote.

Instances are composed once in the application lifespan and stored on
``app.state``; these dependencies hand them to route handlers.
"""

# Standard library imports
from typing import Annotated, Optional

# Third-party imports
from fastapi import Depends, Header, Request

# Local application imports
from ..models.connection import ConnectionKey
from ..services.lifecycle import ServiceLifecycleManager
from ..services.remote import CommandExecutor, ConnectionPool, RemoteExecutionAdapter
from ..utils.error_handlers import create_validation_error


def get_connection_pool(request: Request) -> ConnectionPool:
    return request.app.state.pool


def get_command_executor(request: Request) -> CommandExecutor:
    return request.app.state.executor


def get_remote_adapter(request: Request) -> RemoteExecutionAdapter:
    return request.app.state.adapter


def get_lifecycle_manager(request: Request) -> ServiceLifecycleManager:
    return request.app.state.manager


def get_ssh_target(
    x_ssh_target: Annotated[Optional[str], Header(alias="X-SSH-Target")] = None,
) -> Optional[ConnectionKey]:
    """Parse the ``X-SSH-Target: user@host`` header, if present."""
    if not x_ssh_target:
        return None
    return ConnectionKey.parse(x_ssh_target)


def require_ssh_target(
    target: Annotated[Optional[ConnectionKey], Depends(get_ssh_target)],
) -> ConnectionKey:
    if target is None:
        raise create_validation_error("X-SSH-Target", "Header is required (user@host)")
    return target


# Type aliases for dependency injection
ConnectionPoolDep = Annotated[ConnectionPool, Depends(get_connection_pool)]
CommandExecutorDep = Annotated[CommandExecutor, Depends(get_command_executor)]
RemoteAdapterDep = Annotated[RemoteExecutionAdapter, Depends(get_remote_adapter)]
LifecycleManagerDep = Annotated[ServiceLifecycleManager, Depends(get_lifecycle_manager)]
SSHTargetDep = Annotated[ConnectionKey, Depends(require_ssh_target)]
OptionalSSHTargetDep = Annotated[Optional[ConnectionKey], Depends(get_ssh_target)]
