"""Dependencies package for docker-remote."""

from .services import (
    get_connection_pool,
    get_command_executor,
    get_remote_adapter,
    get_lifecycle_manager,
    get_ssh_target,
    require_ssh_target,
    ConnectionPoolDep,
    CommandExecutorDep,
    RemoteAdapterDep,
    LifecycleManagerDep,
    SSHTargetDep,
    OptionalSSHTargetDep,
)

__all__ = [
    "get_connection_pool",
    "get_command_executor",
    "get_remote_adapter",
    "get_lifecycle_manager",
    "get_ssh_target",
    "require_ssh_target",
    "ConnectionPoolDep",
    "CommandExecutorDep",
    "RemoteAdapterDep",
    "LifecycleManagerDep",
    "SSHTargetDep",
    "OptionalSSHTargetDep",
]
