"""SSH transport and connection pool configuration."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class SSHConfig(BaseSettings):
    """Settings for the pooled SSH master sessions.

    Keepalive values are fixed for the process lifetime; every master
    session and every command issued through it uses the same values.
    """

    binary: str = Field(default="ssh", alias="ssh_binary")
    control_dir: Path = Field(
        default=Path("/tmp/docker-remote-ssh"), alias="ssh_control_dir"
    )
    connect_timeout: int = Field(default=10, ge=1, le=120, alias="ssh_connect_timeout")
    probe_timeout: int = Field(default=5, ge=1, le=60, alias="ssh_probe_timeout")
    close_timeout: int = Field(default=5, ge=1, le=60, alias="ssh_close_timeout")
    server_alive_interval: int = Field(
        default=30, ge=1, le=600, alias="ssh_server_alive_interval"
    )
    server_alive_count_max: int = Field(
        default=10, ge=1, le=100, alias="ssh_server_alive_count_max"
    )
    control_persist: int = Field(default=300, ge=0, alias="ssh_control_persist")
    settle_delay: float = Field(default=1.0, ge=0.0, le=30.0, alias="ssh_settle_delay")
    strict_host_key_checking: str = Field(
        default="accept-new", alias="ssh_strict_host_key_checking"
    )
    known_hosts_file: Path = Field(
        default=Path.home() / ".docker-remote" / "known_hosts",
        alias="ssh_known_hosts_file",
    )

    # Idle connection reclamation
    idle_check_interval_minutes: int = Field(default=10, ge=1, le=1440)
    idle_timeout_minutes: int = Field(default=120, ge=1, le=10080)

    class Config:
        env_prefix = ""
        extra = "ignore"
