"""Configuration management for docker-remote.

This module provides a unified Settings class with flat fields (one per
environment variable) and grouped views for the components that consume
them.

Usage:
    from docker_remote.config import Settings

    settings = Settings()

    # Grouped access
    settings.ssh.connect_timeout
    settings.services.base_port

    # Flat access
    settings.ssh_connect_timeout
    settings.services_base_port
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .api import APIConfig
from .logging import LoggingConfig
from .services import ServicesConfig
from .ssh import SSHConfig


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # API Configuration
    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=8000, ge=1, le=65535)
    api_debug: bool = Field(default=False)
    api_reload: bool = Field(default=False)
    enable_docs: bool = Field(default=True)

    # SSH Configuration
    ssh_binary: str = Field(default="ssh")
    ssh_control_dir: Path = Field(default=Path("/tmp/docker-remote-ssh"))
    ssh_connect_timeout: int = Field(default=10, ge=1, le=120)
    ssh_probe_timeout: int = Field(default=5, ge=1, le=60)
    ssh_close_timeout: int = Field(default=5, ge=1, le=60)
    ssh_server_alive_interval: int = Field(default=30, ge=1, le=600)
    ssh_server_alive_count_max: int = Field(default=10, ge=1, le=100)
    ssh_control_persist: int = Field(default=300, ge=0)
    ssh_settle_delay: float = Field(default=1.0, ge=0.0, le=30.0)
    ssh_strict_host_key_checking: Literal["yes", "no", "accept-new"] = Field(default="accept-new")
    ssh_known_hosts_file: Path = Field(default=Path.home() / ".docker-remote" / "known_hosts")

    # Idle connection reclamation
    idle_check_interval_minutes: int = Field(default=10, ge=1, le=1440)
    idle_timeout_minutes: int = Field(default=120, ge=1, le=10080)

    # Managed services
    services_data_file: Path = Field(default=Path.home() / ".docker-remote" / "mcp-servers.json")
    services_base_port: int = Field(default=9000, ge=1024, le=65535)
    max_concurrent_deployments: int = Field(default=4, ge=1, le=64)
    service_label_prefix: str = Field(default="mcp.server")
    default_log_lines: int = Field(default=100, ge=1, le=10000)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")
    log_file: str | None = Field(default=None)
    log_max_size_mb: int = Field(default=100, ge=1)
    log_backup_count: int = Field(default=5, ge=1)
    enable_access_logs: bool = Field(default=True)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Normalise and check the log level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("service_label_prefix")
    @classmethod
    def validate_label_prefix(cls, v):
        """Docker label keys may not be empty or contain whitespace."""
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("service_label_prefix must be a non-empty token")
        return v.rstrip(".")

    # ========================================================================
    # GROUPED CONFIG ACCESS
    # ========================================================================

    @property
    def api(self) -> APIConfig:
        """Access API configuration group."""
        return APIConfig(
            api_host=self.api_host,
            api_port=self.api_port,
            api_debug=self.api_debug,
            api_reload=self.api_reload,
            enable_docs=self.enable_docs,
        )

    @property
    def ssh(self) -> SSHConfig:
        """Access SSH configuration group."""
        return SSHConfig(
            ssh_binary=self.ssh_binary,
            ssh_control_dir=self.ssh_control_dir,
            ssh_connect_timeout=self.ssh_connect_timeout,
            ssh_probe_timeout=self.ssh_probe_timeout,
            ssh_close_timeout=self.ssh_close_timeout,
            ssh_server_alive_interval=self.ssh_server_alive_interval,
            ssh_server_alive_count_max=self.ssh_server_alive_count_max,
            ssh_control_persist=self.ssh_control_persist,
            ssh_settle_delay=self.ssh_settle_delay,
            ssh_strict_host_key_checking=self.ssh_strict_host_key_checking,
            ssh_known_hosts_file=self.ssh_known_hosts_file,
            idle_check_interval_minutes=self.idle_check_interval_minutes,
            idle_timeout_minutes=self.idle_timeout_minutes,
        )

    @property
    def services(self) -> ServicesConfig:
        """Access managed services configuration group."""
        return ServicesConfig(
            services_data_file=self.services_data_file,
            services_base_port=self.services_base_port,
            max_concurrent_deployments=self.max_concurrent_deployments,
            service_label_prefix=self.service_label_prefix,
            default_log_lines=self.default_log_lines,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
            log_file=self.log_file,
            log_max_size_mb=self.log_max_size_mb,
            log_backup_count=self.log_backup_count,
            enable_access_logs=self.enable_access_logs,
        )


# Default settings instance, used by main.py to compose the application
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    "APIConfig",
    "SSHConfig",
    "ServicesConfig",
    "LoggingConfig",
]
