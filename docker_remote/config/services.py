"""Managed service lifecycle configuration."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class ServicesConfig(BaseSettings):
    """Settings for the managed service lifecycle manager."""

    data_file: Path = Field(
        default=Path.home() / ".docker-remote" / "mcp-servers.json",
        alias="services_data_file",
    )
    base_port: int = Field(default=9000, ge=1024, le=65535, alias="services_base_port")
    max_concurrent_deployments: int = Field(default=4, ge=1, le=64)
    label_prefix: str = Field(default="mcp.server", alias="service_label_prefix")
    default_log_lines: int = Field(default=100, ge=1, le=10000)

    class Config:
        env_prefix = ""
        extra = "ignore"
