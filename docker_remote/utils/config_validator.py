"""Configuration validation utilities."""

import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


class ConfigValidator:
    """Validates application configuration and the local ssh environment."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> bool:
        """Validate all configuration settings."""
        self.errors.clear()
        self.warnings.clear()

        self._validate_ssh_binary()
        self._validate_ssh_config()
        self._validate_idle_config()
        self._validate_data_file()

        if self.warnings:
            for warning in self.warnings:
                logger.warning(f"Configuration warning: {warning}")

        if self.errors:
            for error in self.errors:
                logger.error(f"Configuration error: {error}")
            return False

        return True

    def _validate_ssh_binary(self):
        """The ssh client must be on PATH (or an absolute executable path)."""
        if shutil.which(self.settings.ssh_binary) is None:
            self.errors.append(f"ssh client not found: {self.settings.ssh_binary}")

    def _validate_ssh_config(self):
        """Validate SSH session settings."""
        if self.settings.ssh_strict_host_key_checking == "no":
            self.warnings.append(
                "StrictHostKeyChecking=no accepts any host key - security risk"
            )

        # sun_path is 108 bytes on Linux; leave room for the socket file name
        if len(str(self.settings.ssh_control_dir)) > 60:
            self.warnings.append(
                f"SSH control directory path is long and may exceed the unix socket limit: "
                f"{self.settings.ssh_control_dir}"
            )

        if self.settings.ssh_probe_timeout > self.settings.ssh_connect_timeout:
            self.warnings.append("SSH probe timeout is longer than the connect timeout")

    def _validate_idle_config(self):
        """Validate idle connection reclamation settings."""
        if self.settings.idle_timeout_minutes <= self.settings.idle_check_interval_minutes:
            self.errors.append(
                "Idle timeout must be longer than the idle check interval"
            )

    def _validate_data_file(self):
        """The snapshot directory must exist (or be creatable) and be writable."""
        data_dir = Path(self.settings.services_data_file).expanduser().parent
        probe = data_dir
        while not probe.exists() and probe != probe.parent:
            probe = probe.parent

        if not os.access(probe, os.W_OK):
            self.errors.append(f"Service data directory is not writable: {data_dir}")
        elif not data_dir.exists():
            self.warnings.append(f"Service data directory will be created: {data_dir}")


def validate_configuration(settings: Optional[Settings] = None) -> bool:
    """Validate application configuration."""
    validator = ConfigValidator(settings)
    return validator.validate_all()


def get_configuration_summary(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Get a summary of current configuration for debugging."""
    settings = settings or default_settings
    return {
        "debug": settings.api_debug,
        "ssh_control_dir": str(settings.ssh_control_dir),
        "idle_timeout_minutes": settings.idle_timeout_minutes,
        "services_data_file": str(settings.services_data_file),
        "services_base_port": settings.services_base_port,
    }
