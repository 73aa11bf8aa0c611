"""Unit tests for connection and service models."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from docker_remote.models.connection import Connection, ConnectionKey
from docker_remote.models.errors import ValidationError
from docker_remote.models.service import (
    CustomServiceConfig,
    ManagedService,
    ServiceConfig,
    ServiceCreate,
    ServiceType,
    ShellServiceConfig,
)


class TestConnectionKey:
    """Tests for ConnectionKey validation."""

    @pytest.mark.parametrize(
        "username,hostname",
        [
            ("deploy", "docker-01.example.com"),
            ("ci_bot.2", "10.0.0.7"),
            ("a", "h"),
        ],
    )
    def test_valid(self, username, hostname):
        key = ConnectionKey(username=username, hostname=hostname)

        assert key.target == f"{username}@{hostname}"
        assert str(key) == key.target

    @pytest.mark.parametrize(
        "username,hostname",
        [
            ("", "host"),
            ("user", ""),
            ("-flag", "host"),
            ("user", "-oProxyCommand=evil"),
            ("us er", "host"),
            ("user", "host;rm"),
            ("u" * 33, "host"),
            ("user", "h" * 256),
        ],
    )
    def test_invalid(self, username, hostname):
        with pytest.raises(ValidationError) as exc_info:
            ConnectionKey(username=username, hostname=hostname)

        assert exc_info.value.status_code == 400

    def test_parse(self):
        assert ConnectionKey.parse(" deploy@docker-01 ") == ConnectionKey("deploy", "docker-01")

    @pytest.mark.parametrize("target", ["", "docker-01", "@docker-01", "deploy@"])
    def test_parse_invalid(self, target):
        with pytest.raises(ValidationError):
            ConnectionKey.parse(target)

    def test_hashable_and_equal_by_value(self):
        assert {ConnectionKey("a", "h"), ConnectionKey("a", "h")} == {ConnectionKey("a", "h")}


class TestConnection:
    """Tests for the pooled Connection record."""

    def test_idle_for_and_touch(self):
        conn = Connection(key=ConnectionKey("a", "h"), control_path=Path("/tmp/s.sock"))
        now = datetime.now(timezone.utc)
        conn.last_used_at = now - timedelta(seconds=90)

        assert conn.idle_for(now) == pytest.approx(90)

        conn.touch()
        assert conn.idle_for() < 5


class TestServiceConfig:
    """Tests for the tagged service configuration union."""

    def test_discriminates_on_type(self):
        adapter = TypeAdapter(ServiceConfig)

        config = adapter.validate_python(
            {"type": "shell", "image": "mcp/shell", "shell": {"working_dir": "/srv"}}
        )

        assert isinstance(config, ShellServiceConfig)
        assert config.shell.working_dir == "/srv"

    def test_unknown_type_rejected(self):
        with pytest.raises(PydanticValidationError):
            ServiceCreate.model_validate({"name": "x", "config": {"type": "ftp", "image": "x"}})

    def test_image_required(self):
        with pytest.raises(PydanticValidationError):
            ServiceCreate.model_validate({"name": "x", "config": {"type": "custom", "image": ""}})

    def test_mcp_mode_defaults_to_stdio(self):
        config = CustomServiceConfig(image="acme/tool")

        assert config.mcp_mode == "stdio"
        assert config.publishes_port is True

    def test_explicit_stdio_does_not_publish(self):
        config = CustomServiceConfig(image="acme/tool", env={"MCP_MODE": "stdio"})

        assert config.publishes_port is False


class TestManagedService:
    """Tests for ManagedService."""

    def test_type_follows_config(self):
        service = ManagedService(
            id="mcp-custom-1-1", name="tool", port=9000, config=CustomServiceConfig(image="x")
        )

        assert service.type == ServiceType.CUSTOM
        assert service.model_dump(mode="json")["type"] == "custom"

    def test_port_range(self):
        with pytest.raises(PydanticValidationError):
            ManagedService(id="x", name="x", port=70000, config=CustomServiceConfig(image="x"))
