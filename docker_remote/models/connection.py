"""Connection pool data models.

A ConnectionKey names one (user, host) pair. The pool keeps at most one
active Connection per key; callers only ever see a SessionHandle.
"""

import asyncio
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .errors import ValidationError

_USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")
_HOSTNAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9.-]*$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ConnectionKey:
    """Identifies a pooled session: one per (username, hostname)."""

    username: str
    hostname: str

    def __post_init__(self):
        if not self.username:
            raise ValidationError("SSH username cannot be empty")
        if len(self.username) > 32 or not _USERNAME_PATTERN.match(self.username):
            raise ValidationError(f"Invalid SSH username: {self.username!r}")
        if not self.hostname:
            raise ValidationError("SSH hostname cannot be empty")
        if len(self.hostname) > 255 or not _HOSTNAME_PATTERN.match(self.hostname):
            raise ValidationError(f"Invalid SSH hostname: {self.hostname!r}")

    @classmethod
    def parse(cls, target: str) -> "ConnectionKey":
        """Build a key from a ``user@host`` target string."""
        username, sep, hostname = (target or "").strip().partition("@")
        if not sep:
            raise ValidationError(f"SSH target must look like user@host: {target!r}")
        return cls(username=username, hostname=hostname)

    @property
    def target(self) -> str:
        return f"{self.username}@{self.hostname}"

    def __str__(self) -> str:
        return self.target


@dataclass(frozen=True)
class SessionHandle:
    """What the pool hands out: enough to route a command through the master."""

    key: ConnectionKey
    control_path: Path


@dataclass
class Connection:
    """A pooled SSH master session. Mutated only under the pool lock."""

    key: ConnectionKey
    control_path: Path
    process: Optional[asyncio.subprocess.Process] = None
    last_used_at: datetime = field(default_factory=_utcnow)
    active: bool = True

    def touch(self) -> None:
        self.last_used_at = _utcnow()

    def idle_for(self, now: Optional[datetime] = None) -> float:
        """Seconds since the connection was last used."""
        return ((now or _utcnow()) - self.last_used_at).total_seconds()

    def handle(self) -> SessionHandle:
        return SessionHandle(key=self.key, control_path=self.control_path)
