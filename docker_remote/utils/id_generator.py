"""ID generation utilities."""

import itertools
import secrets
import string
import time
from typing import Optional

_service_sequence = itertools.count(1)


def generate_nanoid(length: int = 21) -> str:
    """Generate a nanoid-style ID.

    Args:
        length: Length of the ID to generate

    Returns:
        A string ID matching /^[A-Za-z0-9_-]{length}$/
    """
    alphabet = string.ascii_letters + string.digits + "_-"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_service_id(service_type: str, now: Optional[float] = None) -> str:
    """Generate a managed service ID of the form ``mcp-<type>-<unix>-<seq>``.

    The process-wide sequence keeps IDs unique when several services of the
    same type are created within one second. The ID doubles as the remote
    container name, so it only uses characters docker accepts there.
    """
    timestamp = int(now if now is not None else time.time())
    return f"mcp-{service_type}-{timestamp}-{next(_service_sequence)}"


def generate_socket_token(length: int = 8) -> str:
    """Short random suffix that keeps control socket paths fresh per session."""
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_request_id() -> str:
    """Generate a request ID for error tracking."""
    return generate_nanoid(21)
