"""Request and response models for the HTTP boundary."""

# Standard library imports
from datetime import datetime
from typing import List, Optional

# Third-party imports
from pydantic import BaseModel, Field


class ConnectionRequest(BaseModel):
    """Open or close a pooled session."""

    username: str = Field(..., description="SSH user on the remote host")
    hostname: str = Field(..., description="Remote Docker host")


class ConnectionStatusResponse(BaseModel):
    target: str
    active: bool
    checked_at: datetime


class ActiveConnectionsResponse(BaseModel):
    connections: List[str] = Field(default_factory=list)
    count: int = 0


class ExecRequest(BaseModel):
    """Request model for /exec: one ad-hoc remote command."""

    command: str = Field(..., min_length=1, description="Command line run by the remote shell")
    target: Optional[str] = Field(
        default=None, description="user@host; falls back to the X-SSH-Target header"
    )


class ExecResponse(BaseModel):
    target: str
    output: str = ""
    exit_code: int = 0
