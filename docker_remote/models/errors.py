"""Error models and exception classes for docker-remote."""

import time
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class ErrorType(str, Enum):
    """Error type enumeration."""

    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    RESOURCE_CONFLICT = "resource_conflict"
    CONNECTIVITY = "connectivity"
    REMOTE_COMMAND = "remote_command"
    PERSISTENCE = "persistence"
    INTERNAL_SERVER = "internal_server"


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: Optional[str] = Field(None, description="Field name for validation errors")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")


class ErrorResponse(BaseModel):
    """Standardized error response model."""

    model_config = ConfigDict(use_enum_values=True)

    error: str = Field(..., description="Main error message")
    error_type: ErrorType = Field(..., description="Error category")
    details: Optional[List[ErrorDetail]] = Field(
        None, description="Additional error details"
    )
    request_id: Optional[str] = Field(
        None, description="Request identifier for tracking"
    )
    timestamp: float = Field(default_factory=time.time, description="Error timestamp")


# Custom Exception Classes


class DockerRemoteException(Exception):
    """Base exception for docker-remote."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.INTERNAL_SERVER,
        status_code: int = 500,
        details: Optional[List[ErrorDetail]] = None,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or []
        self.request_id = request_id
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.message,
            error_type=self.error_type,
            details=self.details if self.details else None,
            request_id=self.request_id,
        )


class ValidationError(DockerRemoteException):
    """Request validation errors."""

    def __init__(self, message: str = "Validation failed", **kwargs):
        super().__init__(
            message=message, error_type=ErrorType.VALIDATION, status_code=400, **kwargs
        )


class ServiceNotFoundError(DockerRemoteException):
    """A managed service id is not in the index."""

    def __init__(self, service_id: str, **kwargs):
        self.service_id = service_id
        super().__init__(
            message=f"Service not found: {service_id}",
            error_type=ErrorType.RESOURCE_NOT_FOUND,
            status_code=404,
            **kwargs,
        )


class InvalidServiceStateError(DockerRemoteException):
    """The requested operation is not allowed from the service's current status."""

    def __init__(self, service_id: str, status: str, operation: str, **kwargs):
        self.service_id = service_id
        self.status = status
        self.operation = operation
        super().__init__(
            message=f"Cannot {operation} service {service_id} while it is {status}",
            error_type=ErrorType.RESOURCE_CONFLICT,
            status_code=409,
            **kwargs,
        )


class ConnectivityError(DockerRemoteException):
    """SSH session could not be established or used.

    Covers unreachable hosts, authentication or host-key rejection, failed
    liveness probes and a missing (user, host) binding.
    """

    def __init__(self, message: str, target: Optional[str] = None, output: str = "", **kwargs):
        self.target = target
        self.output = output
        if target:
            message = f"{message} ({target})"
        super().__init__(
            message=message,
            error_type=ErrorType.CONNECTIVITY,
            status_code=502,
            **kwargs,
        )


class RemoteCommandError(DockerRemoteException):
    """A remote command ran but exited non-zero."""

    def __init__(self, command: str, exit_code: int, output: str = "", **kwargs):
        self.command = command
        self.exit_code = exit_code
        self.output = output
        message = f"Remote command exited with status {exit_code}"
        if output.strip():
            message += f": {output.strip()[:500]}"
        super().__init__(
            message=message,
            error_type=ErrorType.REMOTE_COMMAND,
            status_code=502,
            details=[ErrorDetail(message=output[-2000:], code=str(exit_code))] if output else None,
            **kwargs,
        )


class PersistenceError(DockerRemoteException):
    """Snapshot read or write failed."""

    def __init__(self, path: str, message: str, **kwargs):
        self.path = path
        super().__init__(
            message=f"Snapshot {path}: {message}",
            error_type=ErrorType.PERSISTENCE,
            status_code=500,
            **kwargs,
        )
