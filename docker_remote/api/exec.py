"""Ad-hoc remote command endpoint."""

import structlog
from fastapi import APIRouter

from ..dependencies.services import CommandExecutorDep, OptionalSSHTargetDep
from ..models.api import ExecRequest, ExecResponse
from ..models.connection import ConnectionKey
from ..models.errors import RemoteCommandError
from ..utils.error_handlers import create_validation_error

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/exec", response_model=ExecResponse)
async def execute_command(
    request: ExecRequest,
    executor: CommandExecutorDep,
    header_target: OptionalSSHTargetDep,
):
    """Run one command on the remote host through its pooled session.

    A non-zero exit status is reported in the response body; only SSH
    failures produce an error response.
    """
    if request.target:
        key = ConnectionKey.parse(request.target)
    elif header_target is not None:
        key = header_target
    else:
        raise create_validation_error("target", "Provide target or X-SSH-Target header")

    try:
        output = await executor.execute_text(key, request.command)
    except RemoteCommandError as e:
        return ExecResponse(target=key.target, output=e.output, exit_code=e.exit_code)

    return ExecResponse(target=key.target, output=output, exit_code=0)
