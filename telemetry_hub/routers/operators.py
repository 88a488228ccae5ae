"""
Operators Router

Handles operator commands:
- Targeted commands (parameters carry node_id)
- Broadcast commands (every node that has uploaded at least once)
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ..dependencies.auth import Role, require_api_key
from ..dependencies.services import get_command_dispatcher
from ..services import CommandDispatcher

router = APIRouter()


# ============================================
# SCHEMAS
# ============================================

class CommandRequest(BaseModel):
    """Operator command request."""
    command: str
    parameters: Optional[dict[str, Any]] = None


# ============================================
# ENDPOINTS
# ============================================

@router.post(
    "/command",
    response_class=PlainTextResponse,
    dependencies=[Depends(require_api_key(Role.OPERATOR))],
)
def submit_command(
    request: CommandRequest,
    dispatcher: CommandDispatcher = Depends(get_command_dispatcher),
):
    """
    Queue a command for one probe or for the whole fleet.

    set_update_interval also moves the hub's tracked maximum upload
    interval, which sizes the export safety window.
    """
    dispatcher.submit(request.command, request.parameters)
    return PlainTextResponse("OK")
