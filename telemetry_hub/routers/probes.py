"""
Probes Router

Handles the probe exchange:
- Receiving log lines from probe nodes
- Returning commands queued for the uploading node
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..dependencies.auth import Role, get_node_id, require_api_key
from ..dependencies.services import get_ingestion_service
from ..services import IngestionService

router = APIRouter()


# ============================================
# SCHEMAS
# ============================================

class LogEntry(BaseModel):
    """Single log line from a probe; timestamp is kept verbatim"""
    timestamp: str
    message: str


class ProbeUploadRequest(BaseModel):
    """Batch of log lines; empty for a heartbeat-only call"""
    logs: list[LogEntry]


# ============================================
# ENDPOINTS
# ============================================

@router.post("/update", dependencies=[Depends(require_api_key(Role.PROBE))])
def upload_logs(
    upload: ProbeUploadRequest,
    node_id: int = Depends(get_node_id),
    ingestion: IngestionService = Depends(get_ingestion_service),
) -> list[dict]:
    """
    Receive a batch of log lines from a probe node.

    Called periodically by every probe. The response is the list of
    commands queued for the node since its last upload; each is delivered
    once and then removed.
    """
    commands = ingestion.upload(
        node_id,
        ((entry.timestamp, entry.message) for entry in upload.logs),
    )
    return [command.to_dict() for command in commands]
