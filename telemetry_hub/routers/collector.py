"""
Collector Router

Handles log export for the downstream collector:
- Cursor-based pagination by item_id
- Only logs old enough that no slower probe can still insert older ones
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..dependencies.auth import Role, require_api_key
from ..dependencies.services import get_export_cursor
from ..services import ExportCursor

router = APIRouter()


# ============================================
# SCHEMAS
# ============================================

class DownloadLogEntry(BaseModel):
    """Exported log line; item_id is the resume cursor"""
    item_id: int
    timestamp: str
    node_id: int
    message: str


class DownloadResponse(BaseModel):
    """Page of exported logs"""
    logs: list[DownloadLogEntry]


# ============================================
# ENDPOINTS
# ============================================

@router.get(
    "/download",
    response_model=DownloadResponse,
    dependencies=[Depends(require_api_key(Role.COLLECTOR))],
)
def download_logs(
    last_log_message_id: int = Query(
        ..., description="Largest item_id already received (0 to start)"
    ),
    cursor: ExportCursor = Depends(get_export_cursor),
):
    """
    Export logs newer than the collector's cursor.

    Returns up to one page ordered by (timestamp, item_id). A negative,
    oversized or non-integer cursor is rejected with 400.
    """
    logs = cursor.export(last_log_message_id)
    return DownloadResponse(
        logs=[DownloadLogEntry(**log.to_dict()) for log in logs]
    )
