from fastapi import APIRouter, Depends, Query
from supabase import Client

from app.crud.audit import get_audit_log
from app.db.base import get_supabase
from app.schemas.audit import AuditLogListResponse

router = APIRouter(prefix="/v1.0/audit", tags=["audit"])


@router.get("", response_model=AuditLogListResponse)
async def list_audit_log(
    tool_name: str | None = Query(None, description="Filter by tool name, e.g. updateRoomRates"),
    limit: int = Query(50, ge=1, le=100),
    cursor: str | None = None,
    client: Client = Depends(get_supabase),
):
    """Recent mutating tool calls, newest first."""
    rows, next_cursor = await get_audit_log(
        client,
        tool_name=tool_name.strip() if tool_name else None,
        limit=limit,
        cursor=cursor,
    )
    return AuditLogListResponse(items=rows, next_cursor=next_cursor)
