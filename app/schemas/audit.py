from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

AuditSource = Literal["agent", "chat", "api"]
AuditStatus = Literal["success", "error"]


class AuditLogResponse(BaseModel):
    """One mutating tool call, as written by the tool executor."""

    id: str
    tool_name: str
    description: str
    status: AuditStatus
    source: AuditSource
    conversation_id: str | None = None
    request_payload: dict[str, Any] | None = None
    response_payload: dict[str, Any] | None = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    items: list[AuditLogResponse]
    next_cursor: str | None = None
