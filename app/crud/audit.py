from __future__ import annotations

import base64
import json
import logging

from supabase import Client

from app.db.base import execute

logger = logging.getLogger(__name__)


async def get_audit_log(
    client: Client,
    tool_name: str | None = None,
    limit: int = 50,
    cursor: str | None = None,
) -> tuple[list[dict], str | None]:
    query = (
        client.table("audit_log")
        .select("*")
        .order("created_at", desc=True)
    )
    if tool_name:
        query = query.eq("tool_name", tool_name)
    if cursor:
        decoded = json.loads(base64.b64decode(cursor))
        query = query.lt("created_at", decoded["created_at"])

    response = await execute(query.limit(limit + 1))
    rows = response.data or []

    next_cursor = None
    if len(rows) > limit:
        rows = rows[:limit]
        last = rows[-1]
        next_cursor = base64.b64encode(
            json.dumps({"created_at": last["created_at"], "id": last["id"]}).encode()
        ).decode()

    return rows, next_cursor


async def log_tool_call(
    client: Client,
    tool_name: str,
    description: str,
    status: str,
    conversation_id: str | None = None,
    source: str = "agent",
    request_payload: dict | None = None,
    response_payload: dict | None = None,
) -> None:
    """Log a tool call to the audit_log table."""
    try:
        await execute(
            client.table("audit_log").insert(
                {
                    "conversation_id": conversation_id,
                    "source": source,
                    "tool_name": tool_name,
                    "description": description,
                    "status": status,
                    "request_payload": request_payload,
                    "response_payload": response_payload,
                }
            )
        )
    except Exception as e:
        logger.warning(f"Failed to log tool call: {e}")
