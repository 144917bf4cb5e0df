from __future__ import annotations

from datetime import datetime, timezone

from supabase import Client

from app.db.base import execute


async def create_chat(client: Client, title: str | None = None) -> dict:
    row = {
        "title": title or "New conversation",
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    response = await execute(client.table("chats").insert(row))
    return response.data[0]


async def get_chat(client: Client, chat_id: str) -> dict | None:
    response = await execute(
        client.table("chats")
        .select("*")
        .eq("id", chat_id)
    )
    return response.data[0] if response.data else None


async def create_message(
    client: Client,
    chat_id: str,
    role: str,
    content: str,
    tool_calls: list | None = None,
    metadata: dict | None = None,
) -> dict:
    row = {
        "chat_id": chat_id,
        "role": role,
        "content": content,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    if tool_calls:
        row["tool_calls"] = tool_calls
    if metadata:
        row["metadata"] = metadata

    response = await execute(client.table("chat_messages").insert(row))
    return response.data[0]


async def get_messages(
    client: Client, chat_id: str, limit: int = 50
) -> list[dict]:
    response = await execute(
        client.table("chat_messages")
        .select("*")
        .eq("chat_id", chat_id)
        .order("created_at")
        .limit(limit)
    )
    return response.data or []


async def update_chat_context(
    client: Client,
    chat_id: str,
    last_context: dict | None = None,
    last_response_id: str | None = None,
) -> bool:
    """Store the accumulated usage and the model response id the next turn continues from."""
    row: dict = {}
    if last_context is not None:
        row["last_context"] = last_context
    if last_response_id is not None:
        row["last_response_id"] = last_response_id
    if not row:
        return False

    response = await execute(client.table("chats").update(row).eq("id", chat_id))
    return bool(response.data)
