"""Chat API routes for the Bellhop assistant.

Endpoints:
  POST /v1.0/chats - create conversation
  GET  /v1.0/chats/{chat_id}/messages - get history
  POST /v1.0/chats/{chat_id}/messages - send message (SSE stream)
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import defaultdict
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from supabase import Client

from app.agents.definitions import AgentContext
from app.agents.guardrails import sanitize_input
from app.agents.llm import LanguageModel
from app.agents.orchestrator import create_orchestrator
from app.agents.registry import ToolRegistry
from app.agents.usage import UsageContext
from app.api.deps import get_language_model, get_registry, validate_chat_id
from app.core.config import Settings, get_settings
from app.crud.chat import (
    create_chat,
    create_message,
    get_chat,
    get_messages,
    update_chat_context,
)
from app.db.base import get_supabase
from app.schemas.chat import (
    ChatCreate,
    ChatMessageCreate,
    ChatMessageListResponse,
    ChatMessageResponse,
    ChatResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1.0/chats", tags=["chat"])

# Simple in-memory rate limiter: IP -> list of timestamps
_rate_limit_store: dict[str, list[float]] = defaultdict(list)
# Turns within one chat run one at a time; entries live only while a turn holds or awaits them
_chat_locks: dict[str, asyncio.Lock] = {}
_chat_lock_users: dict[str, int] = {}

ERROR_REPLY = "I'm sorry, I encountered an issue. Please try again."


def _check_rate_limit(ip: str, max_requests: int, window: int) -> bool:
    """Returns True if within rate limit, False if exceeded."""
    now = time.time()
    timestamps = [t for t in _rate_limit_store[ip] if now - t < window]
    _rate_limit_store[ip] = timestamps
    if len(timestamps) >= max_requests:
        return False
    timestamps.append(now)
    return True


@asynccontextmanager
async def _chat_turn(chat_id: str):
    lock = _chat_locks.setdefault(chat_id, asyncio.Lock())
    _chat_lock_users[chat_id] = _chat_lock_users.get(chat_id, 0) + 1
    try:
        async with lock:
            yield
    finally:
        _chat_lock_users[chat_id] -= 1
        if not _chat_lock_users[chat_id]:
            del _chat_lock_users[chat_id]
            del _chat_locks[chat_id]


def _sse(event_type: str, **data) -> str:
    return f"data: {json.dumps({'type': event_type, **data}, default=str)}\n\n"


async def _require_chat(client: Client, chat_id: str) -> dict:
    validate_chat_id(chat_id)
    chat = await get_chat(client, chat_id)
    if not chat:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    return chat


@router.post("", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
async def start_chat(payload: ChatCreate, client: Client = Depends(get_supabase)):
    """Create a new conversation."""
    return await create_chat(client, payload.title)


@router.get("/{chat_id}/messages", response_model=ChatMessageListResponse)
async def list_chat_messages(chat_id: str, client: Client = Depends(get_supabase)):
    """Get message history for a conversation."""
    await _require_chat(client, chat_id)
    messages = await get_messages(client, chat_id)
    return ChatMessageListResponse(items=[ChatMessageResponse(**m) for m in messages])


@router.post("/{chat_id}/messages")
async def send_chat_message(
    chat_id: str,
    payload: ChatMessageCreate,
    request: Request,
    client: Client = Depends(get_supabase),
    model: LanguageModel = Depends(get_language_model),
    registry: ToolRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
):
    """Send a message and stream the assistant's turn as server-sent events."""
    validate_chat_id(chat_id)

    client_ip = request.client.host if request.client else "unknown"
    if not _check_rate_limit(client_ip, settings.chat_rate_limit_max, settings.chat_rate_limit_window):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Please wait before sending more messages.",
        )

    await _require_chat(client, chat_id)

    content = sanitize_input(payload.content)
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Message content is empty."
        )

    async def event_stream():
        async with _chat_turn(chat_id):
            await create_message(client, chat_id, "user", content)
            # Re-read inside the lock so this turn continues from the previous one
            chat = await get_chat(client, chat_id) or {}
            context = AgentContext(client=client, settings=settings, chat_id=chat_id, source="chat")
            orchestrator = create_orchestrator(
                model,
                registry,
                context,
                settings,
                usage=UsageContext.from_dict(chat.get("last_context")),
            )

            yield _sse("message_start")
            tool_calls: list[dict] = []
            try:
                async for event in orchestrator.stream_turn(content, chat.get("last_response_id")):
                    if event.type == "tool_result":
                        tool_calls.append(event.data)
                    if event.type == "message_end":
                        reply = event.data["content"]
                        if reply:
                            await create_message(
                                client,
                                chat_id,
                                "assistant",
                                reply,
                                tool_calls=tool_calls or None,
                                metadata={"rounds": event.data["rounds"]},
                            )
                        await update_chat_context(
                            client,
                            chat_id,
                            last_context=event.data["usage"],
                            last_response_id=event.data["responseId"],
                        )
                    yield _sse(event.type, **event.data)
            except Exception as e:
                logger.error(f"Agent error in chat {chat_id}: {e}", exc_info=True)
                await create_message(client, chat_id, "assistant", ERROR_REPLY)
                yield _sse("error", message=ERROR_REPLY)
                yield _sse("message_end", content=ERROR_REPLY)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
