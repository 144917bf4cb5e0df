from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ChatCreate(BaseModel):
    title: str | None = Field(None, max_length=200)


class ChatResponse(BaseModel):
    id: str
    title: str | None = None
    last_context: dict | None = None
    created_at: datetime


class ChatMessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)


class ChatMessageResponse(BaseModel):
    id: str
    chat_id: str
    role: str
    content: str
    tool_calls: dict | list | None = None
    metadata: dict | None = None
    created_at: datetime


class ChatMessageListResponse(BaseModel):
    items: list[ChatMessageResponse]
