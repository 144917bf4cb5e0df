from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TodoEvaluationResponse(CamelModel):
    can_handle: bool
    summary: str | None = None
    starter_query: str | None = None


class TodoSuggestRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


class TodoSuggestion(CamelModel):
    message: str
    confidence: float
    action_type: str
    parameters: dict[str, Any] | None = None


class TodoSuggestResponse(CamelModel):
    suggestion: TodoSuggestion | None = None
    quick_actions: list[str] = Field(default_factory=list)
