import uuid as _uuid
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from openai import AsyncOpenAI

from app.agents.definitions import get_tool_registry
from app.agents.llm import LanguageModel, OpenAIResponsesModel
from app.agents.prompts import agent_instructions, todo_evaluation_instructions
from app.agents.registry import ToolRegistry
from app.agents.todo_evaluator import TodoEvaluator
from app.core.config import Settings, get_settings


def validate_chat_id(chat_id: str) -> str:
    """Validate that chat_id is a well-formed UUID.

    Raises HTTP 400 if not, preventing Postgres 22P02 errors.
    """
    try:
        _uuid.UUID(chat_id)
    except (ValueError, AttributeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid chat ID format. Must be a valid UUID.",
        )
    return chat_id


@lru_cache
def _openai_client(api_key: str) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=api_key)


def get_openai_client(settings: Settings = Depends(get_settings)) -> AsyncOpenAI:
    if not settings.openai_api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI assistant is not configured.",
        )
    return _openai_client(settings.openai_api_key)


def get_language_model(
    client: AsyncOpenAI = Depends(get_openai_client),
    settings: Settings = Depends(get_settings),
) -> LanguageModel:
    return OpenAIResponsesModel(
        client,
        settings.agent_model,
        instructions=agent_instructions(settings.data_window_start, settings.data_window_end),
    )


def get_todo_evaluator(
    client: AsyncOpenAI = Depends(get_openai_client),
    settings: Settings = Depends(get_settings),
) -> TodoEvaluator:
    return TodoEvaluator(
        client,
        settings.evaluator_model,
        todo_evaluation_instructions(settings.data_window_start, settings.data_window_end),
    )


def get_registry() -> ToolRegistry:
    return get_tool_registry()
