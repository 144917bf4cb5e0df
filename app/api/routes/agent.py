"""Stateless single-turn agent endpoint.

  POST /api/agent - { "input": string } -> { "message": string | null }
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from supabase import Client

from app.agents.definitions import AgentContext
from app.agents.guardrails import clean_user_message
from app.agents.llm import LanguageModel
from app.agents.orchestrator import create_orchestrator
from app.agents.registry import ToolRegistry
from app.api.deps import get_language_model, get_registry
from app.core.config import Settings, get_settings
from app.db.base import get_supabase
from app.schemas.agent import AgentResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["agent"])


@router.post(
    "/agent",
    response_model=AgentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def run_agent(
    request: Request,
    client: Client = Depends(get_supabase),
    model: LanguageModel = Depends(get_language_model),
    registry: ToolRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
):
    """Run one user message through the tool loop and return the final text."""
    try:
        body = await request.json()
    except ValueError:
        body = None

    user_input = clean_user_message(body.get("input")) if isinstance(body, dict) else None
    if user_input is None:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid input"}
        )

    context = AgentContext(client=client, settings=settings, source="api")
    orchestrator = create_orchestrator(model, registry, context, settings)
    try:
        result = await orchestrator.run_turn(user_input)
    except Exception as e:
        logger.error(f"Agent turn failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e) or "Unexpected error"},
        )

    return AgentResponse(message=result.message)
