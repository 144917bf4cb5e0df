"""To-do helpers for the dashboard.

  POST /api/todos/evaluate - model decides whether Bellhop can start the task
  POST /v1.0/todos/suggest - keyword suggestion with quick actions
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.agents.task_recognition import generate_action_suggestion
from app.agents.todo_evaluator import TodoEvaluator
from app.api.deps import get_todo_evaluator
from app.schemas.agent import ErrorResponse
from app.schemas.todos import (
    TodoEvaluationResponse,
    TodoSuggestion,
    TodoSuggestRequest,
    TodoSuggestResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["todos"])


@router.post(
    "/api/todos/evaluate",
    response_model=TodoEvaluationResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
)
async def evaluate_todo(
    request: Request,
    evaluator: TodoEvaluator = Depends(get_todo_evaluator),
):
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid JSON body."}
        )

    text = body.get("text") if isinstance(body, dict) else None
    if not isinstance(text, str) or not text:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Task text is required."}
        )

    try:
        evaluation = await evaluator.evaluate(text)
    except Exception as e:
        logger.error(f"Failed to evaluate to-do item: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"canHandle": False}
        )

    if not evaluation.can_handle:
        return TodoEvaluationResponse(can_handle=False)
    return TodoEvaluationResponse(
        can_handle=True,
        summary=evaluation.summary,
        starter_query=evaluation.starter_query,
    )


@router.post("/v1.0/todos/suggest", response_model=TodoSuggestResponse)
async def suggest_todo_action(payload: TodoSuggestRequest):
    suggestion, quick_actions = generate_action_suggestion(payload.text)
    return TodoSuggestResponse(
        suggestion=TodoSuggestion(**asdict(suggestion)) if suggestion else None,
        quick_actions=quick_actions,
    )
