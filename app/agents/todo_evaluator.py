"""Asks the model whether Bellhop can start a free-text to-do on its own."""

from __future__ import annotations

import logging

from openai import AsyncOpenAI
from pydantic import BaseModel

from app.agents.guardrails import sanitize_input

logger = logging.getLogger(__name__)


class TodoEvaluation(BaseModel):
    can_handle: bool
    summary: str | None
    starter_query: str | None


class TodoEvaluator:
    def __init__(self, client: AsyncOpenAI, model: str, instructions: str):
        self.client = client
        self.model = model
        self.instructions = instructions

    async def evaluate(self, text: str) -> TodoEvaluation:
        response = await self.client.responses.parse(
            model=self.model,
            instructions=self.instructions,
            input=f'To-do item: """{sanitize_input(text)}"""',
            text_format=TodoEvaluation,
            temperature=0,
        )
        evaluation = response.output_parsed
        if evaluation is None:
            logger.warning("To-do evaluation returned no parsed output")
            return TodoEvaluation(can_handle=False, summary=None, starter_query=None)
        # A positive answer without both fields is not actionable
        if evaluation.can_handle and not (evaluation.summary and evaluation.starter_query):
            return TodoEvaluation(can_handle=False, summary=None, starter_query=None)
        return evaluation
