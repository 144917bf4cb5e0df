"""Language model seam used by the orchestrator.

`LanguageModel` is the contract; `OpenAIResponsesModel` implements it on the
OpenAI Responses API, continuing a turn through `previous_response_id`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from openai import AsyncOpenAI

from app.agents.executor import ToolCallRequest, ToolCallResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class ModelResponse:
    id: str
    text_blocks: list[str] = field(default_factory=list)
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    usage: ModelUsage | None = None


class LanguageModel(Protocol):
    async def respond(
        self,
        user_input: str,
        tools: list[dict[str, Any]],
        previous_response_id: str | None = None,
    ) -> ModelResponse: ...

    async def submit_tool_results(
        self,
        previous_response_id: str,
        results: list[ToolCallResult],
        tools: list[dict[str, Any]],
        allow_tools: bool = True,
    ) -> ModelResponse: ...


def parse_response(response: Any) -> ModelResponse:
    """Split a Responses API result into text blocks and function calls."""
    text_blocks: list[str] = []
    tool_calls: list[ToolCallRequest] = []

    for item in getattr(response, "output", None) or []:
        item_type = getattr(item, "type", None)
        if item_type == "function_call":
            tool_calls.append(
                ToolCallRequest(
                    tool_name=item.name,
                    raw_arguments=item.arguments,
                    call_id=item.call_id,
                )
            )
        elif item_type == "message":
            for content in getattr(item, "content", None) or []:
                text = getattr(content, "text", None)
                if getattr(content, "type", None) == "output_text" and text:
                    text_blocks.append(text)

    usage = None
    raw_usage = getattr(response, "usage", None)
    if raw_usage is not None:
        usage = ModelUsage(
            input_tokens=getattr(raw_usage, "input_tokens", 0) or 0,
            output_tokens=getattr(raw_usage, "output_tokens", 0) or 0,
            total_tokens=getattr(raw_usage, "total_tokens", 0) or 0,
        )

    return ModelResponse(id=response.id, text_blocks=text_blocks, tool_calls=tool_calls, usage=usage)


class OpenAIResponsesModel:
    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        instructions: str | None = None,
    ):
        self.client = client
        self.model = model
        self.instructions = instructions

    async def respond(
        self,
        user_input: str,
        tools: list[dict[str, Any]],
        previous_response_id: str | None = None,
    ) -> ModelResponse:
        kwargs: dict[str, Any] = {"model": self.model, "input": user_input, "tools": tools}
        if self.instructions:
            kwargs["instructions"] = self.instructions
        if previous_response_id:
            kwargs["previous_response_id"] = previous_response_id
        response = await self.client.responses.create(**kwargs)
        logger.debug(f"Model response {response.id} received")
        return parse_response(response)

    async def submit_tool_results(
        self,
        previous_response_id: str,
        results: list[ToolCallResult],
        tools: list[dict[str, Any]],
        allow_tools: bool = True,
    ) -> ModelResponse:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "previous_response_id": previous_response_id,
            "input": [
                {
                    "type": "function_call_output",
                    "call_id": result.call_id,
                    "output": result.output,
                }
                for result in results
            ],
            "tools": tools,
        }
        if not allow_tools:
            kwargs["tool_choice"] = "none"
        if self.instructions:
            kwargs["instructions"] = self.instructions
        response = await self.client.responses.create(**kwargs)
        return parse_response(response)
