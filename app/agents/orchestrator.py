"""Drives one user turn through the model and the tool executor.

The loop: ask the model, run every tool call it requested (concurrently, all
finishing before the next model call), hand the outputs back, and repeat until
the model answers with text or the round cap is reached. At the cap, calls
still pending are answered with a round-limit error in one last model call
with tools disabled. Model-call failures propagate to the caller; tool
failures never do.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from app.agents.executor import ToolCallRequest, ToolCallResult, ToolExecutor
from app.agents.llm import LanguageModel, ModelResponse
from app.agents.usage import UsageAccumulator, UsageContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 5
ROUND_LIMIT_ERROR = "Tool round limit reached"


@dataclass(frozen=True)
class TurnEvent:
    type: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TurnResult:
    message: str | None
    response_id: str | None
    usage: UsageContext
    rounds: int
    tool_calls: list[dict[str, Any]] = field(default_factory=list)


def round_limit_results(calls: list[ToolCallRequest]) -> list[ToolCallResult]:
    """Answer calls that will not run so the stored response has nothing pending."""
    output = json.dumps({"error": ROUND_LIMIT_ERROR})
    return [ToolCallResult(call_id=call.call_id, output=output, is_error=True) for call in calls]


def final_text(response: ModelResponse) -> str | None:
    text = "\n".join(block for block in response.text_blocks if block)
    return text or None


class AgentOrchestrator:
    def __init__(
        self,
        model: LanguageModel,
        executor: ToolExecutor,
        tool_specs: list[dict[str, Any]],
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        usage: UsageAccumulator | None = None,
    ):
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.model = model
        self.executor = executor
        self.tool_specs = tool_specs
        self.max_rounds = max_rounds
        self.usage = usage or UsageAccumulator()

    def _record_usage(self, response: ModelResponse) -> TurnEvent | None:
        if response.usage is None:
            return None
        total = self.usage.add(
            response.usage.input_tokens,
            response.usage.output_tokens,
            response.usage.total_tokens,
        )
        return TurnEvent("usage", total.to_dict())

    async def stream_turn(
        self, user_input: str, previous_response_id: str | None = None
    ) -> AsyncIterator[TurnEvent]:
        response = await self.model.respond(user_input, self.tool_specs, previous_response_id)
        usage_event = self._record_usage(response)
        if usage_event:
            yield usage_event

        rounds = 0
        while response.tool_calls:
            if rounds >= self.max_rounds:
                logger.warning(
                    f"Tool round cap ({self.max_rounds}) reached with "
                    f"{len(response.tool_calls)} call(s) pending; ending turn"
                )
                response = await self.model.submit_tool_results(
                    response.id,
                    round_limit_results(response.tool_calls),
                    self.tool_specs,
                    allow_tools=False,
                )
                usage_event = self._record_usage(response)
                if usage_event:
                    yield usage_event
                if response.tool_calls:
                    logger.warning(f"Model response {response.id} requested tools after they were disabled")
                break
            rounds += 1
            logger.info(f"Round {rounds}/{self.max_rounds}: {len(response.tool_calls)} tool call(s)")

            for call in response.tool_calls:
                yield TurnEvent("tool_call", {"name": call.tool_name, "callId": call.call_id})

            results = await self.executor.execute_all(response.tool_calls)
            for call, result in zip(response.tool_calls, results):
                yield TurnEvent(
                    "tool_result",
                    {"name": call.tool_name, "callId": result.call_id, "isError": result.is_error},
                )

            response = await self.model.submit_tool_results(response.id, results, self.tool_specs)
            usage_event = self._record_usage(response)
            if usage_event:
                yield usage_event

        message = final_text(response)
        if message:
            yield TurnEvent("text_delta", {"delta": message})
        yield TurnEvent(
            "message_end",
            {
                "content": message,
                "responseId": response.id,
                "usage": self.usage.usage.to_dict(),
                "rounds": rounds,
            },
        )

    async def run_turn(
        self, user_input: str, previous_response_id: str | None = None
    ) -> TurnResult:
        tool_calls: list[dict[str, Any]] = []
        end: dict[str, Any] = {}
        async for event in self.stream_turn(user_input, previous_response_id):
            if event.type == "tool_result":
                tool_calls.append(event.data)
            elif event.type == "message_end":
                end = event.data

        return TurnResult(
            message=end.get("content"),
            response_id=end.get("responseId"),
            usage=self.usage.usage,
            rounds=end.get("rounds", 0),
            tool_calls=tool_calls,
        )


def create_orchestrator(
    model: LanguageModel,
    registry: Any,
    context: Any,
    settings: Any,
    usage: UsageContext | None = None,
) -> AgentOrchestrator:
    """Wire an orchestrator for one turn from settings."""
    executor = ToolExecutor(registry, context, timeout=settings.tool_timeout_seconds)
    accumulator = UsageAccumulator(
        usage,
        input_cost_per_million=settings.model_input_cost_per_million,
        output_cost_per_million=settings.model_output_cost_per_million,
    )
    return AgentOrchestrator(
        model,
        executor,
        registry.function_specs(),
        max_rounds=settings.agent_max_tool_rounds,
        usage=accumulator,
    )
