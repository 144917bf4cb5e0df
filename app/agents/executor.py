"""Turns one model-issued tool call into one serialized tool result.

Whatever happens inside a tool (bad arguments, domain refusals, store
failures, timeouts) comes back as a JSON payload paired with the call id, so
the agent loop never stalls on a call that raised.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from app.agents.exceptions import ToolError
from app.agents.registry import ToolDefinition, ToolRegistry
from app.crud.audit import log_tool_call

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 30.0


@dataclass(frozen=True)
class ToolCallRequest:
    tool_name: str
    raw_arguments: Any
    call_id: str


@dataclass(frozen=True)
class ToolCallResult:
    call_id: str
    output: str
    is_error: bool

    def payload(self) -> Any:
        return json.loads(self.output)


class InvalidArguments(Exception):
    def __init__(self, details: list[dict]):
        super().__init__("Invalid arguments")
        self.details = details


def normalize_arguments(raw_arguments: Any) -> dict:
    """Accept a JSON string, a dict, or nothing."""
    if raw_arguments is None or raw_arguments == "":
        return {}
    if isinstance(raw_arguments, str):
        try:
            raw_arguments = json.loads(raw_arguments)
        except json.JSONDecodeError as exc:
            raise InvalidArguments(
                [{"field": "(root)", "reason": f"Arguments are not valid JSON: {exc.msg}"}]
            ) from exc
    if not isinstance(raw_arguments, dict):
        raise InvalidArguments([{"field": "(root)", "reason": "Arguments must be a JSON object"}])
    return raw_arguments


def validation_details(exc: ValidationError) -> list[dict]:
    details = []
    for error in exc.errors(include_url=False):
        field = ".".join(str(part) for part in error["loc"]) or "(root)"
        details.append({"field": field, "reason": error["msg"]})
    return details


def _is_failure(payload: Any) -> bool:
    return isinstance(payload, dict) and (payload.get("success") is False or "error" in payload)


class ToolExecutor:
    """Stateless between calls; one instance per agent turn."""

    def __init__(self, registry: ToolRegistry, context: Any, timeout: float = DEFAULT_TOOL_TIMEOUT):
        self.registry = registry
        self.context = context
        self.timeout = timeout

    async def execute(self, request: ToolCallRequest) -> ToolCallResult:
        tool = self.registry.get(request.tool_name)
        if tool is None:
            logger.warning(f"Unknown tool requested: {request.tool_name} ({request.call_id})")
            return self._result(request, {"error": f"Unknown tool: {request.tool_name}"}, True)

        arguments: dict = {}
        try:
            arguments = normalize_arguments(request.raw_arguments)
            validated = tool.input_model.model_validate_json(json.dumps(arguments))
        except InvalidArguments as exc:
            payload = {"error": "Invalid arguments", "details": exc.details}
            logger.warning(f"Tool {tool.name} ({request.call_id}) rejected arguments: {exc.details}")
            return await self._finish(tool, request, arguments, payload, True)
        except ValidationError as exc:
            payload = {"error": "Invalid arguments", "details": validation_details(exc)}
            logger.warning(f"Tool {tool.name} ({request.call_id}) failed validation: {payload['details']}")
            return await self._finish(tool, request, arguments, payload, True)

        logger.info(f"Executing tool {tool.name} ({request.call_id})")
        try:
            payload = await asyncio.wait_for(tool.handler(self.context, validated), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Tool {tool.name} ({request.call_id}) timed out after {self.timeout:g}s")
            payload = {
                "success": False,
                "error": f"Tool '{tool.name}' timed out after {self.timeout:g}s",
            }
            return await self._finish(tool, request, arguments, payload, True)
        except ToolError as exc:
            logger.warning(f"Tool {tool.name} ({request.call_id}) refused: {exc.message}")
            payload = {"success": False, "error": exc.message, "details": exc.details}
            return await self._finish(tool, request, arguments, payload, True)
        except Exception as exc:
            logger.error(f"Tool {tool.name} ({request.call_id}) raised: {exc}", exc_info=True)
            payload = {"success": False, "error": f"Tool '{tool.name}' failed", "details": str(exc)}
            return await self._finish(tool, request, arguments, payload, True)

        return await self._finish(tool, request, arguments, payload, _is_failure(payload))

    async def _finish(
        self,
        tool: ToolDefinition,
        request: ToolCallRequest,
        arguments: dict,
        payload: Any,
        is_error: bool,
    ) -> ToolCallResult:
        result = self._result(request, payload, is_error)
        if tool.mutating:
            await log_tool_call(
                self.context.client,
                tool_name=tool.name,
                description=f"{tool.name} {'failed' if is_error else 'succeeded'}",
                status="error" if is_error else "success",
                conversation_id=getattr(self.context, "chat_id", None),
                source=getattr(self.context, "source", "agent"),
                request_payload=arguments,
                response_payload=json.loads(result.output) if isinstance(payload, dict) else None,
            )
        return result

    @staticmethod
    def _result(request: ToolCallRequest, payload: Any, is_error: bool) -> ToolCallResult:
        return ToolCallResult(
            call_id=request.call_id,
            output=json.dumps(payload, default=str),
            is_error=is_error,
        )

    async def execute_all(self, requests: list[ToolCallRequest]) -> list[ToolCallResult]:
        """Run sibling calls concurrently; results keep request order."""
        return list(await asyncio.gather(*(self.execute(request) for request in requests)))
