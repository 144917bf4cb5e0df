"""Static catalog of tools exposed to the language model.

A tool is a name, a description the model reads when choosing what to call,
a pydantic input model (the single source of truth for argument validation)
and the coroutine that handles it. Dispatch is a dictionary lookup by name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import jsonref
from pydantic import BaseModel

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any, BaseModel], Awaitable[Any]]


class ToolRegistrationError(Exception):
    pass


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler
    mutating: bool = False

    @property
    def input_schema(self) -> dict[str, Any]:
        return render_input_schema(self.input_model)

    def function_spec(self) -> dict[str, Any]:
        """Function-calling entry in the shape the Responses API expects."""
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": self.input_schema,
        }


def sanitize_schema(schema: Any) -> Any:
    """Strip metadata keys, collapse Optional unions and close objects."""
    if not isinstance(schema, dict):
        return schema

    cleaned = schema.copy()
    for key in ("$defs", "$schema", "$id", "title", "definitions"):
        cleaned.pop(key, None)

    if "anyOf" in cleaned:
        non_null = [item for item in cleaned["anyOf"] if item.get("type") != "null"]
        if len(non_null) == 1 and isinstance(non_null[0], dict):
            merged = non_null[0].copy()
            for key in ("description", "default"):
                if key in cleaned:
                    merged[key] = cleaned[key]
            return sanitize_schema(merged)

    if "allOf" in cleaned and len(cleaned["allOf"]) == 1 and isinstance(cleaned["allOf"][0], dict):
        merged = {**cleaned.pop("allOf")[0], **cleaned}
        return sanitize_schema(merged)

    if cleaned.get("type") == "object" and "additionalProperties" not in cleaned:
        cleaned["additionalProperties"] = False

    for key, value in cleaned.items():
        if key == "properties" and isinstance(value, dict):
            cleaned[key] = {name: sanitize_schema(prop) for name, prop in value.items()}
        elif isinstance(value, dict):
            cleaned[key] = sanitize_schema(value)
        elif isinstance(value, list):
            cleaned[key] = [sanitize_schema(item) for item in value]
    return cleaned


def render_input_schema(model: type[BaseModel]) -> dict[str, Any]:
    raw = model.model_json_schema(by_alias=True)
    # proxies=False returns plain dicts instead of JsonRef objects
    inlined = jsonref.replace_refs(raw, proxies=False)
    return sanitize_schema(inlined)


class ToolRegistry:
    """Name-indexed, read-only after startup."""

    def __init__(self, tools: list[ToolDefinition] | None = None):
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        if tool.name in self._tools:
            raise ToolRegistrationError(f"Tool '{tool.name}' is already registered.")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool {tool.name} (mutating={tool.mutating})")

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def list_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def function_specs(self) -> list[dict[str, Any]]:
        return [tool.function_spec() for tool in self._tools.values()]
