from __future__ import annotations

import asyncio
import json

import pytest

from app.agents.definitions import AgentContext, MUTATING_TOOLS, build_tool_registry
from app.agents.executor import ToolCallRequest, ToolExecutor


# One call per tool with a wrong primitive type somewhere in the arguments
WRONG_TYPE_CALLS = [
    ("getOccupancyData", {"startDate": 20250101, "endDate": "2025-01-31"}, "startDate"),
    ("getOccupancyData", {"startDate": "2025-01-01", "endDate": "2025-01-31", "includeYoYComparison": "yes"}, "includeYoYComparison"),
    ("getRoomRates", {"startDate": "2025-01-01", "endDate": 5}, "endDate"),
    (
        "updateRoomRates",
        {
            "startDate": "2025-01-01",
            "endDate": "2025-01-31",
            "adjustment": {"type": "percentage", "value": "ten", "operation": "increase"},
        },
        "adjustment.value",
    ),
    (
        "executePricingAction",
        {
            "startDate": "2025-01-01",
            "endDate": "2025-01-31",
            "adjustment": {"type": "percentage", "value": 10, "operation": "increase"},
            "userApproval": "true",
        },
        "userApproval",
    ),
    ("getRateClamps", {"serviceNames": "Base Rate"}, "serviceNames"),
    ("updateRateClamps", {"updates": [{"serviceName": "Base Rate", "minRate": "100"}]}, "updates.0.minRate"),
    (
        "updateServiceClamp",
        {"serviceName": "Base Rate", "clamp": {"target": "weekend", "direction": 1}},
        "clamp.direction",
    ),
    ("getHotelSettings", {"fields": "name"}, "fields"),
    ("updateHotelSettings", {"updates": {"name": 42}}, "updates.name"),
    ("analyzePricingOpportunities", {"dateRange": "2025-01-01..2025-01-31"}, "dateRange"),
    ("getWeather", {"daysBack": "30"}, "daysBack"),
    ("getPricingSop", {"verbose": True}, "verbose"),
]


def _execute(registry, db, settings, name, arguments):
    executor = ToolExecutor(registry, AgentContext(client=db, settings=settings))
    request = ToolCallRequest(tool_name=name, raw_arguments=json.dumps(arguments), call_id="call-1")
    return asyncio.run(executor.execute(request))


@pytest.mark.parametrize("name,arguments,field", WRONG_TYPE_CALLS)
def test_wrong_primitive_type_is_a_validation_error(settings, make_db, name, arguments, field):
    registry = build_tool_registry(settings)
    db = make_db()

    result = _execute(registry, db, settings, name, arguments)

    payload = result.payload()
    assert result.is_error is True
    assert result.call_id == "call-1"
    assert payload["error"] == "Invalid arguments"
    assert any(detail["field"].startswith(field) for detail in payload["details"]), payload
    # Validation failures never reach the data layer
    assert not any(table != "audit_log" for table, _, _ in db.calls)


def test_every_tool_has_a_wrong_type_case(settings):
    registry = build_tool_registry(settings)
    covered = {name for name, _, _ in WRONG_TYPE_CALLS}
    assert covered == {tool.name for tool in registry.list_tools()}


def test_string_number_is_not_coerced(settings, make_db):
    registry = build_tool_registry(settings)
    db = make_db({"room_rates": [{"id": "r1", "day": "2025-01-01", "price_usd": 100}]})

    result = _execute(
        registry,
        db,
        settings,
        "updateRoomRates",
        {
            "startDate": "2025-01-01",
            "endDate": "2025-01-01",
            "adjustment": {"type": "fixed_amount", "value": "10", "operation": "increase"},
        },
    )

    assert result.payload()["error"] == "Invalid arguments"
    assert db.tables["room_rates"][0]["price_usd"] == 100


@pytest.mark.parametrize(
    "arguments,reason_fragment",
    [
        ({"startDate": "2025-02-30", "endDate": "2025-03-01"}, "valid calendar date"),
        ({"startDate": "03/01/2025", "endDate": "2025-03-01"}, "pattern"),
        ({"startDate": "2025-03-02", "endDate": "2025-03-01"}, "on or before"),
    ],
)
def test_date_inputs_are_checked(settings, make_db, arguments, reason_fragment):
    registry = build_tool_registry(settings)
    result = _execute(registry, make_db(), settings, "getRoomRates", arguments)

    reasons = " ".join(detail["reason"] for detail in result.payload()["details"])
    assert reason_fragment in reasons


def test_update_rate_clamps_rejects_inverted_bounds(settings, make_db):
    registry = build_tool_registry(settings)
    result = _execute(
        registry,
        make_db(),
        settings,
        "updateRateClamps",
        {"updates": [{"serviceName": "Base Rate", "minRate": 300, "maxRate": 200}]},
    )

    reasons = [detail["reason"] for detail in result.payload()["details"]]
    assert any("minRate must be less than or equal to maxRate" in reason for reason in reasons)


def test_non_finite_adjustment_value_is_rejected(settings, make_db):
    registry = build_tool_registry(settings)
    executor = ToolExecutor(registry, AgentContext(client=make_db(), settings=settings))
    request = ToolCallRequest(
        tool_name="updateRoomRates",
        raw_arguments={
            "startDate": "2025-01-01",
            "endDate": "2025-01-01",
            "adjustment": {"type": "percentage", "value": float("nan"), "operation": "increase"},
        },
        call_id="call-nan",
    )

    result = asyncio.run(executor.execute(request))

    assert result.payload()["error"] == "Invalid arguments"


def test_rendered_schema_is_inlined_and_closed(settings):
    registry = build_tool_registry(settings)
    schema = registry.get("executePricingAction").input_schema
    rendered = json.dumps(schema)

    assert "$ref" not in rendered
    assert "$defs" not in rendered
    assert schema["type"] == "object"
    assert schema["additionalProperties"] is False
    assert set(schema["required"]) == {"startDate", "endDate", "adjustment", "userApproval"}

    adjustment = schema["properties"]["adjustment"]
    assert adjustment["type"] == "object"
    assert adjustment["additionalProperties"] is False
    assert adjustment["properties"]["type"]["enum"] == ["percentage", "fixed_amount"]
    assert adjustment["properties"]["operation"]["enum"] == ["increase", "decrease", "set_to"]
    assert schema["properties"]["reason"]["type"] == "string"


def test_occupancy_schema_uses_wire_names(settings):
    registry = build_tool_registry(settings)
    properties = registry.get("getOccupancyData").input_schema["properties"]

    assert set(properties) == {"startDate", "endDate", "includeYoYComparison", "asOfDate"}
    assert properties["includeYoYComparison"]["default"] is True


def test_function_specs_cover_the_catalog(settings):
    registry = build_tool_registry(settings)
    specs = registry.function_specs()

    assert len(specs) == len(registry) == 12
    assert all(tool["type"] == "function" for tool in specs)
    assert {tool.name for tool in registry.list_tools() if tool.mutating} == MUTATING_TOOLS
    description = registry.get("getOccupancyData").description
    assert "2024-01-01 to 2026-03-12" in description
