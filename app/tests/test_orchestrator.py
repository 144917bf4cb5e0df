from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import pytest

from app.agents.definitions import AgentContext, build_tool_registry
from app.agents.executor import ToolCallRequest, ToolCallResult, ToolExecutor
from app.agents.llm import ModelResponse, ModelUsage, OpenAIResponsesModel, parse_response
from app.agents.orchestrator import AgentOrchestrator, create_orchestrator
from app.agents.usage import UsageAccumulator, UsageContext
from app.tests.fakes import ScriptedModel


def _rates_call(call_id: str = "call-1") -> ToolCallRequest:
    return ToolCallRequest(
        tool_name="getRoomRates",
        raw_arguments=json.dumps({"startDate": "2025-09-29", "endDate": "2025-09-29"}),
        call_id=call_id,
    )


@pytest.fixture
def orchestrator_for(settings, make_db):
    def factory(model, max_rounds: int = 5, usage: UsageAccumulator | None = None):
        db = make_db(
            {
                "room_rates": [
                    {"id": "r1", "day": "2025-09-29", "price_usd": 250},
                    {"id": "r2", "day": "2025-09-29", "price_usd": 300},
                ]
            }
        )
        registry = build_tool_registry(settings)
        executor = ToolExecutor(registry, AgentContext(client=db, settings=settings))
        return AgentOrchestrator(
            model, executor, registry.function_specs(), max_rounds=max_rounds, usage=usage
        )

    return factory


def test_tool_call_then_answer_uses_two_model_calls(orchestrator_for):
    model = ScriptedModel(
        [
            ModelResponse(id="resp-1", tool_calls=[_rates_call()], usage=ModelUsage(100, 20, 120)),
            ModelResponse(id="resp-2", text_blocks=["Average rate is $275."], usage=ModelUsage(150, 30, 180)),
        ]
    )
    orchestrator = orchestrator_for(model)

    result = _run_async(orchestrator.run_turn("What are rates on Sep 29?"))

    assert result.message == "Average rate is $275."
    assert result.response_id == "resp-2"
    assert result.rounds == 1
    assert result.tool_calls == [{"name": "getRoomRates", "callId": "call-1", "isError": False}]
    assert [call["kind"] for call in model.invocations] == ["respond", "tool_results"]
    submitted = model.invocations[1]
    assert submitted["previous_response_id"] == "resp-1"
    [tool_result] = submitted["results"]
    assert tool_result.call_id == "call-1"
    assert tool_result.payload()["summary"]["overallAverageRate"] == 275.0
    assert result.usage == UsageContext(input_tokens=250, output_tokens=50, total_tokens=300)


def test_plain_answer_uses_one_model_call(orchestrator_for):
    model = ScriptedModel([ModelResponse(id="resp-1", text_blocks=["Hello!"])])
    orchestrator = orchestrator_for(model)

    result = _run_async(orchestrator.run_turn("hi", previous_response_id="resp-0"))

    assert result.message == "Hello!"
    assert result.rounds == 0
    assert model.invocations == [{"kind": "respond", "input": "hi", "previous_response_id": "resp-0"}]


def test_empty_model_output_yields_null_message(orchestrator_for):
    model = ScriptedModel([ModelResponse(id="resp-1")])
    orchestrator = orchestrator_for(model)

    result = _run_async(orchestrator.run_turn("..."))

    assert result.message is None
    assert result.response_id == "resp-1"


def test_round_cap_bounds_model_calls(orchestrator_for):
    model = ScriptedModel(
        [
            ModelResponse(id="loop-1", tool_calls=[_rates_call("c1")]),
            ModelResponse(id="loop-2", tool_calls=[_rates_call("c2")]),
            ModelResponse(id="loop-3", tool_calls=[_rates_call("c3")]),
            ModelResponse(id="loop-4", tool_calls=[_rates_call("c4")]),
            ModelResponse(id="wrap-up", text_blocks=["I stopped after three lookups."]),
        ]
    )
    orchestrator = orchestrator_for(model, max_rounds=3)

    result = _run_async(orchestrator.run_turn("keep calling tools"))

    assert len(model.invocations) == 5
    assert [call["allow_tools"] for call in model.invocations[1:]] == [True, True, True, False]
    assert result.rounds == 3
    assert result.message == "I stopped after three lookups."
    assert result.response_id == "wrap-up"


def test_round_cap_answers_pending_calls_before_storing_response(orchestrator_for):
    model = ScriptedModel(
        [
            ModelResponse(id="loop-1", tool_calls=[_rates_call("c1")]),
            ModelResponse(id="loop-2", tool_calls=[_rates_call("c2"), _rates_call("c3")]),
            ModelResponse(id="closed"),
        ]
    )
    orchestrator = orchestrator_for(model, max_rounds=1)

    result = _run_async(orchestrator.run_turn("loop forever"))

    closing = model.invocations[-1]
    assert closing["previous_response_id"] == "loop-2"
    assert closing["allow_tools"] is False
    assert [item.call_id for item in closing["results"]] == ["c2", "c3"]
    assert all(item.is_error for item in closing["results"])
    assert closing["results"][0].payload() == {"error": "Tool round limit reached"}
    # Only the first round's call actually ran
    assert result.tool_calls == [{"name": "getRoomRates", "callId": "c1", "isError": False}]
    assert result.response_id == "closed"
    assert result.message is None


def test_sibling_tool_calls_run_in_one_round(orchestrator_for):
    model = ScriptedModel(
        [
            ModelResponse(
                id="resp-1",
                tool_calls=[
                    _rates_call("call-a"),
                    ToolCallRequest(tool_name="getPricingSop", raw_arguments="{}", call_id="call-b"),
                    ToolCallRequest(tool_name="dropTables", raw_arguments="{}", call_id="call-c"),
                ],
            ),
            ModelResponse(id="resp-2", text_blocks=["Done."]),
        ]
    )
    orchestrator = orchestrator_for(model)

    events = _run_async(_collect(orchestrator.stream_turn("compare")))

    types = [event.type for event in events]
    assert types == [
        "tool_call",
        "tool_call",
        "tool_call",
        "tool_result",
        "tool_result",
        "tool_result",
        "text_delta",
        "message_end",
    ]
    results = model.invocations[1]["results"]
    assert [result.call_id for result in results] == ["call-a", "call-b", "call-c"]
    assert results[2].payload() == {"error": "Unknown tool: dropTables"}
    assert events[-1].data["rounds"] == 1


def test_model_error_propagates(orchestrator_for):
    orchestrator = orchestrator_for(ScriptedModel([], error=RuntimeError("upstream 500")))

    with pytest.raises(RuntimeError, match="upstream 500"):
        _run_async(orchestrator.run_turn("hello"))


def test_usage_continues_from_previous_turn(make_settings, make_db):
    settings = make_settings(
        model_input_cost_per_million=2.0,
        model_output_cost_per_million=8.0,
    )
    registry = build_tool_registry(settings)
    context = AgentContext(client=make_db(), settings=settings)
    model = ScriptedModel([ModelResponse(id="resp-9", text_blocks=["ok"], usage=ModelUsage(1000, 500, 1500))])
    previous = UsageContext(input_tokens=10, output_tokens=5, total_tokens=15, cost=0.01)

    orchestrator = create_orchestrator(model, registry, context, settings, usage=previous)
    result = _run_async(orchestrator.run_turn("ping"))

    assert result.usage.total_tokens == 1515
    assert result.usage.cost == pytest.approx(0.01 + (1000 * 2.0 + 500 * 8.0) / 1_000_000)
    assert orchestrator.max_rounds == settings.agent_max_tool_rounds


def test_orchestrator_rejects_zero_rounds(orchestrator_for):
    with pytest.raises(ValueError):
        orchestrator_for(ScriptedModel([]), max_rounds=0)


def test_parse_response_splits_text_and_calls():
    raw = SimpleNamespace(
        id="resp-1",
        output=[
            SimpleNamespace(
                type="function_call", name="getWeather", arguments='{"daysBack": 7}', call_id="fc-1"
            ),
            SimpleNamespace(
                type="message",
                content=[
                    SimpleNamespace(type="output_text", text="Checking the weather."),
                    SimpleNamespace(type="refusal", text=None),
                ],
            ),
        ],
        usage=SimpleNamespace(input_tokens=12, output_tokens=3, total_tokens=15),
    )

    parsed = parse_response(raw)

    assert parsed.text_blocks == ["Checking the weather."]
    assert parsed.tool_calls == [
        ToolCallRequest(tool_name="getWeather", raw_arguments='{"daysBack": 7}', call_id="fc-1")
    ]
    assert parsed.usage == ModelUsage(12, 3, 15)


def test_openai_model_continues_with_previous_response_id():
    created: list[dict] = []

    class FakeResponses:
        async def create(self, **kwargs):
            created.append(kwargs)
            return SimpleNamespace(id=f"resp-{len(created)}", output=[], usage=None)

    client = SimpleNamespace(responses=FakeResponses())
    model = OpenAIResponsesModel(client, "gpt-4o-mini", instructions="Be brief.")
    tools = [{"type": "function", "name": "getPricingSop", "parameters": {}}]

    first = _run_async(model.respond("hello", tools))
    _run_async(
        model.submit_tool_results(
            first.id, [ToolCallResult(call_id="fc-1", output='{"markdown": "#"}', is_error=False)], tools
        )
    )
    _run_async(model.submit_tool_results("resp-2", [], tools, allow_tools=False))

    assert "previous_response_id" not in created[0]
    assert created[0]["instructions"] == "Be brief."
    assert created[1]["previous_response_id"] == "resp-1"
    assert "tool_choice" not in created[1]
    assert created[2]["tool_choice"] == "none"
    assert created[1]["input"] == [
        {"type": "function_call_output", "call_id": "fc-1", "output": '{"markdown": "#"}'}
    ]


async def _collect(stream):
    return [event async for event in stream]


def _run_async(coro):
    return asyncio.run(coro)
