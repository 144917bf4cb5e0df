from __future__ import annotations

import pytest

from app.agents.usage import UsageAccumulator, UsageContext


def test_add_without_prices_leaves_cost_unknown():
    accumulator = UsageAccumulator()

    accumulator.add(100, 20)
    usage = accumulator.add(50, 5, 60)

    assert usage == UsageContext(input_tokens=150, output_tokens=25, total_tokens=180, cost=None)


def test_add_with_prices_tracks_cost():
    accumulator = UsageAccumulator(input_cost_per_million=3.0, output_cost_per_million=15.0)

    usage = accumulator.add(1_000_000, 100_000)

    assert usage.cost == pytest.approx(4.5)
    assert usage.total_tokens == 1_100_000


def test_continues_from_stored_context():
    stored = UsageContext.from_dict(
        {"inputTokens": 10, "outputTokens": 4, "totalTokens": 14, "cost": "0.002"}
    )
    accumulator = UsageAccumulator(stored, input_cost_per_million=1.0, output_cost_per_million=1.0)

    usage = accumulator.add(1000, 1000)

    assert usage.total_tokens == 2014
    assert usage.cost == pytest.approx(0.004)


def test_round_trips_through_stored_dict():
    usage = UsageContext(input_tokens=1, output_tokens=2, total_tokens=3, cost=None)

    assert usage.to_dict() == {"inputTokens": 1, "outputTokens": 2, "totalTokens": 3, "cost": None}
    assert UsageContext.from_dict(usage.to_dict()) == usage
    assert UsageContext.from_dict(None) == UsageContext()
