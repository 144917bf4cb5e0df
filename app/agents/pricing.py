"""Rate math, clamp checks and the pricing recommendation engine."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from app.schemas.tools import RateAdjustment

WEEKEND_DAYS = (4, 5)  # Friday and Saturday nights

SIMULATED_BASE_OCCUPANCY = 72
SIMULATED_COMPETITOR_RATES = {
    "standard": {"min": 180, "max": 320, "avg": 250},
    "deluxe": {"min": 220, "max": 380, "avg": 300},
    "suite": {"min": 350, "max": 650, "avg": 485},
}
SIMULATED_WEEKEND_MARKET_AVERAGE = 285.0
SIMULATED_WEEKDAY_MARKET_AVERAGE = 225.0
SIMULATED_MARKET_EVENTS = [
    {
        "event": "Tech Conference Downtown",
        "startDate": "2024-11-15",
        "endDate": "2024-11-17",
        "dates": "2024-11-15 to 2024-11-17",
        "impact": "high",
        "recommendedAction": "increase_rates",
        "upliftPercentage": 15.0,
    },
    {
        "event": "Holiday Weekend",
        "startDate": "2024-11-28",
        "endDate": "2024-12-01",
        "dates": "2024-11-28 to 2024-12-01",
        "impact": "medium",
        "recommendedAction": "optimize_length_of_stay",
        "upliftPercentage": 8.0,
    },
]

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def round_money(value: float | Decimal, places: int = 2) -> float:
    """Half-up rounding, matching how the store rounds numeric averages."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def average(values: Iterable[float]) -> float | None:
    values = list(values)
    if not values:
        return None
    return sum(values) / len(values)


def apply_adjustment(price: float, adjustment: RateAdjustment) -> float:
    """New nightly price after `adjustment`; never below zero."""
    value = adjustment.value
    if adjustment.type == "percentage":
        if adjustment.operation == "increase":
            new_price = price * (1 + value / 100)
        elif adjustment.operation == "decrease":
            new_price = price * (1 - value / 100)
        else:
            new_price = price * (value / 100)
    elif adjustment.operation == "increase":
        new_price = price + value
    elif adjustment.operation == "decrease":
        new_price = price - value
    else:
        new_price = value
    return max(round_money(new_price), 0.0)


def is_weekend(day: date) -> bool:
    return day.weekday() in WEEKEND_DAYS


def _clamp_applies(clamp: dict, day: date) -> bool:
    target = clamp.get("target", "all")
    if target == "weekend":
        return is_weekend(day)
    if target == "weekday":
        return not is_weekend(day)
    return True


def find_clamp_violations(
    adjusted_rows: list[dict], services_by_id: dict[str, dict]
) -> list[dict]:
    """Compare adjusted prices to each service's rate bounds and clamp object.

    `adjusted_rows` carry the original row plus `new_price`.
    """
    violations: list[dict] = []
    for row in adjusted_rows:
        service = services_by_id.get(row.get("service_id"))
        if not service:
            continue
        day = date.fromisoformat(str(row["day"])[:10])
        new_price = row["new_price"]
        limits: list[tuple[str, str, float]] = []

        if service.get("rate_lower_usd") is not None:
            limits.append(("min", "service", to_float(service["rate_lower_usd"])))
        if service.get("rate_upper_usd") is not None:
            limits.append(("max", "service", to_float(service["rate_upper_usd"])))

        clamp = service.get("clamp") or {}
        if clamp and _clamp_applies(clamp, day):
            if clamp.get("minRate") is not None:
                limits.append(("min", f"clamp:{clamp.get('target', 'all')}", to_float(clamp["minRate"])))
            if clamp.get("maxRate") is not None:
                limits.append(("max", f"clamp:{clamp.get('target', 'all')}", to_float(clamp["maxRate"])))

        for bound, source, limit in limits:
            if (bound == "min" and new_price < limit) or (bound == "max" and new_price > limit):
                violations.append(
                    {
                        "date": day.isoformat(),
                        "roomId": row.get("room_id"),
                        "serviceName": service.get("name"),
                        "newPrice": new_price,
                        "bound": bound,
                        "limit": limit,
                        "source": source,
                    }
                )
    return violations


def format_currency_delta(amount: float) -> str:
    sign = "+" if amount >= 0 else "-"
    return f"{sign}${abs(amount):,.0f}"


# -- Market analysis --


def _competitor_benchmarks(competitor_rows: list[dict]) -> tuple[dict, float, float]:
    by_type: dict[str, list[float]] = defaultdict(list)
    weekend: list[float] = []
    weekday: list[float] = []
    for row in competitor_rows:
        price = to_float(row.get("price"))
        by_type[str(row.get("room_type") or "standard").lower()].append(price)
        day = date.fromisoformat(str(row["day"])[:10])
        (weekend if is_weekend(day) else weekday).append(price)

    rates = {
        room_type: {
            "min": round_money(min(prices)),
            "max": round_money(max(prices)),
            "avg": round_money(sum(prices) / len(prices)),
        }
        for room_type, prices in sorted(by_type.items())
    }
    overall = average(weekend + weekday) or 0.0
    return (
        rates,
        round_money(average(weekend) or overall),
        round_money(average(weekday) or overall),
    )


def _events_in_range(start: date, end: date) -> list[dict]:
    return [
        event
        for event in SIMULATED_MARKET_EVENTS
        if date.fromisoformat(event["startDate"]) <= end
        and date.fromisoformat(event["endDate"]) >= start
    ]


def build_market_analysis(
    start: date,
    end: date,
    focus_area: str | None,
    competitor_rows: list[dict] | None = None,
) -> dict:
    """Competitor benchmarks from the store when available, simulated otherwise."""
    if competitor_rows:
        competitor_rates, weekend_avg, weekday_avg = _competitor_benchmarks(competitor_rows)
        source = "competitor_rates"
    else:
        competitor_rates = SIMULATED_COMPETITOR_RATES
        weekend_avg = SIMULATED_WEEKEND_MARKET_AVERAGE
        weekday_avg = SIMULATED_WEEKDAY_MARKET_AVERAGE
        source = "simulated"

    projected_lift = 8 if focus_area == "occupancy_optimization" else 4
    return {
        "source": source,
        "occupancyTrend": {
            "current": SIMULATED_BASE_OCCUPANCY,
            "projected": SIMULATED_BASE_OCCUPANCY + projected_lift,
            "lastYear": SIMULATED_BASE_OCCUPANCY - 6,
        },
        "competitorRates": competitor_rates,
        "marketAverages": {"weekend": weekend_avg, "weekday": weekday_avg},
        "marketEvents": [
            {key: event[key] for key in ("event", "dates", "impact", "recommendedAction")}
            for event in SIMULATED_MARKET_EVENTS
        ],
        "demandIndicators": {
            "bookingPace": "+12% vs last year",
            "priceElasticity": "moderate",
            "seasonalTrend": "increasing",
        },
    }


# -- Recommendations --


def _priority(gap_pct: float) -> str:
    if gap_pct >= 10:
        return "high"
    if gap_pct >= 5:
        return "medium"
    return "low"


def _risk(change_pct: float) -> str:
    if change_pct > 20:
        return "high"
    if change_pct > 12:
        return "medium"
    return "low"


def _confidence(gap_pct: float, sample_size: int) -> float:
    score = 0.7 + min(gap_pct, 20) / 100 + min(sample_size, 50) / 1000
    return round(min(score, 0.95), 2)


def _segment_recommendation(
    *,
    rec_id: str,
    label: str,
    action: str,
    segment_rows: list[dict],
    market_average: float,
    occupancy: float,
    nights_per_week: int,
) -> dict | None:
    prices = [to_float(row.get("price_usd")) for row in segment_rows]
    current = average(prices)
    if not current or not market_average:
        return None

    gap_pct = (market_average - current) / current * 100
    if abs(gap_pct) < 1:
        return None

    if gap_pct > 0:
        # Close the gap to market without a jump above 15%
        recommended = min(market_average, current * 1.15)
        operation = "increase"
        position = "competitive" if recommended >= market_average * 0.97 else "approaching_market"
        reasoning = (
            f"{label} average ${current:,.2f} sits {gap_pct:.1f}% below the market "
            f"average of ${market_average:,.2f}"
        )
    else:
        recommended = max(market_average, current * 0.9)
        operation = "decrease"
        position = "at_market" if recommended <= market_average * 1.03 else "above_market"
        reasoning = (
            f"{label} average ${current:,.2f} sits {abs(gap_pct):.1f}% above the market "
            f"average of ${market_average:,.2f}; trimming rates should lift occupancy"
        )

    current = round_money(current)
    recommended = round_money(recommended)
    change = round_money(recommended - current)
    change_pct = round(abs(change) / current * 100, 1)
    rooms_per_night = len(segment_rows) / max(len({row["day"] for row in segment_rows}), 1)
    weekly = change * rooms_per_night * nights_per_week * occupancy
    dates = sorted({str(row["day"])[:10] for row in segment_rows})

    return {
        "id": rec_id,
        "priority": _priority(abs(gap_pct)),
        "roomType": "All room types",
        "action": action,
        "currentRate": current,
        "recommendedRate": recommended,
        "increase": change,
        "increasePercentage": change_pct if change >= 0 else -change_pct,
        "reasoning": reasoning,
        "projectedRevenue": {
            "weekly": format_currency_delta(weekly),
            "monthly": format_currency_delta(weekly * 4),
        },
        "confidence": _confidence(abs(gap_pct), len(segment_rows)),
        "riskLevel": _risk(change_pct),
        "executionPlan": {
            "implementation": "immediate" if change_pct <= 12 else "gradual_rollout",
            "duration": "selected_dates",
            "monitoring": "daily_pickup_rates",
        },
        "competitorComparison": {
            "belowMarket": gap_pct > 0,
            "marketAverage": round_money(market_average),
            "positionAfterChange": position,
        },
        "targetDates": dates,
        "adjustment": {
            "type": "percentage",
            "value": change_pct,
            "operation": operation,
        },
        "_monthlyValue": weekly * 4,
    }


def _event_recommendation(event: dict, rates: list[dict], occupancy: float) -> dict | None:
    start = date.fromisoformat(event["startDate"])
    end = date.fromisoformat(event["endDate"])
    event_rows = [
        row for row in rates if start <= date.fromisoformat(str(row["day"])[:10]) <= end
    ]
    current = average(to_float(row.get("price_usd")) for row in event_rows)
    if not current:
        return None

    uplift = event["upliftPercentage"]
    current = round_money(current)
    recommended = round_money(current * (1 + uplift / 100))
    change = round_money(recommended - current)
    event_total = change * len(event_rows) * occupancy
    slug = event["event"].lower().replace(" ", "_")

    return {
        "id": f"event_{slug}",
        "priority": "high" if event["impact"] == "high" else "medium",
        "roomType": "All room types",
        "action": "implement_event_pricing",
        "currentRate": current,
        "recommendedRate": recommended,
        "increase": change,
        "increasePercentage": uplift,
        "reasoning": f"{event['event']} ({event['dates']}) is expected to drive {event['impact']} demand",
        "projectedRevenue": {
            "event": format_currency_delta(event_total),
            "monthly": format_currency_delta(event_total),
        },
        "confidence": 0.9 if event["impact"] == "high" else 0.8,
        "riskLevel": "low",
        "executionPlan": {
            "implementation": "schedule_for_event",
            "duration": "event_period_only",
            "monitoring": "hourly_availability",
        },
        "competitorComparison": None,
        "targetDates": sorted({str(row["day"])[:10] for row in event_rows}),
        "adjustment": {"type": "percentage", "value": uplift, "operation": "increase"},
        "_monthlyValue": event_total,
    }


def generate_recommendations(
    rates: list[dict],
    market: dict,
    focus_area: str | None,
    start: date,
    end: date,
) -> list[dict]:
    """Ranked recommendations: priority first, then projected monthly revenue."""
    weekend_rows = [r for r in rates if is_weekend(date.fromisoformat(str(r["day"])[:10]))]
    weekday_rows = [r for r in rates if not is_weekend(date.fromisoformat(str(r["day"])[:10]))]
    occupancy = market["occupancyTrend"]["projected"] / 100
    averages = market["marketAverages"]

    wants = {
        "weekend": focus_area in (None, "weekend_rates", "competitor_response", "occupancy_optimization"),
        "weekday": focus_area in (None, "weekday_rates", "competitor_response", "occupancy_optimization"),
        "event": focus_area in (None, "event_driven"),
    }

    candidates: list[dict | None] = []
    if wants["weekend"] and weekend_rows:
        candidates.append(
            _segment_recommendation(
                rec_id="weekend_optimization",
                label="Weekend",
                action="optimize_weekend_rate",
                segment_rows=weekend_rows,
                market_average=averages["weekend"],
                occupancy=occupancy,
                nights_per_week=2,
            )
        )
    if wants["weekday"] and weekday_rows:
        candidates.append(
            _segment_recommendation(
                rec_id="weekday_adjustment",
                label="Weekday",
                action="optimize_weekday_rate",
                segment_rows=weekday_rows,
                market_average=averages["weekday"],
                occupancy=occupancy,
                nights_per_week=5,
            )
        )
    if wants["event"]:
        for event in _events_in_range(start, end):
            candidates.append(_event_recommendation(event, rates, occupancy))

    recommendations = [rec for rec in candidates if rec]
    if focus_area == "occupancy_optimization":
        recommendations = [rec for rec in recommendations if rec["adjustment"]["operation"] == "decrease"] or recommendations

    recommendations.sort(
        key=lambda rec: (PRIORITY_ORDER[rec["priority"]], -rec["_monthlyValue"])
    )
    for rec in recommendations:
        rec.pop("_monthlyValue")
    return recommendations
