"""Tool handlers for the Bellhop assistant.

Each handler receives the shared AgentContext and an already-validated input
model, calls the CRUD layer, and returns a JSON-serializable payload. Predictable
failures are raised as ToolError subclasses; the executor turns them into
structured results for the model.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any

from app.agents.exceptions import HotelSettingsNotFoundError, ToolError, UnknownServiceError
from app.agents.guardrails import check_data_window, shift_year, within_window
from app.agents.pricing import (
    apply_adjustment,
    average,
    build_market_analysis,
    find_clamp_violations,
    generate_recommendations,
    round_money,
    to_float,
)
from app.agents.prompts import PRICING_SOP_MARKDOWN
from app.crud.company_settings import get_company_settings, update_company_settings
from app.crud.competitor import get_competitor_rates
from app.crud.room_rate import get_room_rates as fetch_room_rates
from app.crud.room_rate import update_room_rate_prices
from app.crud.service import (
    get_service_by_name,
    get_services,
    get_services_by_ids,
    update_service,
)
from app.schemas.tools import (
    AnalyzePricingOpportunitiesInput,
    ExecutePricingActionInput,
    GetHotelSettingsInput,
    GetOccupancyDataInput,
    GetPricingSopInput,
    GetRateClampsInput,
    GetRoomRatesInput,
    GetWeatherInput,
    RateAdjustment,
    UpdateHotelSettingsInput,
    UpdateRateClampsInput,
    UpdateRoomRatesInput,
    UpdateServiceClampInput,
)
from app.services.weather import get_weather_report

if TYPE_CHECKING:
    from app.agents.definitions import AgentContext

logger = logging.getLogger(__name__)

# Tool-facing key -> company_settings column
HOTEL_SETTINGS_FIELDS = OrderedDict(
    [
        ("name", "name"),
        ("address", "address"),
        ("url", "url"),
        ("contact", "contact"),
        ("phoneNumber", "phone_number"),
    ]
)
ANALYSIS_RATE_SAMPLE = 100
MAX_REPORTED_VIOLATIONS = 20

CURRENT_SERIES_COLOR = "#2563eb"
COMPARISON_SERIES_COLOR = "#f97316"


def _day(row: dict) -> str:
    return str(row["day"])[:10]


# -- Occupancy --


async def _occupancy_by_day(
    context: AgentContext, start_date: str, end_date: str, as_of: str
) -> list[dict]:
    rows = await fetch_room_rates(
        context.client, start_date, end_date, columns="id, day, status, date_booked"
    )
    days: OrderedDict[str, dict[str, int]] = OrderedDict()
    for row in rows:
        bucket = days.setdefault(_day(row), {"total": 0, "occupied": 0})
        bucket["total"] += 1
        booked = row.get("date_booked")
        # A timestamp later on the as-of day sorts after the bare date, as in SQL
        if row.get("status") == "confirmed" and (booked is None or str(booked) <= as_of):
            bucket["occupied"] += 1

    return [
        {
            "date": day,
            "totalRooms": stats["total"],
            "occupiedRooms": stats["occupied"],
            "occupancyRate": round_money(stats["occupied"] * 100 / stats["total"]),
        }
        for day, stats in sorted(days.items())
    ]


def _month_day(value: str) -> tuple[int, int]:
    parsed = date.fromisoformat(value)
    return parsed.month, parsed.day


def _format_points(change: float) -> str:
    return f"{round(abs(change), 1):g}"


def build_occupancy_chart(
    current: list[dict],
    comparison: list[dict] | None,
    change: float | None,
    as_of: str,
) -> dict:
    """Grouped-bar chart of this period against the same days last year."""
    categories = []
    for day in current:
        parsed = date.fromisoformat(day["date"])
        categories.append(f"{parsed:%a} {parsed:%b} {parsed.day}")

    current_year = date.fromisoformat(current[0]["date"]).year
    series = [
        {
            "id": f"current-{current_year}",
            "label": f"{current_year} occupancy",
            "values": [day["occupancyRate"] for day in current],
            "color": CURRENT_SERIES_COLOR,
        }
    ]

    if comparison:
        lookup = {_month_day(day["date"]): day for day in comparison}
        comparison_year = date.fromisoformat(comparison[0]["date"]).year
        values = []
        for day in current:
            match = lookup.get(_month_day(day["date"]))
            values.append(match["occupancyRate"] if match else None)
        series.append(
            {
                "id": f"comparison-{comparison_year}",
                "label": f"{comparison_year} occupancy",
                "values": values,
                "color": COMPARISON_SERIES_COLOR,
            }
        )

    as_of_day = date.fromisoformat(as_of)
    chart: dict[str, Any] = {
        "kind": "grouped-bar",
        "title": "Upcoming occupancy vs last year",
        "subtitle": f"As of {as_of_day:%b} {as_of_day.day}, {as_of_day.year}",
        "categories": categories,
        "series": series,
        "yAxisLabel": "Occupancy (%)",
        "valueFormatter": "percentage",
        "maxValue": 100,
    }
    if change is not None:
        if change == 0:
            chart["insight"] = "Occupancy is flat versus last year."
        elif change > 0:
            chart["insight"] = f"Occupancy is up {_format_points(change)} pts vs last year."
        else:
            chart["insight"] = f"Occupancy is down {_format_points(change)} pts vs last year."
    if not comparison:
        chart["footnote"] = "Year-over-year comparison unavailable for this range."
    return chart


async def get_occupancy_data(context: AgentContext, args: GetOccupancyDataInput) -> dict:
    settings = context.settings
    window_error = check_data_window(
        args.start_date, args.end_date, settings.data_window_start, settings.data_window_end
    )
    if window_error:
        logger.warning(f"Occupancy request outside data window: {args.start_date} to {args.end_date}")
        return window_error

    as_of = args.as_of_date or date.today().isoformat()
    current = await _occupancy_by_day(context, args.start_date, args.end_date, as_of)

    comparison = None
    if args.include_yoy_comparison:
        start_ly = shift_year(date.fromisoformat(args.start_date))
        end_ly = shift_year(date.fromisoformat(args.end_date))
        as_of_ly = shift_year(date.fromisoformat(as_of))
        if within_window(start_ly, end_ly, settings.data_window_start, settings.data_window_end):
            comparison = await _occupancy_by_day(
                context, start_ly.isoformat(), end_ly.isoformat(), as_of_ly.isoformat()
            )
        else:
            logger.info("Last-year dates fall outside the data window, skipping comparison")

    avg_occupancy = (
        round_money(average(day["occupancyRate"] for day in current)) if current else 0
    )
    avg_last_year = (
        round_money(average(day["occupancyRate"] for day in comparison)) if comparison else None
    )
    change = round_money(avg_occupancy - avg_last_year) if avg_last_year is not None else None

    result: dict[str, Any] = {
        "current": current,
        "comparison": comparison,
        "summary": {
            "avgOccupancy": avg_occupancy,
            "avgOccupancyLastYear": avg_last_year,
            "change": change,
            "asOfDate": as_of,
            "dateRange": f"{args.start_date} to {args.end_date}",
        },
    }
    if current:
        result["chart"] = build_occupancy_chart(current, comparison, change, as_of)
    return result


# -- Room rates --


async def get_room_rates(context: AgentContext, args: GetRoomRatesInput) -> dict:
    rows = await fetch_room_rates(
        context.client, args.start_date, args.end_date, columns="id, day, price_usd"
    )
    prices_by_day: OrderedDict[str, list[float]] = OrderedDict()
    for row in rows:
        prices_by_day.setdefault(_day(row), []).append(to_float(row.get("price_usd")))

    rates = [
        {
            "date": day,
            "averageRate": round_money(sum(prices) / len(prices)),
            "minRate": min(prices),
            "maxRate": max(prices),
            "totalRooms": len(prices),
        }
        for day, prices in sorted(prices_by_day.items())
    ]
    overall = round_money(average(rate["averageRate"] for rate in rates)) if rates else 0
    return {
        "rates": rates,
        "summary": {
            "overallAverageRate": overall,
            "dateRange": {"start": args.start_date, "end": args.end_date},
        },
    }


async def _apply_rate_change(
    context: AgentContext,
    start_date: str,
    end_date: str,
    adjustment: RateAdjustment,
) -> dict:
    """Shared write path for updateRoomRates and executePricingAction.

    Returns either a refusal payload (`success` False) or the change summary
    fields used by both tools.
    """
    rows = await fetch_room_rates(context.client, start_date, end_date)
    previous_prices = [to_float(row.get("price_usd")) for row in rows]
    adjusted = [
        {**row, "new_price": apply_adjustment(price, adjustment)}
        for row, price in zip(rows, previous_prices)
    ]

    service_ids = sorted({row["service_id"] for row in rows if row.get("service_id")})
    services = await get_services_by_ids(context.client, service_ids)
    violations = find_clamp_violations(adjusted, {service["id"]: service for service in services})

    if violations and context.settings.rate_clamp_policy == "enforce":
        logger.warning(
            f"Rate change {adjustment.describe()} for {start_date}..{end_date} "
            f"refused: {len(violations)} clamp violation(s)"
        )
        return {
            "success": False,
            "error": "Adjustment violates rate clamps",
            "details": (
                f"{len(violations)} room-night(s) would fall outside their service rate clamps. "
                "No rates were changed."
            ),
            "violations": violations[:MAX_REPORTED_VIOLATIONS],
        }

    write_rows = []
    for row in adjusted:
        new_price = row.pop("new_price")
        write_rows.append({**row, "price_usd": new_price})
    affected_rooms = await update_room_rate_prices(context.client, write_rows)

    new_prices = [row["price_usd"] for row in write_rows]
    result = {
        "success": True,
        "affectedDates": len({_day(row) for row in rows}),
        "affectedRooms": affected_rooms,
        "previousAverageRate": round_money(average(previous_prices)) if rows else 0,
        "newAverageRate": round_money(average(new_prices)) if rows else 0,
    }
    if violations:
        result["clampWarnings"] = violations[:MAX_REPORTED_VIOLATIONS]
    return result


async def update_room_rates(context: AgentContext, args: UpdateRoomRatesInput) -> dict:
    change = await _apply_rate_change(context, args.start_date, args.end_date, args.adjustment)
    if not change["success"]:
        return change

    result = {
        "success": True,
        "affectedDates": change["affectedDates"],
        "affectedRooms": change["affectedRooms"],
        "summary": {
            "dateRange": {"start": args.start_date, "end": args.end_date},
            "adjustment": args.adjustment.describe(),
            "newAverageRate": change["newAverageRate"],
            "previousAverageRate": change["previousAverageRate"],
            "reason": args.reason or "No reason provided",
        },
    }
    if "clampWarnings" in change:
        result["clampWarnings"] = change["clampWarnings"]
    return result


async def execute_pricing_action(context: AgentContext, args: ExecutePricingActionInput) -> dict:
    if not args.user_approval:
        logger.warning("executePricingAction called without user approval")
        return {
            "success": False,
            "error": "User approval required before executing pricing changes",
            "actionRequired": "user_confirmation",
        }

    change = await _apply_rate_change(context, args.start_date, args.end_date, args.adjustment)
    if not change["success"]:
        return change

    description = args.adjustment.describe()
    result = {
        "success": True,
        "message": f"Successfully executed pricing change: {description}",
        "summary": {
            "dateRange": {"start": args.start_date, "end": args.end_date},
            "adjustment": description,
            "newAverageRate": change["newAverageRate"],
            "previousAverageRate": change["previousAverageRate"],
            "affectedRooms": change["affectedRooms"],
            "reason": args.reason or "Pricing optimization",
        },
        "executedAt": datetime.now(timezone.utc).isoformat(),
    }
    if "clampWarnings" in change:
        result["clampWarnings"] = change["clampWarnings"]
    return result


# -- Rate clamps --


def _clamp_bounds(service: dict) -> dict:
    return {
        "min": to_float(service.get("rate_lower_usd")),
        "max": to_float(service.get("rate_upper_usd")),
    }


async def get_rate_clamps(context: AgentContext, args: GetRateClampsInput) -> dict:
    services = await get_services(context.client, args.service_names)
    return {
        "rateClamps": [
            {
                "serviceName": service["name"],
                "serviceId": service["id"],
                "minRate": to_float(service.get("rate_lower_usd")),
                "maxRate": to_float(service.get("rate_upper_usd")),
                "clamp": service.get("clamp"),
            }
            for service in services
        ]
    }


async def update_rate_clamps(context: AgentContext, args: UpdateRateClampsInput) -> dict:
    names = sorted({update.service_name for update in args.updates})
    existing = {service["name"]: service for service in await get_services(context.client, names)}

    # Validate the whole batch before the first write
    for update in args.updates:
        if update.service_name not in existing:
            raise UnknownServiceError(update.service_name)

    working = {name: _clamp_bounds(service) for name, service in existing.items()}
    planned = []
    for update in args.updates:
        old = dict(working[update.service_name])
        new = {
            "min": update.min_rate if update.min_rate is not None else old["min"],
            "max": update.max_rate if update.max_rate is not None else old["max"],
        }
        if new["min"] > new["max"]:
            raise ToolError(
                "minRate must be less than or equal to maxRate",
                details={"serviceName": update.service_name, "minRate": new["min"], "maxRate": new["max"]},
            )
        working[update.service_name] = new
        planned.append((update, old, new))

    updated_services = []
    for update, old, new in planned:
        data = {}
        if update.min_rate is not None:
            data["rate_lower_usd"] = update.min_rate
        if update.max_rate is not None:
            data["rate_upper_usd"] = update.max_rate
        if data:
            await update_service(context.client, existing[update.service_name]["id"], data)
        updated_services.append(
            {"serviceName": update.service_name, "oldClamps": old, "newClamps": new}
        )

    return {
        "success": True,
        "updatedServices": updated_services,
        "reason": args.reason or "No reason provided",
    }


async def update_service_clamp(context: AgentContext, args: UpdateServiceClampInput) -> dict:
    service = await get_service_by_name(context.client, args.service_name)
    if not service:
        raise UnknownServiceError(args.service_name)

    new_clamp = args.clamp.model_dump(by_alias=True, exclude_none=True)
    await update_service(context.client, service["id"], {"clamp": new_clamp})
    return {
        "success": True,
        "serviceId": service["id"],
        "previousClamp": service.get("clamp"),
        "newClamp": new_clamp,
        "reason": args.reason or "No reason supplied",
    }


# -- Hotel settings --


def _settings_payload(row: dict) -> dict:
    payload = {"id": row.get("id")}
    for key, column in HOTEL_SETTINGS_FIELDS.items():
        payload[key] = row.get(column)
    payload["createdAt"] = row.get("created_at")
    payload["updatedAt"] = row.get("updated_at")
    return payload


async def get_hotel_settings(context: AgentContext, args: GetHotelSettingsInput) -> dict:
    row = await get_company_settings(context.client)
    if not row:
        raise HotelSettingsNotFoundError()

    payload = _settings_payload(row)
    if args.requested_fields:
        return {field: payload[field] for field in args.requested_fields if field in payload}
    return payload


async def update_hotel_settings(context: AgentContext, args: UpdateHotelSettingsInput) -> dict:
    row = await get_company_settings(context.client)
    if not row:
        raise HotelSettingsNotFoundError()

    updated_fields = [key for key in args.updates if key in HOTEL_SETTINGS_FIELDS]
    if not updated_fields:
        return {
            "success": False,
            "error": "No valid fields provided for update",
            "details": f"Valid fields are: {', '.join(HOTEL_SETTINGS_FIELDS)}",
        }

    data = {HOTEL_SETTINGS_FIELDS[key]: args.updates[key] for key in updated_fields}
    new_row = await update_company_settings(context.client, row["id"], data) or {**row, **data}
    current = _settings_payload(new_row)
    current.pop("createdAt")
    return {
        "success": True,
        "updatedFields": updated_fields,
        "currentSettings": current,
        "reason": args.reason or "No reason provided",
    }


# -- Analysis and context --


async def analyze_pricing_opportunities(
    context: AgentContext, args: AnalyzePricingOpportunitiesInput
) -> dict:
    start_date = args.date_range.start_date
    end_date = args.date_range.end_date
    try:
        rates = await fetch_room_rates(context.client, start_date, end_date)
        competitor_rows = await get_competitor_rates(context.client, start_date, end_date)
        start, end = date.fromisoformat(start_date), date.fromisoformat(end_date)
        market = build_market_analysis(start, end, args.focus_area, competitor_rows)
        recommendations = generate_recommendations(rates, market, args.focus_area, start, end)
    except Exception as exc:
        logger.error(f"Pricing analysis failed for {start_date}..{end_date}: {exc}", exc_info=True)
        return {
            "success": False,
            "error": f"Failed to analyze pricing opportunities: {exc}",
            "recommendations": [],
        }

    return {
        "success": True,
        "currentRates": [
            {
                "day": _day(rate),
                "priceUsd": to_float(rate.get("price_usd")),
                "roomId": rate.get("room_id"),
                "serviceId": rate.get("service_id"),
                "status": rate.get("status"),
                "lastUpdated": rate.get("updated_at"),
            }
            for rate in rates[:ANALYSIS_RATE_SAMPLE]
        ],
        "marketAnalysis": market,
        "recommendations": recommendations,
        "executionReady": bool(recommendations),
        "metadata": {
            "analysisDate": datetime.now(timezone.utc).isoformat(),
            "focusArea": args.focus_area or "comprehensive",
            "confidenceLevel": "high" if market["source"] == "competitor_rates" else "medium",
            "ratesAnalyzed": len(rates),
        },
    }


async def get_weather(context: AgentContext, args: GetWeatherInput) -> dict:
    row = await get_company_settings(context.client)
    if not row:
        raise HotelSettingsNotFoundError("Cannot determine hotel location for weather data")

    settings = context.settings
    report = await get_weather_report(
        settings.hotel_latitude,
        settings.hotel_longitude,
        forecast_url=settings.weather_forecast_url,
        archive_url=settings.weather_archive_url,
        include_historical=args.include_historical,
        days_back=args.days_back,
        timeout=settings.weather_timeout_seconds,
    )
    return {
        "location": {"address": row.get("address"), "coordinates": report["coordinates"]},
        "current": report["current"],
        "historical": report["historical"],
        "comparison": report["comparison"],
    }


async def get_pricing_sop(context: AgentContext, args: GetPricingSopInput) -> dict:
    return {"markdown": PRICING_SOP_MARKDOWN}
