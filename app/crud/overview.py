"""Aggregate statistics for the admin overview page."""

from __future__ import annotations

from collections import OrderedDict
from datetime import date, timedelta

from supabase import Client

from app.crud.company_settings import get_company_settings
from app.crud.room_rate import get_room_rates
from app.crud.service import get_services
from app.db.base import execute


def _percent(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part * 100 / whole, 1)


def _to_float(value: object) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


async def count_rooms(client: Client) -> int:
    response = await execute(client.table("rooms").select("id", count="exact").limit(1))
    if response.count is not None:
        return int(response.count)
    return len(response.data or [])


async def get_hotel_overview(client: Client) -> dict:
    company = await get_company_settings(client)
    services = await get_services(client)
    total_rooms = await count_rooms(client)
    return {
        "company": company,
        "services": services,
        "total_rooms": total_rooms,
    }


async def get_monthly_occupancy(
    client: Client, start_date: date, before_date: date
) -> list[dict]:
    """Per-month confirmed share of room-nights for days in [start_date, before_date)."""
    last_day = before_date - timedelta(days=1)
    if last_day < start_date:
        return []

    rows = await get_room_rates(
        client, start_date.isoformat(), last_day.isoformat(), columns="id, day, status"
    )

    months: OrderedDict[date, dict[str, int]] = OrderedDict()
    for row in rows:
        day = date.fromisoformat(str(row["day"])[:10])
        bucket = months.setdefault(day.replace(day=1), {"total": 0, "reserved": 0})
        bucket["total"] += 1
        if row.get("status") == "confirmed":
            bucket["reserved"] += 1

    return [
        {
            "month": month.strftime("%b %Y"),
            "total_rooms": stats["total"],
            "reserved_rooms": stats["reserved"],
            "occupancy_rate": _percent(stats["reserved"], stats["total"]),
        }
        for month, stats in sorted(months.items())
    ]


async def get_week_rates(client: Client, start_date: date, end_date: date) -> list[dict]:
    """Per-day, per-price rows with reservation counts."""
    rows = await get_room_rates(
        client,
        start_date.isoformat(),
        end_date.isoformat(),
        columns="id, day, status, price_usd",
    )

    groups: dict[tuple[str, float], dict[str, int]] = {}
    for row in rows:
        key = (str(row["day"])[:10], _to_float(row.get("price_usd")))
        bucket = groups.setdefault(key, {"total": 0, "reserved": 0, "available": 0})
        bucket["total"] += 1
        if row.get("status") == "confirmed":
            bucket["reserved"] += 1
        elif row.get("status") == "empty":
            bucket["available"] += 1

    results = []
    for (day, price), stats in sorted(groups.items()):
        results.append(
            {
                "date": day,
                "day_name": date.fromisoformat(day).strftime("%a"),
                "price": price,
                "total_rooms": stats["total"],
                "reserved_rooms": stats["reserved"],
                "available_rooms": stats["available"],
                "occupancy_rate": _percent(stats["reserved"], stats["total"]),
            }
        )
    return results
