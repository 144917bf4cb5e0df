from __future__ import annotations

from supabase import Client

from app.db.base import execute


async def get_competitor_rates(
    client: Client, start_date: str, end_date: str
) -> list[dict]:
    response = await execute(
        client.table("competitor_room_rates")
        .select("day, room_type, price")
        .gte("day", start_date)
        .lte("day", end_date)
        .order("day")
    )
    return response.data or []
