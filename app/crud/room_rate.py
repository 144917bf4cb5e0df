from __future__ import annotations

from datetime import datetime, timezone

from supabase import Client

from app.db.base import execute

PAGE_SIZE = 1000
UPSERT_CHUNK_SIZE = 500


async def get_room_rates(
    client: Client,
    start_date: str,
    end_date: str,
    columns: str = "*",
    limit: int | None = None,
) -> list[dict]:
    """Return every room_rates row with `day` in [start_date, end_date], ordered by day."""
    rows: list[dict] = []
    offset = 0
    while True:
        page_size = PAGE_SIZE if limit is None else min(PAGE_SIZE, limit - len(rows))
        if page_size <= 0:
            break
        response = await execute(
            client.table("room_rates")
            .select(columns)
            .gte("day", start_date)
            .lte("day", end_date)
            .order("day")
            .order("id")
            .range(offset, offset + page_size - 1)
        )
        batch = response.data or []
        rows.extend(batch)
        if len(batch) < page_size:
            break
        offset += page_size
    return rows


async def update_room_rate_prices(client: Client, rows: list[dict]) -> int:
    """Persist new `price_usd` values for full room_rates rows. Returns the row count written."""
    if not rows:
        return 0

    updated_at = datetime.now(timezone.utc).isoformat()
    payload = [{**row, "updated_at": updated_at} for row in rows]
    for start in range(0, len(payload), UPSERT_CHUNK_SIZE):
        chunk = payload[start : start + UPSERT_CHUNK_SIZE]
        await execute(client.table("room_rates").upsert(chunk, on_conflict="id"))
    return len(payload)
