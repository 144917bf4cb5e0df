from __future__ import annotations

from datetime import datetime, timezone

from supabase import Client

from app.db.base import execute


async def get_company_settings(client: Client) -> dict | None:
    """The hotel keeps a single company_settings row."""
    response = await execute(client.table("company_settings").select("*").limit(1))
    return response.data[0] if response.data else None


async def update_company_settings(
    client: Client, settings_id: str, data: dict
) -> dict | None:
    row = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}
    await execute(client.table("company_settings").update(row).eq("id", settings_id))
    return await get_company_settings(client)
