from __future__ import annotations

from datetime import datetime, timezone

from supabase import Client

from app.db.base import execute


async def get_services(client: Client, names: list[str] | None = None) -> list[dict]:
    query = client.table("services").select("*").order("name")
    if names:
        query = query.in_("name", names)
    response = await execute(query)
    return response.data or []


async def get_service_by_name(client: Client, name: str) -> dict | None:
    response = await execute(
        client.table("services")
        .select("*")
        .eq("name", name)
        .limit(1)
    )
    return response.data[0] if response.data else None


async def get_services_by_ids(client: Client, service_ids: list[str]) -> list[dict]:
    if not service_ids:
        return []
    response = await execute(client.table("services").select("*").in_("id", service_ids))
    return response.data or []


async def update_service(client: Client, service_id: str, data: dict) -> dict | None:
    row = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}
    response = await execute(client.table("services").update(row).eq("id", service_id))
    return response.data[0] if response.data else None
