from __future__ import annotations

import asyncio
from functools import lru_cache

from supabase import Client, create_client

from app.core.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    """Process-wide supabase client built from settings."""
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_service_key)


def get_supabase() -> Client:
    """FastAPI dependency returning the shared supabase client."""
    return get_supabase_client()


async def execute(query):
    """Run a built query in a worker thread so a slow store never blocks the event loop."""
    return await asyncio.to_thread(query.execute)
