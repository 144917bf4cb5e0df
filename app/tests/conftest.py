from __future__ import annotations

import os

import pytest

# Settings are also read outside fixtures (get_settings() defaults), so seed the required values
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-role-key")

from app.core.config import Settings  # noqa: E402
from app.tests.fakes import FakeSupabaseClient  # noqa: E402


def _settings_kwargs() -> dict:
    return {
        "supabase_url": "https://example.supabase.co",
        "supabase_service_key": "service-role-key",
    }


@pytest.fixture
def make_settings():
    def factory(**overrides) -> Settings:
        return Settings(**{**_settings_kwargs(), **overrides})

    return factory


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def make_db():
    def factory(tables: dict[str, list[dict]] | None = None, **kwargs) -> FakeSupabaseClient:
        return FakeSupabaseClient(tables, **kwargs)

    return factory
