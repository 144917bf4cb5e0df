from __future__ import annotations

from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.crud.audit import get_audit_log, log_tool_call
from app.db.base import get_supabase
from app.tests.fakes import FakeSupabaseClient
import app.api.routes.audit as audit_routes

audit_test_app = FastAPI()
audit_test_app.include_router(audit_routes.router)


def _audit_rows() -> list[dict]:
    return [
        {
            "id": "audit-1",
            "conversation_id": None,
            "source": "agent",
            "tool_name": "updateRoomRates",
            "description": "updateRoomRates succeeded",
            "status": "success",
            "request_payload": {"startDate": "2025-01-01"},
            "response_payload": {"success": True},
            "created_at": "2026-02-24T10:00:00+00:00",
        },
        {
            "id": "audit-2",
            "conversation_id": "chat-1",
            "source": "chat",
            "tool_name": "updateRateClamps",
            "description": "updateRateClamps failed",
            "status": "error",
            "request_payload": None,
            "response_payload": None,
            "created_at": "2026-02-23T10:00:00+00:00",
        },
        {
            "id": "audit-3",
            "conversation_id": None,
            "source": "api",
            "tool_name": "updateRoomRates",
            "description": "updateRoomRates succeeded",
            "status": "success",
            "request_payload": None,
            "response_payload": None,
            "created_at": "2026-02-22T10:00:00+00:00",
        },
    ]


def test_list_audit_log_forwards_filters(monkeypatch):
    audit_test_app.dependency_overrides[get_supabase] = lambda: object()
    get_audit_log_mock = AsyncMock(return_value=([], None))
    monkeypatch.setattr(audit_routes, "get_audit_log", get_audit_log_mock)

    try:
        with TestClient(audit_test_app) as client:
            response = client.get(
                "/v1.0/audit",
                params={"tool_name": " updateRoomRates ", "limit": 5, "cursor": "abc"},
            )

        assert response.status_code == 200
        assert response.json() == {"items": [], "next_cursor": None}
        kwargs = get_audit_log_mock.await_args.kwargs
        assert kwargs["tool_name"] == "updateRoomRates"
        assert kwargs["limit"] == 5
        assert kwargs["cursor"] == "abc"
    finally:
        audit_test_app.dependency_overrides = {}


def test_list_audit_log_rejects_oversized_limit(monkeypatch):
    audit_test_app.dependency_overrides[get_supabase] = lambda: object()
    monkeypatch.setattr(audit_routes, "get_audit_log", AsyncMock(return_value=([], None)))

    try:
        with TestClient(audit_test_app) as client:
            response = client.get("/v1.0/audit", params={"limit": 500})

        assert response.status_code == 422
    finally:
        audit_test_app.dependency_overrides = {}


def test_list_audit_log_returns_rows():
    db = FakeSupabaseClient({"audit_log": _audit_rows()})
    audit_test_app.dependency_overrides[get_supabase] = lambda: db

    try:
        with TestClient(audit_test_app) as client:
            response = client.get("/v1.0/audit", params={"tool_name": "updateRoomRates"})

        assert response.status_code == 200
        body = response.json()
        assert [item["id"] for item in body["items"]] == ["audit-1", "audit-3"]
        assert body["items"][0]["request_payload"] == {"startDate": "2025-01-01"}
    finally:
        audit_test_app.dependency_overrides = {}


def test_get_audit_log_pages_newest_first():
    client = FakeSupabaseClient({"audit_log": _audit_rows()})

    first_page, cursor = _run_async(get_audit_log(client, limit=2))
    second_page, second_cursor = _run_async(get_audit_log(client, limit=2, cursor=cursor))

    assert [item["id"] for item in first_page] == ["audit-1", "audit-2"]
    assert cursor is not None
    assert [item["id"] for item in second_page] == ["audit-3"]
    assert second_cursor is None


def test_get_audit_log_filters_by_tool_name():
    client = FakeSupabaseClient({"audit_log": _audit_rows()})

    items, next_cursor = _run_async(get_audit_log(client, tool_name="updateRateClamps"))

    assert next_cursor is None
    assert [item["id"] for item in items] == ["audit-2"]


def test_log_tool_call_inserts_row():
    client = FakeSupabaseClient()

    _run_async(
        log_tool_call(
            client,
            tool_name="updateHotelSettings",
            description="updateHotelSettings succeeded",
            status="success",
            conversation_id="chat-9",
            source="chat",
            request_payload={"updates": {"name": "Harbor Inn"}},
            response_payload={"success": True},
        )
    )

    [row] = client.tables["audit_log"]
    assert row["tool_name"] == "updateHotelSettings"
    assert row["conversation_id"] == "chat-9"
    assert row["source"] == "chat"
    assert row["status"] == "success"


def test_log_tool_call_failure_does_not_raise():
    client = FakeSupabaseClient(fail_on={"audit_log"})

    _run_async(
        log_tool_call(
            client,
            tool_name="updateRoomRates",
            description="updateRoomRates failed",
            status="error",
        )
    )

    assert "audit_log" not in client.tables


def _run_async(coro):
    import asyncio

    return asyncio.run(coro)
