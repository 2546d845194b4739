"""HTTP-level tests for routing, identity headers and error mapping."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from marketplace.core.errors import ConflictError, ValidationFailedError
from marketplace.db.session import get_session
from marketplace.main import app
from marketplace.schemas.workflow import TransitionResponse
from marketplace.services import applications as applications_service
from marketplace.services import availability as availability_service
from marketplace.services.webhook import get_notifier

HEADERS = {"X-User-Id": "owner-1", "X-User-Email": "owner@example.com"}


@pytest.fixture
def client_app():
    async def fake_session():
        yield object()

    app.dependency_overrides[get_session] = fake_session
    app.dependency_overrides[get_notifier] = lambda: object()
    yield app
    app.dependency_overrides.clear()


async def request(app_, method: str, url: str, **kwargs):
    transport = ASGITransport(app=app_)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        return await client.request(method, url, **kwargs)


@pytest.mark.asyncio
async def test_missing_identity_is_unauthenticated(client_app):
    response = await request(client_app, "POST", "/api/applications/app-1/approve")

    assert response.status_code == 401
    assert response.json() == {"detail": "Authentication required", "kind": "unauthenticated"}


@pytest.mark.asyncio
async def test_approve_route_passes_caller_identity(client_app, monkeypatch):
    approve = AsyncMock(
        return_value=TransitionResponse(
            id="app-1", action="approve", previous_status="pending", status="approved", phase="confirmed"
        )
    )
    monkeypatch.setattr(applications_service, "approve_application", approve)

    response = await request(client_app, "POST", "/api/applications/app-1/approve", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    ctx = approve.await_args.args[1]
    assert ctx.user_id == "owner-1"
    assert ctx.email == "owner@example.com"


@pytest.mark.asyncio
async def test_undo_forwards_confirmation_flag(client_app, monkeypatch):
    undo = AsyncMock(side_effect=ValidationFailedError("Confirmation is required to undo"))
    monkeypatch.setattr(applications_service, "undo_approval", undo)

    response = await request(
        client_app, "POST", "/api/applications/app-1/undo", headers=HEADERS, json={"confirm": False}
    )

    assert response.status_code == 422
    assert response.json()["kind"] == "validation"
    assert undo.await_args.kwargs["confirm"] is False


@pytest.mark.asyncio
async def test_duplicate_application_maps_to_conflict(client_app, monkeypatch):
    monkeypatch.setattr(
        applications_service,
        "submit_application",
        AsyncMock(side_effect=ConflictError("You have already applied to this property")),
    )

    response = await request(
        client_app,
        "POST",
        "/api/applications",
        headers=HEADERS,
        json={"property_id": "prop-1", "message": "x" * 40},
    )

    assert response.status_code == 409
    assert response.json() == {"detail": "You have already applied to this property", "kind": "conflict"}


@pytest.mark.asyncio
async def test_selectable_slots_route_is_public(client_app, monkeypatch):
    selectable = AsyncMock(return_value={"date": "2030-01-02", "slots": [{"id": "10-11", "label": "10:00 - 11:00"}]})
    monkeypatch.setattr(availability_service, "selectable_time_slots", selectable)

    response = await request(client_app, "GET", "/api/properties/prop-1/availability/2030-01-02/selectable")

    assert response.status_code == 200
    assert response.json()["slots"][0]["id"] == "10-11"
    assert str(selectable.await_args.args[1]) == "2030-01-02"


@pytest.mark.asyncio
async def test_health_answers_get_and_head(client_app):
    response = await request(client_app, "GET", "/api/health")
    head = await request(client_app, "HEAD", "/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert head.status_code == 200


@pytest.mark.asyncio
async def test_robots_and_favicon(client_app):
    robots = await request(client_app, "GET", "/robots.txt")
    favicon = await request(client_app, "GET", "/favicon.ico")

    assert "User-agent" in robots.text
    assert favicon.headers.get("content-type") == "image/png"
