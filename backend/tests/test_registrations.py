"""
Tests for registration and cancellation, through the API and the service layer.
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from conftest import past
from event_registry.core.exceptions import (
    AlreadyRegisteredError,
    EventFullError,
    StoreBusyError,
    UserNotFoundError,
)
from event_registry.services.registration_service import count_registrations, register_for_event


async def register(client: AsyncClient, event_id, user_id):
    return await client.post(f"/api/v1/events/{event_id}/register", json={"user_id": str(user_id)})


async def cancel(client: AsyncClient, event_id, user_id):
    return await client.request("DELETE", f"/api/v1/events/{event_id}/cancel", json={"user_id": str(user_id)})


@pytest.mark.asyncio
async def test_register(client: AsyncClient, test_event, test_user):
    response = await register(client, test_event.id, test_user.id)
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Registered successfully"
    assert data["event_id"] == str(test_event.id)
    assert data["user_id"] == str(test_user.id)
    assert data["id"]

    stats = (await client.get(f"/api/v1/events/{test_event.id}/stats")).json()
    assert stats["total_registrations"] == 1
    assert stats["remaining_capacity"] == 99


@pytest.mark.asyncio
async def test_register_unknown_user(client: AsyncClient, test_event):
    response = await register(client, test_event.id, uuid4())
    assert response.status_code == 404
    assert response.json()["error"] == "user_not_found"


@pytest.mark.asyncio
async def test_register_unknown_event(client: AsyncClient, test_user):
    response = await register(client, uuid4(), test_user.id)
    assert response.status_code == 404
    assert response.json()["error"] == "event_not_found"


@pytest.mark.asyncio
async def test_unknown_user_checked_before_unknown_event(client: AsyncClient):
    response = await register(client, uuid4(), uuid4())
    assert response.json()["error"] == "user_not_found"


@pytest.mark.asyncio
async def test_register_malformed_user_id(client: AsyncClient, test_event):
    response = await client.post(f"/api/v1/events/{test_event.id}/register", json={"user_id": "42"})
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_input"


@pytest.mark.asyncio
async def test_register_past_event(client: AsyncClient, make_event, test_user):
    """Past events reject registration even with every place free."""
    event = await make_event(capacity=1000, when=past())
    response = await register(client, event.id, test_user.id)
    assert response.status_code == 400
    assert response.json()["error"] == "event_in_past"


@pytest.mark.asyncio
async def test_register_full_event(client: AsyncClient, make_event, make_user):
    event = await make_event(capacity=1)
    first, second = await make_user(), await make_user()

    assert (await register(client, event.id, first.id)).status_code == 201
    response = await register(client, event.id, second.id)
    assert response.status_code == 409
    assert response.json()["error"] == "event_full"


@pytest.mark.asyncio
async def test_duplicate_registration(client: AsyncClient, test_event, test_user):
    assert (await register(client, test_event.id, test_user.id)).status_code == 201

    response = await register(client, test_event.id, test_user.id)
    assert response.status_code == 409
    assert response.json()["error"] == "already_registered"


@pytest.mark.asyncio
async def test_full_and_duplicate_have_distinct_codes(client: AsyncClient, make_event, make_user):
    event = await make_event(capacity=2)
    a, b = await make_user(), await make_user()
    await register(client, event.id, a.id)

    duplicate = await register(client, event.id, a.id)
    await register(client, event.id, b.id)
    full = await register(client, event.id, (await make_user()).id)

    assert duplicate.json()["error"] == "already_registered"
    assert full.json()["error"] == "event_full"


@pytest.mark.asyncio
async def test_cancel(client: AsyncClient, test_event, test_user):
    await register(client, test_event.id, test_user.id)

    response = await cancel(client, test_event.id, test_user.id)
    assert response.status_code == 200
    assert response.json()["message"] == "Registration cancelled successfully"

    stats = (await client.get(f"/api/v1/events/{test_event.id}/stats")).json()
    assert stats["total_registrations"] == 0
    assert stats["remaining_capacity"] == 100


@pytest.mark.asyncio
async def test_cancel_not_registered(client: AsyncClient, test_event, test_user):
    response = await cancel(client, test_event.id, test_user.id)
    assert response.status_code == 400
    assert response.json()["error"] == "not_registered"


@pytest.mark.asyncio
async def test_cancel_unknown_event(client: AsyncClient, test_user):
    response = await cancel(client, uuid4(), test_user.id)
    assert response.status_code == 400
    assert response.json()["error"] == "not_registered"


@pytest.mark.asyncio
async def test_cancel_twice_does_not_double_free(client: AsyncClient, make_event, make_user):
    event = await make_event(capacity=2)
    a, b = await make_user(), await make_user()
    await register(client, event.id, a.id)
    await register(client, event.id, b.id)

    assert (await cancel(client, event.id, a.id)).status_code == 200
    second = await cancel(client, event.id, a.id)
    assert second.status_code == 400
    assert second.json()["error"] == "not_registered"

    stats = (await client.get(f"/api/v1/events/{event.id}/stats")).json()
    assert stats["total_registrations"] == 1
    assert stats["remaining_capacity"] == 1


@pytest.mark.asyncio
async def test_cancel_then_reregister(client: AsyncClient, make_event, make_user):
    event = await make_event(capacity=1)
    u, v = await make_user(name="U"), await make_user(name="V")

    assert (await register(client, event.id, u.id)).status_code == 201
    assert (await register(client, event.id, v.id)).json()["error"] == "event_full"
    assert (await cancel(client, event.id, u.id)).status_code == 200
    assert (await register(client, event.id, v.id)).status_code == 201

    detail = (await client.get(f"/api/v1/events/{event.id}")).json()
    assert [a["name"] for a in detail["registered_users"]] == ["V"]


@pytest.mark.asyncio
async def test_retryable_errors_carry_retry_after(client: AsyncClient, test_event, test_user, monkeypatch):
    async def busy(*args, **kwargs):
        raise StoreBusyError()

    monkeypatch.setattr("event_registry.api.routes.registrations.register_for_event", busy)

    response = await register(client, test_event.id, test_user.id)
    assert response.status_code == 503
    assert response.json()["error"] == "busy"
    assert response.headers["Retry-After"] == "1"


@pytest.mark.asyncio
async def test_service_rejection_writes_nothing(database, make_event, make_user):
    event = await make_event(capacity=1)
    a, b = await make_user(), await make_user()

    async with database.session() as session:
        await register_for_event(session, event.id, a.id)

    async with database.session() as session:
        with pytest.raises(EventFullError):
            await register_for_event(session, event.id, b.id)

    async with database.session() as session:
        with pytest.raises(UserNotFoundError):
            await register_for_event(session, event.id, uuid4())

    async with database.session() as session:
        assert await count_registrations(session, event.id) == 1


@pytest.mark.asyncio
async def test_full_event_reported_before_duplicate(database, make_event, make_user):
    """Capacity is checked before duplication."""
    event = await make_event(capacity=1)
    user = await make_user()

    async with database.session() as session:
        await register_for_event(session, event.id, user.id)

    async with database.session() as session:
        with pytest.raises(EventFullError):
            await register_for_event(session, event.id, user.id)


@pytest.mark.asyncio
async def test_duplicate_on_open_event(database, make_event, make_user):
    event = await make_event(capacity=5)
    user = await make_user()

    async with database.session() as session:
        await register_for_event(session, event.id, user.id)

    async with database.session() as session:
        with pytest.raises(AlreadyRegisteredError):
            await register_for_event(session, event.id, user.id)
