from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from nss_portal.api.events.models import (
    EventExternalParticipants,
    EventRegistrations,
    Events,
)
from nss_portal.api.events.registration import service as registration_service
from nss_portal.core.utils.dates import now_ist
from nss_portal.response import CustomHTTPException


async def participant_count(session, event_id: int) -> int:
    volunteers = await session.scalar(
        select(func.count())
        .select_from(EventRegistrations)
        .where(EventRegistrations.event_id == event_id)
    )
    externals = await session.scalar(
        select(func.count())
        .select_from(EventExternalParticipants)
        .where(EventExternalParticipants.event_id == event_id)
    )
    return volunteers + externals


@pytest.mark.asyncio
async def test_register_for_event(client: AsyncClient, make_event, volunteer, volunteer_headers):
    event = await make_event()

    response = await client.post(
        f"/api/events/{event.id}/register", headers=volunteer_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Successfully registered for the event!"
    assert data["event"]["current_participants"] == 1
    registered = data["event"]["registered_volunteers"]
    assert [reg["volunteer"]["id"] for reg in registered] == [volunteer.id]
    assert registered[0]["role"] == "Participant"


@pytest.mark.asyncio
async def test_register_with_role(client: AsyncClient, make_event, volunteer_headers):
    event = await make_event()

    response = await client.post(
        f"/api/events/{event.id}/register",
        json={"role": "Coordinator"},
        headers=volunteer_headers,
    )

    assert response.status_code == 200
    assert response.json()["event"]["registered_volunteers"][0]["role"] == "Coordinator"


@pytest.mark.asyncio
async def test_register_requires_auth(client: AsyncClient, make_event):
    event = await make_event()

    response = await client.post(f"/api/events/{event.id}/register")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_register_missing_event(client: AsyncClient, db_session, volunteer_headers):
    response = await client.post("/api/events/999/register", headers=volunteer_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Event not found"


@pytest.mark.asyncio
async def test_duplicate_registration_rejected(
    client: AsyncClient, make_event, volunteer_headers
):
    event = await make_event()
    await client.post(f"/api/events/{event.id}/register", headers=volunteer_headers)

    response = await client.post(
        f"/api/events/{event.id}/register", headers=volunteer_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Already registered for this event"


@pytest.mark.asyncio
async def test_second_volunteer_gets_event_full(
    client: AsyncClient, make_event, make_user, headers_for
):
    event = await make_event(max_participants=1)
    first = await make_user()
    second = await make_user()

    response = await client.post(
        f"/api/events/{event.id}/register", headers=headers_for(first)
    )
    assert response.status_code == 200
    assert response.json()["event"]["current_participants"] == 1

    response = await client.post(
        f"/api/events/{event.id}/register", headers=headers_for(second)
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Event is full"


@pytest.mark.asyncio
async def test_registration_closes_two_hours_before_start(
    db_session, make_event, volunteer
):
    event = await make_event(start=now_ist() + timedelta(days=1))
    deadline = event.starts_at - timedelta(hours=2)
    assert event.registration_deadline == deadline

    with pytest.raises(CustomHTTPException) as exc:
        await registration_service.register(db_session, event.id, volunteer.id, now=deadline)
    assert exc.value.status_code == 400
    assert exc.value.message == "Registration is closed for this event"

    updated = await registration_service.register(
        db_session, event.id, volunteer.id, now=deadline - timedelta(seconds=1)
    )
    assert updated.current_participants == 1


@pytest.mark.asyncio
async def test_full_event_reported_before_duplicate_and_deadline(
    db_session, make_event, volunteer
):
    event = await make_event(max_participants=1)
    await registration_service.register(db_session, event.id, volunteer.id)

    with pytest.raises(CustomHTTPException) as exc:
        await registration_service.register(
            db_session, event.id, volunteer.id, now=event.starts_at
        )
    assert exc.value.message == "Event is full"


@pytest.mark.asyncio
async def test_unregister(client: AsyncClient, make_event, volunteer_headers):
    event = await make_event()
    await client.post(f"/api/events/{event.id}/register", headers=volunteer_headers)

    response = await client.delete(
        f"/api/events/{event.id}/unregister", headers=volunteer_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Successfully unregistered from the event"
    assert data["event"]["current_participants"] == 0
    assert data["event"]["registered_volunteers"] == []


@pytest.mark.asyncio
async def test_unregister_when_not_registered(
    client: AsyncClient, make_event, volunteer_headers
):
    event = await make_event()

    response = await client.delete(
        f"/api/events/{event.id}/unregister", headers=volunteer_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Not registered for this event"


@pytest.mark.asyncio
async def test_unregister_after_start_rejected(db_session, make_event, volunteer):
    event = await make_event()
    await registration_service.register(db_session, event.id, volunteer.id)

    with pytest.raises(CustomHTTPException) as exc:
        await registration_service.unregister(
            db_session, event.id, volunteer.id, now=event.starts_at
        )
    assert exc.value.status_code == 400
    assert exc.value.message == "Cannot unregister from past or ongoing events"

    event = await registration_service.unregister(
        db_session, event.id, volunteer.id, now=event.starts_at - timedelta(seconds=1)
    )
    assert event.current_participants == 0


@pytest.mark.asyncio
async def test_counter_never_goes_negative(db_session, make_event):
    event = await make_event()

    assert await registration_service.release_seat(db_session, event.id) is False
    await db_session.commit()

    refreshed = await db_session.scalar(
        select(Events.current_participants).where(Events.id == event.id)
    )
    assert refreshed == 0


@pytest.mark.asyncio
async def test_counter_tracks_participants(
    db_session, make_event, make_user, session_factory
):
    event = await make_event(max_participants=3)
    users = [await make_user() for _ in range(4)]

    for user in users[:3]:
        await registration_service.register(db_session, event.id, user.id)
    with pytest.raises(CustomHTTPException):
        await registration_service.register(db_session, event.id, users[3].id)
    await registration_service.unregister(db_session, event.id, users[1].id)
    await registration_service.register(db_session, event.id, users[3].id)
    await registration_service.unregister(db_session, event.id, users[0].id)

    async with session_factory() as session:
        stored = await session.scalar(
            select(Events.current_participants).where(Events.id == event.id)
        )
        assert stored == await participant_count(session, event.id) == 2


@pytest.mark.asyncio
async def test_stale_snapshot_cannot_oversubscribe(make_event, session_factory):
    event = await make_event(max_participants=1)

    async with session_factory() as first, session_factory() as second:
        # both requests see the last free seat
        seen_by_first = await first.get(Events, event.id)
        seen_by_second = await second.get(Events, event.id)
        assert not seen_by_first.is_full
        assert not seen_by_second.is_full

        assert await registration_service.reserve_seat(first, event.id) is True
        await first.commit()

        # a plain read-modify-write from the stale snapshot would write 1 again
        assert seen_by_second.current_participants + 1 == 1
        assert await registration_service.reserve_seat(second, event.id) is False
        await second.rollback()

    async with session_factory() as session:
        stored = await session.scalar(
            select(Events.current_participants).where(Events.id == event.id)
        )
    assert stored == 1


@pytest.mark.asyncio
async def test_my_registered_events(
    client: AsyncClient, make_event, volunteer_headers
):
    joined = await make_event(title="Beach clean-up")
    await make_event(title="Tree plantation")
    await client.post(f"/api/events/{joined.id}/register", headers=volunteer_headers)

    response = await client.get("/api/events/user/registered", headers=volunteer_headers)

    assert response.status_code == 200
    assert [event["title"] for event in response.json()] == ["Beach clean-up"]
