from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from nss_portal.api.events.models import (
    EventNotifications,
    EventStatus,
    Events,
    NotificationTypes,
)
from nss_portal.api.events.scheduler import EventStatusScheduler
from nss_portal.api.events.service import COMPLETED_MESSAGE, STARTED_MESSAGE
from nss_portal.core.utils.dates import now_ist


async def status_of(session_factory, event_id):
    async with session_factory() as session:
        return await session.scalar(select(Events.status).where(Events.id == event_id))


async def status_messages(session_factory, event_id):
    async with session_factory() as session:
        rows = await session.scalars(
            select(EventNotifications)
            .where(
                EventNotifications.event_id == event_id,
                EventNotifications.type == NotificationTypes.status_changed,
            )
            .order_by(EventNotifications.id)
        )
        return [row.message for row in rows]


@pytest.mark.asyncio
async def test_tick_walks_event_through_its_lifecycle(make_event, session_factory):
    event = await make_event(duration=timedelta(hours=2))
    scheduler = EventStatusScheduler(session_factory)

    assert await scheduler.tick(now=event.starts_at - timedelta(minutes=1)) == (0, 0)
    assert await status_of(session_factory, event.id) == EventStatus.upcoming

    assert await scheduler.tick(now=event.starts_at) == (1, 0)
    assert await status_of(session_factory, event.id) == EventStatus.ongoing

    assert await scheduler.tick(now=event.ends_at) == (0, 1)
    assert await status_of(session_factory, event.id) == EventStatus.completed

    assert await status_messages(session_factory, event.id) == [
        STARTED_MESSAGE,
        COMPLETED_MESSAGE,
    ]


@pytest.mark.asyncio
async def test_tick_completes_events_missed_while_down(make_event, session_factory):
    event = await make_event()
    scheduler = EventStatusScheduler(session_factory)

    assert await scheduler.tick(now=event.ends_at + timedelta(days=1)) == (1, 1)
    assert await status_of(session_factory, event.id) == EventStatus.completed
    assert await status_messages(session_factory, event.id) == [
        STARTED_MESSAGE,
        COMPLETED_MESSAGE,
    ]


@pytest.mark.asyncio
async def test_tick_is_idempotent(make_event, session_factory):
    event = await make_event()
    scheduler = EventStatusScheduler(session_factory)
    later = event.ends_at + timedelta(minutes=5)

    await scheduler.tick(now=later)
    assert await scheduler.tick(now=later) == (0, 0)
    assert len(await status_messages(session_factory, event.id)) == 2


@pytest.mark.asyncio
async def test_tick_survives_database_errors(caplog):
    def broken_factory():
        raise RuntimeError("database unavailable")

    scheduler = EventStatusScheduler(broken_factory)

    assert await scheduler.tick() is None
    assert "Error updating event statuses" in caplog.text


@pytest.mark.asyncio
async def test_start_and_stop(db_session, session_factory):
    scheduler = EventStatusScheduler(session_factory, interval=3600)

    await scheduler.start()
    assert scheduler.running
    await scheduler.stop()

    assert not scheduler.running
    assert scheduler._task is None


@pytest.mark.asyncio
async def test_update_statuses_endpoint(
    client: AsyncClient, make_event, admin_headers, session_factory
):
    finished = await make_event(start=now_ist() - timedelta(days=1))
    pending = await make_event()

    response = await client.post("/api/events/update-statuses", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {
        "message": "Event statuses updated successfully!",
        "ongoing": 1,
        "completed": 1,
    }
    assert await status_of(session_factory, finished.id) == EventStatus.completed
    assert await status_of(session_factory, pending.id) == EventStatus.upcoming


@pytest.mark.asyncio
async def test_update_statuses_requires_admin(client: AsyncClient, volunteer_headers):
    response = await client.post("/api/events/update-statuses", headers=volunteer_headers)

    assert response.status_code == 403
