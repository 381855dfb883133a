import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from nss_portal.response import CustomHTTPException
from nss_portal.api.events.models import (
    EventNotifications,
    EventRegistrations,
    EventStatus,
    EventTypes,
    Events,
    NotificationTypes,
)
from nss_portal.api.events.schemas import (
    AttendedToggleRequest,
    EventCreate,
    EventEdit,
)
from nss_portal.api.users.models import UserRoles, Users
from nss_portal.core.storage.local import save_image_upload
from nss_portal.core.utils.dates import combine_schedule, now_ist, today_ist
from nss_portal.core.validations.exceptions import RequestValidationError

logger = logging.getLogger(__name__)

STARTED_MESSAGE = "Event has started and is now ongoing!"
COMPLETED_MESSAGE = "Event has completed!"


def _summary_options():
    return (selectinload(Events.created_by),)


def _detail_options():
    return (
        selectinload(Events.created_by),
        selectinload(Events.registered_volunteers).selectinload(
            EventRegistrations.volunteer
        ),
        selectinload(Events.external_participants),
        selectinload(Events.notifications),
        selectinload(Events.attendance),
    )


def derive_status(starts_at: datetime, ends_at: datetime, now: datetime) -> EventStatus:
    if starts_at <= now:
        if ends_at <= now:
            return EventStatus.completed
        return EventStatus.ongoing
    return EventStatus.upcoming


def schedule_instants(start_date, start_time, end_date, end_time):
    starts_at = combine_schedule(start_date, start_time)
    ends_at = combine_schedule(end_date, end_time)
    if ends_at < starts_at:
        raise RequestValidationError(end_date="Event cannot end before it starts")
    return starts_at, ends_at


async def get_event_or_404(
    session: AsyncSession, event_id: int, detail: bool = True
) -> Events:
    """
    Load an event, always overwriting whatever the session already holds.

    Counter updates go straight to the database, so the identity map may be
    stale by the time a response is built.
    """
    options = _detail_options() if detail else _summary_options()
    event = await session.scalar(
        select(Events)
        .where(Events.id == event_id)
        .options(*options)
        .execution_options(populate_existing=True)
    )
    if not event:
        raise CustomHTTPException(404, "Event not found")
    return event


def log_notification(
    session: AsyncSession,
    event_id: int,
    type: NotificationTypes,
    message: str,
    sent_to: Optional[list[int]] = None,
    now: Optional[datetime] = None,
) -> EventNotifications:
    notification = EventNotifications(
        event_id=event_id,
        type=type,
        message=message,
        sent_to=sent_to or [],
        sent_at=now or now_ist(),
    )
    session.add(notification)
    return notification


def ensure_can_manage(event: Events, user: Users, action: str):
    if user.role == UserRoles.admin or event.created_by_id == user.id:
        return
    raise CustomHTTPException(403, f"Not authorized to {action}")


async def create_event(
    session: AsyncSession,
    user_id: int,
    event: EventCreate,
    now: Optional[datetime] = None,
) -> Events:
    now = now or now_ist()
    starts_at, ends_at = schedule_instants(
        event.start_date, event.start_time, event.end_date, event.end_time
    )
    image = "/default-event.jpg"
    if event.image:
        image = await save_image_upload(event.image, "event")

    new_event = Events(
        title=event.title,
        description=event.description,
        event_type=event.event_type,
        registration_type=event.registration_type,
        start_date=event.start_date,
        end_date=event.end_date,
        start_time=event.start_time,
        end_time=event.end_time,
        starts_at=starts_at,
        ends_at=ends_at,
        location=event.location,
        max_participants=event.max_participants,
        current_participants=0,
        requirements=event.requirements,
        status=event.status or derive_status(starts_at, ends_at, now),
        image=image,
        created_by_id=user_id,
    )
    session.add(new_event)
    await session.flush()
    log_notification(
        session,
        new_event.id,
        NotificationTypes.created,
        f'New event "{new_event.title}" has been created!',
        now=now,
    )
    await session.commit()
    logger.info("Event %s created by user %s", new_event.id, user_id)
    return await get_event_or_404(session, new_event.id)


async def update_event(
    session: AsyncSession, event_id: int, edit: EventEdit
) -> tuple[Events, list[str]]:
    event = await get_event_or_404(session, event_id, detail=False)
    values = edit.changed_fields()

    changes = []
    if "title" in values and values["title"] != event.title:
        changes.append("title")
    if (
        "registration_type" in values
        and values["registration_type"] != event.registration_type
    ):
        changes.append("registration type")
    if any(
        key in values and values[key] != getattr(event, key)
        for key in ("start_date", "start_time", "end_date", "end_time")
    ):
        changes.append("date/time")
    if "location" in values and values["location"] != event.location:
        changes.append("location")
    if "status" in values and values["status"] != event.status:
        changes.append("status")

    for key, value in values.items():
        setattr(event, key, value)

    event.starts_at, event.ends_at = schedule_instants(
        event.start_date, event.start_time, event.end_date, event.end_time
    )

    if edit.image:
        event.image = await save_image_upload(edit.image, "event")
        changes.append("image")

    # counters may be corrected by hand only while completing an event
    if (
        edit.current_participants is not None
        and edit.status == EventStatus.completed
    ):
        event.current_participants = edit.current_participants

    if changes:
        log_notification(
            session,
            event.id,
            NotificationTypes.updated,
            f'Event "{event.title}" has been updated: {", ".join(changes)} changed',
        )
    await session.commit()
    logger.info("Event %s updated (%s)", event.id, ", ".join(changes) or "no changes")
    return await get_event_or_404(session, event.id), changes


async def delete_event(session: AsyncSession, event_id: int):
    event = await get_event_or_404(session, event_id)
    notified = [registration.volunteer_id for registration in event.registered_volunteers]
    await session.delete(event)
    await session.commit()
    logger.info(
        'Event %s "%s" cancelled, notifying volunteers %s',
        event_id,
        event.title,
        notified,
    )


async def list_events(
    session: AsyncSession,
    status: Optional[EventStatus] = None,
    event_type: Optional[EventTypes] = None,
    search: Optional[str] = None,
    today: bool = False,
    upcoming: bool = False,
    past: bool = False,
    now: Optional[datetime] = None,
) -> list[Events]:
    now = now or now_ist()
    query = select(Events).options(*_summary_options())

    if status is not None:
        query = query.where(Events.status == status)
    if event_type is not None:
        query = query.where(Events.event_type == event_type)
    if today:
        query = query.where(Events.start_date == today_ist())
    if upcoming:
        query = query.where(
            Events.starts_at >= now, Events.starts_at <= now + timedelta(days=7)
        )
    if past:
        query = query.where(Events.ends_at < now)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Events.title.ilike(pattern),
                Events.description.ilike(pattern),
                Events.location.ilike(pattern),
            )
        )

    return list(await session.scalars(query.order_by(Events.starts_at)))


async def categorized_events(
    session: AsyncSession, now: Optional[datetime] = None
) -> dict[str, list[Events]]:
    now = now or now_ist()
    upcoming = await session.scalars(
        select(Events)
        .where(Events.ends_at > now)
        .options(*_summary_options())
        .order_by(Events.starts_at)
    )
    past = await session.scalars(
        select(Events)
        .where(Events.ends_at <= now)
        .options(*_summary_options())
        .order_by(Events.starts_at.desc())
    )
    return {"upcoming": list(upcoming), "past": list(past)}


async def my_registered_events(session: AsyncSession, user_id: int) -> list[Events]:
    query = (
        select(Events)
        .join(EventRegistrations, EventRegistrations.event_id == Events.id)
        .where(EventRegistrations.volunteer_id == user_id)
        .options(*_summary_options())
        .order_by(Events.starts_at)
    )
    return list(await session.scalars(query))


def _volunteer_entry(registration: EventRegistrations) -> dict:
    volunteer = registration.volunteer
    return {
        "participant_id": registration.volunteer_id,
        "participant_type": "nss_volunteer",
        "name": volunteer.name,
        "email": volunteer.email,
        "phone": volunteer.phone,
        "role": registration.role.value,
        "college": volunteer.college,
        "department": volunteer.department,
        "year": volunteer.year,
        "university_id": volunteer.university_roll_no,
        "registration_date": registration.registration_date,
        "attended": registration.attended,
        "attendance_date": registration.attendance_date,
    }


def _external_entry(participant) -> dict:
    return {
        "participant_id": participant.id,
        "participant_type": "external",
        "name": participant.name,
        "email": participant.email,
        "phone": participant.phone,
        "role": participant.role.value,
        "college": None,
        "department": participant.course,
        "year": participant.year,
        "university_id": participant.university_id,
        "registration_date": participant.registration_date,
        "attended": participant.attended,
        "attendance_date": participant.attendance_date,
    }


async def list_participants(session: AsyncSession, event_id: int, user: Users) -> dict:
    event = await get_event_or_404(session, event_id)
    ensure_can_manage(event, user, "view participants")

    participants = [_volunteer_entry(reg) for reg in event.registered_volunteers]
    participants += [_external_entry(ext) for ext in event.external_participants]
    return {
        "event_id": event.id,
        "event_title": event.title,
        "max_participants": event.max_participants,
        "current_participants": event.current_participants,
        "participants": participants,
    }


async def send_reminder(
    session: AsyncSession, event_id: int, user: Users, now: Optional[datetime] = None
) -> tuple[Events, int]:
    now = now or now_ist()
    event = await get_event_or_404(session, event_id)
    ensure_can_manage(event, user, "send reminders")

    urgent = event.starts_at - now <= timedelta(days=1)
    recipients = [reg.volunteer_id for reg in event.registered_volunteers]
    log_notification(
        session,
        event.id,
        NotificationTypes.urgent if urgent else NotificationTypes.reminder,
        f'Reminder: Event "{event.title}" is {"URGENT" if urgent else "coming up"}!',
        sent_to=recipients,
        now=now,
    )
    event.last_notification_sent = now
    await session.commit()
    logger.info("Reminder for event %s sent to %d volunteers", event.id, len(recipients))
    return await get_event_or_404(session, event.id), len(recipients)


async def set_participant_attended(
    session: AsyncSession,
    event_id: int,
    user: Users,
    body: AttendedToggleRequest,
    now: Optional[datetime] = None,
) -> dict:
    now = now or now_ist()
    event = await get_event_or_404(session, event_id)
    ensure_can_manage(event, user, "mark attendance")

    if body.participant_type == "nss_volunteer":
        participants = event.registered_volunteers
        match = [p for p in participants if p.volunteer_id == body.participant_id]
    else:
        participants = event.external_participants
        match = [p for p in participants if p.id == body.participant_id]
    if not match:
        raise CustomHTTPException(404, "Participant not found for this event")

    participant = match[0]
    participant.attended = body.attended
    participant.attendance_date = now if body.attended else None
    await session.commit()

    if body.participant_type == "nss_volunteer":
        return _volunteer_entry(participant)
    return _external_entry(participant)


async def update_event_statuses(
    session: AsyncSession, now: Optional[datetime] = None
) -> tuple[int, int]:
    """
    Move events along ``Upcoming -> Ongoing -> Completed`` by wall clock.

    Returns the number of events that started and that completed.
    """
    now = now or now_ist()

    started = list(
        await session.scalars(
            select(Events.id).where(
                Events.status == EventStatus.upcoming, Events.starts_at <= now
            )
        )
    )
    if started:
        await session.execute(
            update(Events)
            .where(Events.id.in_(started))
            .values(status=EventStatus.ongoing)
            .execution_options(synchronize_session=False)
        )
        for event_id in started:
            log_notification(
                session, event_id, NotificationTypes.status_changed, STARTED_MESSAGE, now=now
            )

    completed = list(
        await session.scalars(
            select(Events.id).where(
                Events.status.in_([EventStatus.upcoming, EventStatus.ongoing]),
                Events.ends_at <= now,
            )
        )
    )
    if completed:
        await session.execute(
            update(Events)
            .where(Events.id.in_(completed))
            .values(status=EventStatus.completed)
            .execution_options(synchronize_session=False)
        )
        for event_id in completed:
            log_notification(
                session,
                event_id,
                NotificationTypes.status_changed,
                COMPLETED_MESSAGE,
                now=now,
            )

    await session.commit()
    if started or completed:
        logger.info(
            "Event statuses updated: %d ongoing, %d completed",
            len(started),
            len(completed),
        )
    return len(started), len(completed)
