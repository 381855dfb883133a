import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nss_portal.response import CustomHTTPException
from nss_portal.api.events import service as events_service
from nss_portal.api.events.models import (
    EventExternalParticipants,
    EventRegistrations,
    Events,
    ExternalRoles,
    RegistrationTypes,
    VolunteerRoles,
)
from nss_portal.api.events.schemas import (
    ExternalParticipantCreate,
    StudentParticipantCreate,
)
from nss_portal.core.utils.dates import now_ist

logger = logging.getLogger(__name__)


async def reserve_seat(session: AsyncSession, event_id: int) -> bool:
    """
    Take one seat if the event still has one.

    The capacity check lives in the UPDATE itself, so two requests that both
    read a free seat can never both take it.
    """
    result = await session.execute(
        update(Events)
        .where(
            Events.id == event_id,
            Events.current_participants < Events.max_participants,
        )
        .values(current_participants=Events.current_participants + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def release_seat(session: AsyncSession, event_id: int) -> bool:
    result = await session.execute(
        update(Events)
        .where(Events.id == event_id, Events.current_participants > 0)
        .values(current_participants=Events.current_participants - 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def register(
    session: AsyncSession,
    event_id: int,
    user_id: int,
    role: VolunteerRoles = VolunteerRoles.participant,
    now: Optional[datetime] = None,
) -> Events:
    now = now or now_ist()
    event = await events_service.get_event_or_404(session, event_id, detail=False)

    if event.is_full:
        raise CustomHTTPException(400, "Event is full")

    already_registered = await session.scalar(
        select(
            exists().where(
                EventRegistrations.event_id == event_id,
                EventRegistrations.volunteer_id == user_id,
            )
        )
    )
    if already_registered:
        raise CustomHTTPException(400, "Already registered for this event")

    if now >= event.registration_deadline:
        raise CustomHTTPException(400, "Registration is closed for this event")

    if not await reserve_seat(session, event_id):
        await session.rollback()
        raise CustomHTTPException(400, "Event is full")

    session.add(
        EventRegistrations(
            event_id=event_id,
            volunteer_id=user_id,
            role=role,
            registration_date=now,
        )
    )
    try:
        await session.commit()
    except IntegrityError:
        # a parallel request registered the same volunteer first
        await session.rollback()
        raise CustomHTTPException(400, "Already registered for this event")

    logger.info("User %s registered for event %s as %s", user_id, event_id, role.value)
    return await events_service.get_event_or_404(session, event_id)


async def unregister(
    session: AsyncSession,
    event_id: int,
    user_id: int,
    now: Optional[datetime] = None,
) -> Events:
    now = now or now_ist()
    event = await events_service.get_event_or_404(session, event_id, detail=False)

    registration = await session.scalar(
        select(EventRegistrations).where(
            EventRegistrations.event_id == event_id,
            EventRegistrations.volunteer_id == user_id,
        )
    )
    if not registration:
        raise CustomHTTPException(400, "Not registered for this event")

    if now >= event.starts_at:
        raise CustomHTTPException(400, "Cannot unregister from past or ongoing events")

    await session.delete(registration)
    await release_seat(session, event_id)
    await session.commit()

    logger.info("User %s unregistered from event %s", user_id, event_id)
    return await events_service.get_event_or_404(session, event_id)


async def external_register(
    session: AsyncSession, event_id: int, data: ExternalParticipantCreate
) -> EventExternalParticipants:
    event = await events_service.get_event_or_404(session, event_id, detail=False)

    if event.registration_type != RegistrationTypes.public:
        raise CustomHTTPException(
            403, "This event does not allow external registration"
        )

    if event.is_full:
        raise CustomHTTPException(400, "Event is full")

    email = data.email.lower()
    duplicate = await session.scalar(
        select(
            exists().where(
                EventExternalParticipants.event_id == event_id,
                func.lower(EventExternalParticipants.email) == email,
            )
        )
    )
    if duplicate:
        raise CustomHTTPException(400, "Email already registered for this event")

    if not await reserve_seat(session, event_id):
        await session.rollback()
        raise CustomHTTPException(400, "Event is full")

    is_student = isinstance(data, StudentParticipantCreate)
    participant = EventExternalParticipants(
        event_id=event_id,
        name=data.name,
        email=email,
        phone=data.phone,
        role=ExternalRoles(data.role),
        university_id=data.university_id,
        course=data.course if is_student else "N/A",
        year=data.year if is_student else None,
        age=data.age,
        blood_group=data.blood_group,
        registration_date=now_ist(),
    )
    session.add(participant)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise CustomHTTPException(400, "Email already registered for this event")

    logger.info("External %s %s registered for event %s", data.role, email, event_id)
    return participant
