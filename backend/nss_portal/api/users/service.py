import logging
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nss_portal.response import CustomHTTPException
from nss_portal.api.auth.schemas import NSSApplicationRequest, SignupRequest
from nss_portal.api.users.models import NSSApplicationStatus, UserRoles, Users
from nss_portal.api.events.models import AttendanceStatus, EventAttendance, Events
from nss_portal.core.auth.authentication import get_password_hash, verify_password
from nss_portal.core.validations.schema import validate_unique

logger = logging.getLogger(__name__)


async def create_user(
    session: AsyncSession,
    data: SignupRequest,
    role: UserRoles = UserRoles.volunteer,
) -> Users:
    email = data.email.lower()
    await validate_unique(session, unique={"email": (Users, email)})

    user = Users(
        name=data.name,
        email=email,
        password=get_password_hash(data.password),
        role=role,
        phone=data.phone,
        college=data.college,
        department=data.department,
        year=data.year,
        blood_group=data.blood_group,
        father_name=data.father_name,
        mother_name=data.mother_name,
        address=data.address,
        pin_code=data.pin_code,
        state=data.state,
        district=data.district,
        skills=data.skills,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info("Created %s account %s", role.value, user.email)
    return user


async def get_user_or_404(session: AsyncSession, user_id: int) -> Users:
    user = await session.scalar(select(Users).where(Users.id == user_id))
    if not user:
        raise CustomHTTPException(404, "User not found")
    return user


async def apply_to_nss(
    session: AsyncSession, user_id: int, application: NSSApplicationRequest
) -> tuple[Users, str]:
    """
    Submit or resubmit an NSS application.

    ``not_applied`` and ``rejected`` (and an unanswered ``pending``) move to
    ``pending`` with a fresh snapshot; ``approved`` is terminal. Every
    resubmission after the first application bumps ``reapplication_count``.
    """
    user = await get_user_or_404(session, user_id)

    if user.nss_application_status == NSSApplicationStatus.approved:
        raise CustomHTTPException(
            400, "Your NSS application has already been approved. No changes needed."
        )

    is_resubmission = user.has_applied_to_nss
    if is_resubmission:
        user.reapplication_count = (user.reapplication_count or 0) + 1

    snapshot = application.model_dump(mode="json")
    snapshot["applied_at"] = datetime.now(timezone.utc).isoformat()
    snapshot["reapplication_count"] = user.reapplication_count or 0

    user.has_applied_to_nss = True
    user.nss_application_status = NSSApplicationStatus.pending
    user.nss_application_data = snapshot
    # the application refreshes the profile fields it carries
    user.phone = application.phone
    user.college = application.college
    user.department = application.department
    user.year = application.year
    user.blood_group = application.blood_group
    user.university_roll_no = application.university_roll_no
    user.skills = application.skills

    await session.commit()
    await session.refresh(user)

    if is_resubmission:
        logger.info(
            "NSS application resubmitted by %s (count=%d)",
            user.email,
            user.reapplication_count,
        )
        message = "NSS application updated and resubmitted successfully! Awaiting admin approval."
    else:
        logger.info("NSS application submitted by %s", user.email)
        message = "NSS application submitted successfully! Awaiting admin approval."
    return user, message


async def review_nss_application(
    session: AsyncSession, user_id: int, decision: NSSApplicationStatus
) -> Users:
    if decision not in (NSSApplicationStatus.approved, NSSApplicationStatus.rejected):
        raise ValueError(f"Unsupported review decision: {decision}")

    volunteer = await session.scalar(select(Users).where(Users.id == user_id))
    if not volunteer:
        raise CustomHTTPException(404, "Volunteer not found")
    if volunteer.role != UserRoles.volunteer:
        raise CustomHTTPException(400, "User is not a volunteer")
    if not volunteer.has_applied_to_nss:
        raise CustomHTTPException(400, "Volunteer has not applied to NSS yet")

    volunteer.nss_application_status = decision
    await session.commit()
    await session.refresh(volunteer)
    logger.info("NSS application of %s marked %s", volunteer.email, decision.value)
    return volunteer


async def set_active(session: AsyncSession, user_id: int, is_active: bool) -> Users:
    volunteer = await session.scalar(select(Users).where(Users.id == user_id))
    if not volunteer:
        raise CustomHTTPException(404, "Volunteer not found")
    volunteer.is_active = is_active
    await session.commit()
    await session.refresh(volunteer)
    return volunteer


async def list_volunteers(
    session: AsyncSession, status: NSSApplicationStatus | None = None
) -> list[Users]:
    query = select(Users).where(Users.role == UserRoles.volunteer)
    if status is not None:
        query = query.where(Users.nss_application_status == status)
    return list(await session.scalars(query.order_by(Users.name)))


ATTENDED_STATUSES = (AttendanceStatus.present, AttendanceStatus.late)


async def _attended_events(
    session: AsyncSession,
    volunteer_ids: list[int],
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict[int, list[Events]]:
    """Events each volunteer was marked present or late for."""
    attended = {volunteer_id: [] for volunteer_id in volunteer_ids}
    if not volunteer_ids:
        return attended

    query = (
        select(EventAttendance.volunteer_id, Events)
        .join(Events, Events.id == EventAttendance.event_id)
        .where(
            EventAttendance.volunteer_id.in_(volunteer_ids),
            EventAttendance.status.in_(ATTENDED_STATUSES),
        )
        .order_by(Events.starts_at)
    )
    if start_date:
        query = query.where(Events.start_date >= start_date)
    if end_date:
        query = query.where(Events.start_date <= end_date)

    for volunteer_id, event in await session.execute(query):
        attended[volunteer_id].append(event)
    return attended


def _event_hours(event: Events) -> float:
    return (event.ends_at - event.starts_at).total_seconds() / 3600


async def get_volunteer_detail(session: AsyncSession, user_id: int) -> dict:
    volunteer = await session.scalar(select(Users).where(Users.id == user_id))
    if not volunteer:
        raise CustomHTTPException(404, "Volunteer not found")

    events = (await _attended_events(session, [volunteer.id]))[volunteer.id]
    return {
        "volunteer": volunteer,
        "events_attended": events,
        "total_hours": round(sum(_event_hours(event) for event in events), 2),
    }


async def volunteer_participation_report(
    session: AsyncSession,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict:
    """
    Participation rollup over approved NSS volunteers.

    Hours are the scheduled length of each event the volunteer attended;
    the date range limits the events counted, not the volunteers listed.
    """
    volunteers = await list_volunteers(session, status=NSSApplicationStatus.approved)
    attended = await _attended_events(
        session, [volunteer.id for volunteer in volunteers], start_date, end_date
    )

    rows = []
    for volunteer in volunteers:
        events = attended[volunteer.id]
        rows.append(
            {
                "id": volunteer.id,
                "name": volunteer.name,
                "email": volunteer.email,
                "events_attended": len(events),
                "total_hours": round(sum(_event_hours(event) for event in events), 2),
            }
        )

    total_hours = round(sum(row["total_hours"] for row in rows), 2)
    return {
        "total_volunteers": len(rows),
        "total_hours": total_hours,
        "total_events": sum(row["events_attended"] for row in rows),
        "average_hours_per_volunteer": round(total_hours / len(rows), 2) if rows else 0,
        "volunteers": rows,
    }


async def change_password(
    session: AsyncSession, user_id: int, current_password: str, new_password: str
) -> Users:
    user = await get_user_or_404(session, user_id)
    if not verify_password(current_password, user.password):
        raise CustomHTTPException(400, "Current password is incorrect")

    user.password = get_password_hash(new_password)
    await session.commit()
    logger.info("Password changed for %s", user.email)
    return user
