import logging
from datetime import date, datetime
from typing import Optional

import pandas as pd
from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from nss_portal.response import CustomHTTPException
from nss_portal.api.attendance.schemas import NOT_MARKED, AttendanceRecordIn
from nss_portal.api.events.models import (
    AttendanceStatus,
    EventAttendance,
    EventRegistrations,
    EventStatus,
    Events,
)
from nss_portal.api.users.models import NSSApplicationStatus, UserRoles, Users
from nss_portal.core.utils.dates import now_ist, today_ist
from nss_portal.core.utils.excel import read_excel
from nss_portal.core.validations.exceptions import RequestValidationError
from nss_portal.core.validations.schema import validate_existing_ids

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "name",
    "email",
    "phone",
    "university_roll_no",
    "status",
    "remarks",
    "marked_at",
]


async def _load_event(session: AsyncSession, event_id: int) -> Events:
    event = await session.scalar(
        select(Events)
        .where(Events.id == event_id)
        .options(
            selectinload(Events.registered_volunteers).selectinload(
                EventRegistrations.volunteer
            ),
            selectinload(Events.attendance).selectinload(EventAttendance.volunteer),
            selectinload(Events.attendance).selectinload(EventAttendance.marked_by),
        )
        .execution_options(populate_existing=True)
    )
    if not event:
        raise CustomHTTPException(404, "Event not found")
    return event


async def get_event_attendance(session: AsyncSession, event_id: int) -> dict:
    event = await _load_event(session, event_id)
    return {
        "event": event,
        "registered_volunteers": event.registered_volunteers,
        "attendance": event.attendance,
    }


async def mark_attendance(
    session: AsyncSession,
    event_id: int,
    records: list[AttendanceRecordIn],
    marked_by: int,
    default_absent: bool = False,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> list[EventAttendance]:
    """
    Upsert one attendance row per volunteer for an event.

    Marking opens on the event's start date (IST calendar day). With
    ``default_absent`` every registered volunteer still without a row after
    this batch is recorded absent.
    """
    today = today or today_ist()
    now = now or now_ist()
    event = await _load_event(session, event_id)

    if event.start_date > today:
        raise CustomHTTPException(
            400,
            "Cannot mark attendance for future events. "
            "Attendance can only be marked on or after the event date.",
            errors={
                "event_date": event.start_date.isoformat(),
                "current_date": today.isoformat(),
            },
        )

    await validate_existing_ids(
        session, Users, [record.volunteer_id for record in records], "volunteer_id"
    )

    existing = {row.volunteer_id: row for row in event.attendance}
    for record in records:
        row = existing.get(record.volunteer_id)
        if row is None:
            row = EventAttendance(event_id=event.id, volunteer_id=record.volunteer_id)
            session.add(row)
            existing[record.volunteer_id] = row
        row.status = record.status
        row.remarks = record.remarks or ""
        row.marked_by_id = marked_by
        row.marked_at = now

    defaulted = 0
    if default_absent:
        for registration in event.registered_volunteers:
            if registration.volunteer_id in existing:
                continue
            row = EventAttendance(
                event_id=event.id,
                volunteer_id=registration.volunteer_id,
                status=AttendanceStatus.absent,
                remarks="",
                marked_by_id=marked_by,
                marked_at=now,
            )
            session.add(row)
            existing[registration.volunteer_id] = row
            defaulted += 1

    await session.commit()
    logger.info(
        "Attendance for event %s marked by user %s: %d records, %d defaulted absent",
        event_id,
        marked_by,
        len(records),
        defaulted,
    )
    event = await _load_event(session, event_id)
    return event.attendance


async def get_attendance_history(
    session: AsyncSession, volunteer_id: int, user: Users
) -> list[dict]:
    if user.role != UserRoles.admin and user.id != volunteer_id:
        raise CustomHTTPException(403, "Access denied")

    rows = await session.execute(
        select(EventAttendance, Events)
        .join(Events, Events.id == EventAttendance.event_id)
        .where(
            EventAttendance.volunteer_id == volunteer_id,
            Events.status == EventStatus.completed,
        )
        .order_by(Events.starts_at.desc())
    )
    return [
        {
            "event_id": event.id,
            "title": event.title,
            "event_date": event.start_date,
            "event_time": f"{event.start_time} - {event.end_time}",
            "location": event.location,
            "status": record.status,
            "remarks": record.remarks or "",
            "marked_at": record.marked_at,
        }
        for record, event in rows
    ]


async def export_attendance_report(session: AsyncSession, event_id: int) -> dict:
    """One row per approved NSS volunteer, ``not-marked`` where no record exists."""
    event = await _load_event(session, event_id)
    volunteers = list(
        await session.scalars(
            select(Users)
            .where(
                Users.role == UserRoles.volunteer,
                Users.nss_application_status == NSSApplicationStatus.approved,
            )
            .order_by(Users.name, Users.id)
        )
    )
    marked = {row.volunteer_id: row for row in event.attendance}

    rows = []
    for volunteer in volunteers:
        record = marked.get(volunteer.id)
        rows.append(
            {
                "name": volunteer.name,
                "email": volunteer.email,
                "phone": volunteer.phone,
                "university_roll_no": volunteer.university_roll_no,
                "status": record.status.value if record else NOT_MARKED,
                "remarks": record.remarks if record else "",
                "marked_at": record.marked_at if record else None,
            }
        )

    return {
        "event_details": {
            "id": event.id,
            "title": event.title,
            "event_date": event.start_date,
            "event_time": f"{event.start_time} - {event.end_time}",
            "location": event.location,
            "total_volunteers": len(volunteers),
        },
        "attendance": rows,
    }


def report_dataframe(report: dict) -> pd.DataFrame:
    df = pd.DataFrame(report["attendance"], columns=REPORT_COLUMNS)
    df["marked_at"] = df["marked_at"].map(
        lambda value: value.isoformat() if isinstance(value, datetime) else ""
    )
    return df


async def import_attendance_report(
    session: AsyncSession,
    event_id: int,
    file: UploadFile,
    marked_by: int,
    today: Optional[date] = None,
) -> dict:
    df = await read_excel(file)
    df.columns = [str(column).strip().lower() for column in df.columns]
    missing = [column for column in ("email", "status") if column not in df.columns]
    if missing:
        raise RequestValidationError(
            message="Invalid attendance file",
            **{column: "column is required" for column in missing},
        )

    emails = {str(email).strip().lower() for email in df["email"] if str(email).strip()}
    users = {}
    if emails:
        result = await session.execute(
            select(Users.email, Users.id).where(Users.email.in_(emails))
        )
        users = dict(result.all())

    statuses = {status.value for status in AttendanceStatus}
    records = []
    skipped = []
    for index, row in enumerate(df.to_dict(orient="records"), start=2):
        email = str(row["email"]).strip().lower()
        status = str(row["status"]).strip().lower()
        if status == NOT_MARKED:
            continue
        if status not in statuses:
            skipped.append({"row": index, "email": email, "reason": f"unknown status '{status}'"})
            continue
        if email not in users:
            skipped.append({"row": index, "email": email, "reason": "no such user"})
            continue
        records.append(
            AttendanceRecordIn(
                volunteer_id=users[email],
                status=AttendanceStatus(status),
                remarks=str(row.get("remarks", "") or ""),
            )
        )

    if records:
        await mark_attendance(session, event_id, records, marked_by, today=today)
    else:
        await _load_event(session, event_id)

    logger.info(
        "Imported %d attendance rows for event %s (%d skipped)",
        len(records),
        event_id,
        len(skipped),
    )
    return {
        "message": f"Imported {len(records)} attendance records",
        "imported": len(records),
        "skipped": skipped,
    }


async def attendance_stats(
    session: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict:
    query = select(Events).options(
        selectinload(Events.registered_volunteers), selectinload(Events.attendance)
    )
    if start_date:
        query = query.where(Events.start_date >= start_date)
    if end_date:
        query = query.where(Events.start_date <= end_date)
    events = list(await session.scalars(query.order_by(Events.starts_at)))

    totals = {status.value: 0 for status in AttendanceStatus}
    by_event = []
    for event in events:
        counts = {status.value: 0 for status in AttendanceStatus}
        for record in event.attendance:
            counts[record.status.value] += 1
            totals[record.status.value] += 1
        registered = {reg.volunteer_id for reg in event.registered_volunteers}
        marked = {record.volunteer_id for record in event.attendance}
        by_event.append(
            {
                "event_id": event.id,
                "event_title": event.title,
                "event_date": event.start_date,
                "total_registered": len(registered),
                **counts,
                "not_marked": len(registered - marked),
            }
        )

    return {
        "total_events": len(events),
        "total_attendance_records": sum(totals.values()),
        "present_count": totals["present"],
        "absent_count": totals["absent"],
        "late_count": totals["late"],
        "excused_count": totals["excused"],
        "attendance_by_event": by_event,
    }
