from datetime import date, datetime
from typing import Literal

from pydantic import Field

from nss_portal.api.events.models import AttendanceStatus
from nss_portal.api.events.schemas import RegistrationPublic
from nss_portal.api.users.schemas import UserContact, UserPublicMin
from nss_portal.core.response.base_model import CustomBaseModel

NOT_MARKED = "not-marked"


class AttendanceRecordIn(CustomBaseModel):
    volunteer_id: int = Field(...)
    status: AttendanceStatus = Field(...)
    remarks: str = Field("", max_length=500)


class MarkAttendanceRequest(CustomBaseModel):
    attendance_data: list[AttendanceRecordIn] = Field(..., min_length=1)
    default_absent: bool = Field(
        False, description="record every other registered volunteer as absent"
    )


class AttendancePublic(CustomBaseModel):
    id: int
    volunteer: UserContact
    status: AttendanceStatus
    remarks: str
    marked_by: UserPublicMin
    marked_at: datetime


class MarkAttendanceResponse(CustomBaseModel):
    message: str
    attendance: list[AttendancePublic]


class AttendanceEventInfo(CustomBaseModel):
    id: int
    title: str
    start_date: date
    end_date: date
    start_time: str
    end_time: str
    location: str


class EventAttendanceResponse(CustomBaseModel):
    event: AttendanceEventInfo
    registered_volunteers: list[RegistrationPublic]
    attendance: list[AttendancePublic]


class AttendanceHistoryEntry(CustomBaseModel):
    event_id: int
    title: str
    event_date: date
    event_time: str
    location: str
    status: AttendanceStatus
    remarks: str
    marked_at: datetime


class ReportEventDetails(CustomBaseModel):
    id: int
    title: str
    event_date: date
    event_time: str
    location: str
    total_volunteers: int


class ReportRow(CustomBaseModel):
    name: str
    email: str
    phone: str | None = None
    university_roll_no: str | None = None
    status: AttendanceStatus | Literal["not-marked"]
    remarks: str = ""
    marked_at: datetime | None = None


class AttendanceReport(CustomBaseModel):
    event_details: ReportEventDetails
    attendance: list[ReportRow]


class ImportSkippedRow(CustomBaseModel):
    row: int
    email: str
    reason: str


class ImportAttendanceResponse(CustomBaseModel):
    message: str
    imported: int
    skipped: list[ImportSkippedRow]


class EventAttendanceStats(CustomBaseModel):
    event_id: int
    event_title: str
    event_date: date
    total_registered: int
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    not_marked: int = 0


class AttendanceStatsResponse(CustomBaseModel):
    total_events: int
    total_attendance_records: int
    present_count: int
    absent_count: int
    late_count: int
    excused_count: int
    attendance_by_event: list[EventAttendanceStats]
