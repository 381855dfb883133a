from datetime import date

from pydantic import Field

from nss_portal.api.events.models import EventTypes
from nss_portal.api.users.models import NSSApplicationStatus, UserRoles
from nss_portal.core.response.base_model import CustomBaseModel


class UserPublicMin(CustomBaseModel):
    id: int = Field(...)
    name: str = Field(...)
    email: str = Field(...)


class UserContact(UserPublicMin):
    phone: str | None = Field(None)
    university_roll_no: str | None = Field(None)


class VolunteerAdminView(UserContact):
    role: UserRoles = Field(...)
    college: str | None = Field(None)
    department: str | None = Field(None)
    year: int | None = Field(None)
    is_active: bool = Field(...)
    has_applied_to_nss: bool = Field(...)
    nss_application_status: NSSApplicationStatus = Field(...)
    nss_application_data: dict | None = Field(None)
    reapplication_count: int = Field(0)


class MessageResponse(CustomBaseModel):
    message: str


class AttendedEvent(CustomBaseModel):
    id: int
    title: str
    start_date: date
    event_type: EventTypes


class VolunteerDetailResponse(CustomBaseModel):
    volunteer: VolunteerAdminView
    events_attended: list[AttendedEvent]
    total_hours: float


class ParticipationRow(CustomBaseModel):
    id: int
    name: str
    email: str
    events_attended: int
    total_hours: float


class ParticipationReport(CustomBaseModel):
    total_volunteers: int
    total_hours: float
    total_events: int
    average_hours_per_volunteer: float
    volunteers: list[ParticipationRow]
