from datetime import date, datetime
from typing import Annotated, Literal, Optional, Union

from fastapi import File, Form, UploadFile
from pydantic import EmailStr, Field, field_validator

from nss_portal.api.auth.schemas import NonEmpty, Phone, check_blood_group
from nss_portal.api.events.models import (
    EventStatus,
    EventTypes,
    ExternalRoles,
    NotificationTypes,
    RegistrationTypes,
    VolunteerRoles,
)
from nss_portal.api.users.schemas import UserContact, UserPublicMin
from nss_portal.core.response.base_model import CustomBaseModel
from nss_portal.core.utils.dates import parse_time
from nss_portal.core.validations.exceptions import RequestValidationError


def _check_time(field: str, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return parse_time(value).strftime("%H:%M")
    except ValueError:
        raise RequestValidationError(**{field: "Time must be in HH:MM format"})


class EventCreate:
    def __init__(
        self,
        title: str = Form(..., min_length=1, max_length=200),
        description: str = Form(..., min_length=1),
        start_date: date = Form(...),
        start_time: str = Form(...),
        location: str = Form(..., min_length=1),
        event_type: EventTypes = Form(EventTypes.community_service),
        registration_type: RegistrationTypes = Form(RegistrationTypes.internal),
        end_date: Optional[date] = Form(None),
        end_time: Optional[str] = Form(None),
        max_participants: int = Form(50, ge=1),
        requirements: Optional[str] = Form(None),
        status: Optional[EventStatus] = Form(None),
        image: Optional[UploadFile] = File(None),
    ):
        self.title = title
        self.description = description
        self.event_type = event_type
        self.registration_type = registration_type
        self.start_date = start_date
        self.start_time = _check_time("start_time", start_time)
        # single-day events default to the start values
        self.end_date = end_date or start_date
        self.end_time = _check_time("end_time", end_time) or self.start_time
        self.location = location
        self.max_participants = max_participants
        self.requirements = requirements or "No special requirements"
        self.status = status
        self.image = image


class EventEdit:
    def __init__(
        self,
        title: Optional[str] = Form(None, min_length=1, max_length=200),
        description: Optional[str] = Form(None),
        event_type: Optional[EventTypes] = Form(None),
        registration_type: Optional[RegistrationTypes] = Form(None),
        start_date: Optional[date] = Form(None),
        end_date: Optional[date] = Form(None),
        start_time: Optional[str] = Form(None),
        end_time: Optional[str] = Form(None),
        location: Optional[str] = Form(None),
        max_participants: Optional[int] = Form(None, ge=1),
        requirements: Optional[str] = Form(None),
        status: Optional[EventStatus] = Form(None),
        current_participants: Optional[int] = Form(None, ge=0),
        image: Optional[UploadFile] = File(None),
    ):
        self.title = title
        self.description = description
        self.event_type = event_type
        self.registration_type = registration_type
        self.start_date = start_date
        self.end_date = end_date
        self.start_time = _check_time("start_time", start_time)
        self.end_time = _check_time("end_time", end_time)
        self.location = location
        self.max_participants = max_participants
        self.requirements = requirements
        self.status = status
        self.current_participants = current_participants
        self.image = image

    def changed_fields(self) -> dict:
        fields = {
            "title": self.title,
            "description": self.description,
            "event_type": self.event_type,
            "registration_type": self.registration_type,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "location": self.location,
            "max_participants": self.max_participants,
            "requirements": self.requirements,
            "status": self.status,
        }
        return {key: value for key, value in fields.items() if value is not None}


class RegisterRequest(CustomBaseModel):
    role: VolunteerRoles = Field(VolunteerRoles.participant)


class AttendedToggleRequest(CustomBaseModel):
    participant_id: int = Field(...)
    attended: bool = Field(...)
    participant_type: Literal["nss_volunteer", "external"] = Field("nss_volunteer")


class ExternalParticipantBase(CustomBaseModel):
    name: NonEmpty = Field(..., max_length=100)
    email: EmailStr
    phone: Phone
    age: int = Field(..., ge=16, le=100)
    blood_group: str = Field(...)

    @field_validator("blood_group")
    @classmethod
    def validate_blood_group(cls, value):
        return check_blood_group(value)


class StudentParticipantCreate(ExternalParticipantBase):
    role: Literal["Student"]
    university_id: NonEmpty = Field(..., max_length=50)
    course: NonEmpty = Field(..., max_length=100)
    year: int = Field(..., ge=1, le=5)


class StaffParticipantCreate(ExternalParticipantBase):
    role: Literal["Staff"]
    university_id: Optional[str] = Field(None, max_length=50)


ExternalParticipantCreate = Annotated[
    Union[StudentParticipantCreate, StaffParticipantCreate],
    Field(discriminator="role"),
]


# RESPONSE MODELS


class NotificationPublic(CustomBaseModel):
    id: int
    type: NotificationTypes
    message: str | None = None
    sent_at: datetime
    sent_to: list[int] = []


class RegistrationPublic(CustomBaseModel):
    id: int
    volunteer: UserContact
    role: VolunteerRoles
    registration_date: datetime
    attended: bool
    attendance_date: datetime | None = None


class ExternalParticipantPublic(CustomBaseModel):
    id: int
    name: str
    email: str
    phone: str
    role: ExternalRoles
    university_id: str | None = None
    course: str | None = None
    year: int | None = None
    age: int
    blood_group: str
    registration_date: datetime
    attended: bool
    attendance_date: datetime | None = None


class EventListResponse(CustomBaseModel):
    id: int = Field(...)
    title: str = Field(...)
    description: str = Field(...)
    event_type: EventTypes = Field(...)
    registration_type: RegistrationTypes = Field(...)
    start_date: date = Field(...)
    end_date: date = Field(...)
    start_time: str = Field(...)
    end_time: str = Field(...)
    starts_at: datetime = Field(...)
    ends_at: datetime = Field(...)
    location: str = Field(...)
    max_participants: int = Field(...)
    current_participants: int = Field(...)
    available_spots: int = Field(...)
    is_full: bool = Field(...)
    registration_deadline: datetime = Field(...)
    registration_open: bool = Field(...)
    requirements: str = Field(...)
    status: EventStatus = Field(...)
    image: str = Field(...)
    created_by: UserPublicMin = Field(...)


class EventDetailResponse(EventListResponse):
    last_notification_sent: datetime | None = Field(None)
    registered_volunteers: list[RegistrationPublic] = Field([])
    external_participants: list[ExternalParticipantPublic] = Field([])
    notifications: list[NotificationPublic] = Field([])
    created_at: datetime = Field(...)
    updated_at: datetime = Field(...)


class EventActionResponse(CustomBaseModel):
    message: str
    event: EventDetailResponse


class CategorizedEventsResponse(CustomBaseModel):
    upcoming: list[EventListResponse]
    past: list[EventListResponse]


class ExternalRegistrationResponse(CustomBaseModel):
    message: str
    participant: ExternalParticipantPublic


class ParticipantEntry(CustomBaseModel):
    participant_id: int
    participant_type: Literal["nss_volunteer", "external"]
    name: str
    email: str
    phone: str | None = None
    role: str
    college: str | None = None
    department: str | None = None
    year: int | None = None
    university_id: str | None = None
    registration_date: datetime
    attended: bool
    attendance_date: datetime | None = None


class ParticipantsResponse(CustomBaseModel):
    event_id: int
    event_title: str
    max_participants: int
    current_participants: int
    participants: list[ParticipantEntry]


class AttendedToggleResponse(CustomBaseModel):
    message: str
    participant: ParticipantEntry


class StatusSweepResponse(CustomBaseModel):
    message: str
    ongoing: int
    completed: int
