import enum
from datetime import datetime, timedelta, timezone
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Enum,
    ForeignKey,
    Integer,
    JSON,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from nss_portal.config import settings
from nss_portal.core.utils.dates import now_ist
from nss_portal.core.utils.db_fields import TZAwareDateTime
from nss_portal.db.base import AbstractSQLModel
from nss_portal.db.mixins import TimestampsMixin


class EventTypes(enum.Enum):
    community_service = "Community Service"
    educational = "Educational"
    cultural = "Cultural"
    environmental = "Environmental"
    health = "Health"
    emergency = "Emergency"
    other = "Other"


class RegistrationTypes(enum.Enum):
    internal = "internal"
    public = "public"


class EventStatus(enum.Enum):
    upcoming = "Upcoming"
    ongoing = "Ongoing"
    completed = "Completed"
    cancelled = "Cancelled"
    postponed = "Postponed"


class VolunteerRoles(enum.Enum):
    participant = "Participant"
    coordinator = "Coordinator"
    team_leader = "Team Leader"


class ExternalRoles(enum.Enum):
    student = "Student"
    staff = "Staff"


class AttendanceStatus(enum.Enum):
    present = "present"
    absent = "absent"
    late = "late"
    excused = "excused"


class NotificationTypes(enum.Enum):
    created = "Created"
    updated = "Updated"
    cancelled = "Cancelled"
    reminder = "Reminder"
    urgent = "Urgent"
    status_changed = "Status Changed"


class Events(AbstractSQLModel, TimestampsMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(String, nullable=False)
    event_type = Column(
        Enum(EventTypes, values_callable=lambda e: [x.value for x in e]),
        nullable=False,
        default=EventTypes.community_service,
    )
    registration_type = Column(
        Enum(RegistrationTypes),
        nullable=False,
        default=RegistrationTypes.internal,
    )

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_time = Column(String(10), nullable=False)
    end_time = Column(String(10), nullable=False)
    # canonical instants derived from the date + time pairs above
    starts_at = Column(TZAwareDateTime(timezone=True), nullable=False, index=True)
    ends_at = Column(TZAwareDateTime(timezone=True), nullable=False, index=True)

    location = Column(String, nullable=False)
    max_participants = Column(Integer, nullable=False, default=50)
    current_participants = Column(Integer, nullable=False, default=0)
    requirements = Column(String, nullable=False, default="No special requirements")
    status = Column(
        Enum(EventStatus, values_callable=lambda e: [x.value for x in e]),
        nullable=False,
        default=EventStatus.upcoming,
        index=True,
    )
    image = Column(String, nullable=False, default="/default-event.jpg")
    last_notification_sent = Column(TZAwareDateTime(timezone=True), nullable=True)

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    created_by = relationship("Users")
    registered_volunteers = relationship(
        "EventRegistrations",
        back_populates="event",
        order_by="EventRegistrations.id",
        cascade="all, delete-orphan",
    )
    external_participants = relationship(
        "EventExternalParticipants",
        back_populates="event",
        order_by="EventExternalParticipants.id",
        cascade="all, delete-orphan",
    )
    attendance = relationship(
        "EventAttendance",
        back_populates="event",
        order_by="EventAttendance.id",
        cascade="all, delete-orphan",
    )
    notifications = relationship(
        "EventNotifications",
        back_populates="event",
        order_by="EventNotifications.id",
        cascade="all, delete-orphan",
    )

    @property
    def is_full(self) -> bool:
        return self.current_participants >= self.max_participants

    @property
    def available_spots(self) -> int:
        return max(0, self.max_participants - self.current_participants)

    @property
    def registration_deadline(self) -> datetime:
        return self.starts_at - timedelta(hours=settings.REGISTRATION_CUTOFF_HOURS)

    @property
    def registration_open(self) -> bool:
        return now_ist() < self.registration_deadline

    @property
    def is_urgent(self) -> bool:
        remaining = self.starts_at - now_ist()
        return remaining <= timedelta(days=1)


class EventRegistrations(AbstractSQLModel, TimestampsMixin):
    __tablename__ = "event_registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    volunteer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    role = Column(
        Enum(VolunteerRoles, values_callable=lambda e: [x.value for x in e]),
        nullable=False,
        default=VolunteerRoles.participant,
    )
    registration_date = Column(
        TZAwareDateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    attended = Column(Boolean, nullable=False, default=False)
    attendance_date = Column(TZAwareDateTime(timezone=True), nullable=True)
    notification_sent = Column(Boolean, nullable=False, default=False)

    event = relationship("Events", back_populates="registered_volunteers")
    volunteer = relationship("Users")

    __table_args__ = (UniqueConstraint("event_id", "volunteer_id"),)


class EventExternalParticipants(AbstractSQLModel, TimestampsMixin):
    __tablename__ = "event_external_participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(100), nullable=False)
    email = Column(String(100), nullable=False)
    phone = Column(String(15), nullable=False)
    role = Column(Enum(ExternalRoles), nullable=False, default=ExternalRoles.student)
    university_id = Column(String(50), nullable=True)
    course = Column(String(100), nullable=True, default="N/A")
    year = Column(Integer, nullable=True)
    age = Column(Integer, nullable=False)
    blood_group = Column(String(3), nullable=False)
    registration_date = Column(
        TZAwareDateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    attended = Column(Boolean, nullable=False, default=False)
    attendance_date = Column(TZAwareDateTime(timezone=True), nullable=True)

    event = relationship("Events", back_populates="external_participants")

    __table_args__ = (UniqueConstraint("event_id", "email"),)


class EventAttendance(AbstractSQLModel, TimestampsMixin):
    __tablename__ = "event_attendance"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    volunteer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(Enum(AttendanceStatus), nullable=False)
    remarks = Column(String, nullable=False, default="")
    marked_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    marked_at = Column(
        TZAwareDateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    event = relationship("Events", back_populates="attendance")
    volunteer = relationship("Users", foreign_keys=[volunteer_id])
    marked_by = relationship("Users", foreign_keys=[marked_by_id])

    __table_args__ = (UniqueConstraint("event_id", "volunteer_id"),)


class EventNotifications(AbstractSQLModel):
    __tablename__ = "event_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    type = Column(
        Enum(NotificationTypes, values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    message = Column(String, nullable=True)
    sent_at = Column(
        TZAwareDateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    sent_to = Column(JSON, nullable=False, default=list)

    event = relationship("Events", back_populates="notifications")
