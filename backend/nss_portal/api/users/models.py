import enum
from sqlalchemy import (
    Boolean,
    Column,
    Enum,
    Integer,
    JSON,
    String,
)
from nss_portal.db.base import AbstractSQLModel
from nss_portal.db.mixins import TimestampsMixin


class UserRoles(enum.Enum):
    volunteer = "volunteer"
    admin = "admin"


class NSSApplicationStatus(enum.Enum):
    not_applied = "not_applied"
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class BloodGroups(enum.Enum):
    a_pos = "A+"
    a_neg = "A-"
    b_pos = "B+"
    b_neg = "B-"
    ab_pos = "AB+"
    ab_neg = "AB-"
    o_pos = "O+"
    o_neg = "O-"


class Users(AbstractSQLModel, TimestampsMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    email = Column(String(100), nullable=False, unique=True, index=True)
    password = Column(String(100), nullable=False)
    role = Column(Enum(UserRoles), nullable=False, default=UserRoles.volunteer)
    phone = Column(String(10), nullable=True)
    college = Column(String, nullable=True)
    department = Column(String, nullable=True)
    year = Column(Integer, nullable=True)
    university_roll_no = Column(String(20), nullable=True)
    blood_group = Column(String(3), nullable=True)
    father_name = Column(String(50), nullable=True)
    mother_name = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    pin_code = Column(String(6), nullable=True)
    state = Column(String(50), nullable=True)
    district = Column(String(50), nullable=True)
    skills = Column(JSON, nullable=False, default=list)
    profile_picture = Column(String, nullable=False, default="/default-avatar.svg")
    is_active = Column(Boolean, nullable=False, default=True)

    has_applied_to_nss = Column(Boolean, nullable=False, default=False)
    nss_application_status = Column(
        Enum(NSSApplicationStatus),
        nullable=False,
        default=NSSApplicationStatus.not_applied,
        index=True,
    )
    nss_application_data = Column(JSON, nullable=True)
    reapplication_count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Users {self.email}>"
