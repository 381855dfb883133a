from typing import Annotated

from pydantic import EmailStr, Field, StringConstraints, field_validator

from nss_portal.api.users.models import BloodGroups, NSSApplicationStatus, UserRoles
from nss_portal.core.response.base_model import CustomBaseModel

BLOOD_GROUPS = [group.value for group in BloodGroups]

Phone = Annotated[str, StringConstraints(pattern=r"^[0-9]{10}$")]
PinCode = Annotated[str, StringConstraints(pattern=r"^\d{6}$")]
NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def check_blood_group(value):
    if value is not None and value not in BLOOD_GROUPS:
        raise ValueError(f"blood_group must be one of {', '.join(BLOOD_GROUPS)}")
    return value


class Token(CustomBaseModel):
    token_type: str
    access_token: str
    refresh_token: str


class AuthTokenData(CustomBaseModel):
    user_id: int
    token_type: str


class LoginRequest(CustomBaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignupRequest(CustomBaseModel):
    name: NonEmpty = Field(..., max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: Phone
    college: str | None = None
    department: str | None = None
    year: int | None = Field(None, ge=1, le=5)
    blood_group: str | None = None
    father_name: str | None = Field(None, max_length=50)
    mother_name: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    pin_code: PinCode | None = None
    state: str | None = Field(None, max_length=50)
    district: str | None = Field(None, max_length=50)
    skills: list[str] = Field(default_factory=list)

    @field_validator("blood_group")
    @classmethod
    def validate_blood_group(cls, value):
        return check_blood_group(value)


class NSSApplicationRequest(CustomBaseModel):
    phone: Phone
    college: NonEmpty
    department: NonEmpty
    year: int = Field(..., ge=1, le=5)
    blood_group: NonEmpty
    university_roll_no: NonEmpty = Field(..., max_length=20)
    skills: list[str] = Field(..., min_length=1)
    motivation: str | None = None

    @field_validator("blood_group")
    @classmethod
    def validate_blood_group(cls, value):
        return check_blood_group(value)


class ChangePasswordRequest(CustomBaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class AuthUser(CustomBaseModel):
    id: int
    name: str
    email: str
    role: UserRoles
    phone: str | None = None
    college: str | None = None
    department: str | None = None
    year: int | None = None
    blood_group: str | None = None
    skills: list[str] = []
    profile_picture: str | None = None
    has_applied_to_nss: bool
    nss_application_status: NSSApplicationStatus
    reapplication_count: int = 0


class AuthResponse(CustomBaseModel):
    message: str
    token: Token
    user: AuthUser


class NSSApplicationResponse(CustomBaseModel):
    message: str
    user: AuthUser
