from datetime import datetime
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, field_validator, field_serializer

from nss_portal.core.utils.db_fields import IST


class CustomBaseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    @field_validator("*", mode="after")
    @classmethod
    def ensure_ist_timezone(cls, value: Any) -> Any:
        """
        Validate and convert input datetime to IST timezone.

        Handles:
        - Naive datetimes (assume IST)
        - Datetimes in other timezones (convert to IST)
        """
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=IST)

            if value.tzinfo != IST:
                return value.astimezone(IST)

        return value

    @field_serializer("*")
    def serialize_datetime(self, value: Any, _info: Any) -> Union[str, Any]:
        """
        Ensure datetime is in IST before serialization.
        """
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=IST)
            elif value.tzinfo != IST:
                value = value.astimezone(IST)
            return value.isoformat()
        return value
