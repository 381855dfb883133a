from datetime import datetime, timedelta, timezone
from sqlalchemy.types import TypeDecorator, DateTime

# Define IST timezone
IST = timezone(timedelta(hours=5, minutes=30))


class TZAwareDateTime(TypeDecorator):
    """
    Custom SQLAlchemy DateTime type that ensures timezone handling

    Handles:
    - Normalising aware datetimes to IST before they are written
    - Adding IST timezone to naive datetimes
    - Works with both ORM and core SQLAlchemy

    Backends without native timezone support (SQLite) store the IST wall
    clock, so values written through this type stay comparable as text.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """
        Convert datetime before inserting into database

        Args:
            value (datetime): Input datetime
            dialect: SQLAlchemy dialect

        Returns:
            datetime: Timezone-aware datetime in IST
        """
        if value is None:
            return None

        if value.tzinfo is None:
            return value.replace(tzinfo=IST)

        return value.astimezone(IST)

    def process_result_value(self, value, dialect):
        """
        Process datetime when reading from database

        Args:
            value (datetime): Datetime from database
            dialect: SQLAlchemy dialect

        Returns:
            datetime: Timezone-aware datetime
        """
        if value is None:
            return None

        return value if value.tzinfo is not None else value.replace(tzinfo=IST)
