from datetime import date, datetime, time

from nss_portal.core.utils.db_fields import IST


def now_ist() -> datetime:
    return datetime.now(IST)


def today_ist() -> date:
    return now_ist().date()


def parse_time(value: str) -> time:
    """Parse a schedule time such as ``09:30``, ``9:30 AM`` or ``14:00:00``."""
    value = value.strip()
    for fmt in ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p"):
        try:
            return datetime.strptime(value.upper(), fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time '{value}', expected HH:MM")


def combine_schedule(day: date, clock: str) -> datetime:
    """Canonical IST instant for a date and a schedule time string."""
    return datetime.combine(day, parse_time(clock), tzinfo=IST)
