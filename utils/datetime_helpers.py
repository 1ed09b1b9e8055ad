"""
Timezone-aware date/time helpers for the turf booking application.

All dates and hours exchanged with clients are civil times in the configured
TIMEZONE. Instants are persisted in UTC as ISO-8601 strings so that string
comparison in SQL matches chronological order.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from flask import current_app


def get_timezone() -> ZoneInfo:
    """Get the configured timezone."""
    tz_name = current_app.config.get('TIMEZONE', 'Asia/Kolkata')
    return ZoneInfo(tz_name)


def get_today() -> date:
    """Get today's date in the configured timezone."""
    return datetime.now(get_timezone()).date()


def get_now() -> datetime:
    """Get current datetime in the configured timezone."""
    return datetime.now(get_timezone())


def to_local(dt: datetime) -> datetime:
    """Convert an aware datetime to the configured timezone (naive is taken as local)."""
    tz = get_timezone()
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


# =============================================================================
# HOUR SLOTS
# =============================================================================

def slot_start(booking_date: date, hour: int) -> datetime:
    """
    Start instant of an hour slot on a civil date.

    Args:
        booking_date: Civil date
        hour: Hour 0-24 (24 is midnight at the end of the day)

    Returns:
        Aware datetime in the configured timezone
    """
    if hour == 24:
        return datetime.combine(booking_date + timedelta(days=1), time(0), tzinfo=get_timezone())
    return datetime.combine(booking_date, time(hour), tzinfo=get_timezone())


def slot_end(booking_date: date, hour: int) -> datetime:
    """End instant of the hour slot starting at `hour`."""
    return slot_start(booking_date, hour + 1)


def day_bounds(booking_date: date) -> tuple:
    """Half-open [start, end) of a civil day as aware datetimes."""
    return slot_start(booking_date, 0), slot_start(booking_date, 24)


def get_slot_label(hour: int) -> str:
    """
    Get formatted slot label for display.

    Example: 14 -> "2:00 PM to 3:00 PM"
    """
    start_hour = 12 if hour % 12 == 0 else hour % 12
    end_hour = 12 if (hour + 1) % 12 == 0 else (hour + 1) % 12
    start_ampm = 'AM' if hour < 12 else 'PM'
    end_ampm = 'AM' if (hour + 1) < 12 or (hour + 1) == 24 else 'PM'
    return f'{start_hour}:00 {start_ampm} to {end_hour}:00 {end_ampm}'


SLOT_LABELS = {get_slot_label(h): h for h in range(24)}


def parse_slot_label(label: str):
    """Hour for a slot label, or None if the label is not one of the 24 slots."""
    if not label:
        return None
    return SLOT_LABELS.get(' '.join(label.split()))


# =============================================================================
# STORAGE
# =============================================================================

def to_storage(dt: datetime) -> str:
    """Serialize an aware datetime as a UTC ISO string."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=get_timezone())
    return dt.astimezone(timezone.utc).isoformat(timespec='seconds')


def from_storage(value) -> datetime:
    """Parse a stored UTC ISO string back into an aware datetime."""
    if value is None or isinstance(value, datetime):
        return value
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
