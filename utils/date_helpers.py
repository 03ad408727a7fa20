"""Date and time utility functions."""
from datetime import date, datetime
from typing import Any, Optional

import pytz
from config import get_settings
from constants import DATE_FORMAT_DISPLAY, DATETIME_FORMAT_DISPLAY
from exceptions import ValidationError

settings = get_settings()

# Epoch values above this are treated as milliseconds
_EPOCH_MILLIS_THRESHOLD = 10_000_000_000


def get_current_utc() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        Current UTC datetime
    """
    return datetime.now(pytz.UTC)


def get_display_timezone() -> pytz.BaseTzInfo:
    """Timezone the backend uses for naive timestamps and the UI displays in."""
    return pytz.timezone(settings.display_timezone)


def localize(dt: datetime) -> datetime:
    """
    Make a datetime timezone-aware.

    Naive values are assumed to be in the display timezone, which is how the
    rental backend serialises local date-times.

    Args:
        dt: Datetime to localize

    Returns:
        Timezone-aware datetime
    """
    if dt.tzinfo is None:
        return get_display_timezone().localize(dt)
    return dt


def parse_backend_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp as emitted by the backend.

    Accepts ISO-8601 strings (with or without a trailing ``Z``), epoch seconds
    or epoch milliseconds, and datetime/date objects.

    Args:
        value: Raw timestamp value

    Returns:
        Timezone-aware datetime, or None for empty input

    Raises:
        ValidationError: If the value cannot be interpreted as an instant
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return localize(value)

    if isinstance(value, date):
        return localize(datetime.combine(value, datetime.min.time()))

    if isinstance(value, bool):
        raise ValidationError(f"Invalid date-time: {value!r}")

    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _EPOCH_MILLIS_THRESHOLD else value
        return datetime.fromtimestamp(seconds, tz=pytz.UTC)

    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return parse_backend_datetime(int(text))
        try:
            return localize(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError as e:
            raise ValidationError(f"Invalid date-time: {value!r}") from e

    raise ValidationError(f"Invalid date-time: {value!r}")


def to_epoch_millis(dt: datetime) -> int:
    """
    Convert a datetime to epoch milliseconds.

    Args:
        dt: Datetime (assumed to be in the display timezone if naive)

    Returns:
        Milliseconds since the Unix epoch
    """
    return int(localize(dt).timestamp() * 1000)


def convert_to_display_timezone(dt: datetime) -> datetime:
    """
    Convert datetime to the configured display timezone.

    Args:
        dt: Datetime to convert (assumed to be in the display timezone if naive)

    Returns:
        Datetime in the display timezone
    """
    return localize(dt).astimezone(get_display_timezone())


def format_date_display(
    dt: Optional[date | datetime],
    include_time: bool = False
) -> str:
    """
    Format date for display to operators.

    Args:
        dt: Date or datetime to format
        include_time: Whether to include time

    Returns:
        Formatted date string, or empty string if None
    """
    if dt is None:
        return ""

    if isinstance(dt, datetime):
        dt = convert_to_display_timezone(dt)
        if include_time:
            return dt.strftime(DATETIME_FORMAT_DISPLAY)
        return dt.strftime(DATE_FORMAT_DISPLAY)

    if include_time:
        return datetime.combine(dt, datetime.min.time()).strftime(DATETIME_FORMAT_DISPLAY)
    return dt.strftime(DATE_FORMAT_DISPLAY)
