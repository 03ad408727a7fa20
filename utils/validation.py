"""Validation utilities for operator input."""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from exceptions import ValidationError
from constants import (
    CHARGE_TYPE_PLACEHOLDER,
    MAX_CHARGE_TYPE_LENGTH,
    MAX_ODOMETER_READING,
)
from utils.date_helpers import parse_backend_datetime


def to_decimal(value: Any, field_name: str = "Amount") -> Decimal:
    """
    Convert a number or numeric string to Decimal.

    Args:
        value: Value to convert
        field_name: Name of field for error message

    Returns:
        Decimal value

    Raises:
        ValidationError: If value is not numeric
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number, got {value!r}")

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() keeps floats like 0.1 from picking up binary noise
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValidationError(f"{field_name} must be a number, got {value!r}") from e

    if not result.is_finite():
        raise ValidationError(f"{field_name} must be a finite number, got {value!r}")

    return result


def validate_positive_amount(
    amount: Any,
    field_name: str = "Amount",
    allow_zero: bool = False
) -> Decimal:
    """
    Validate that amount is positive (and optionally non-zero).

    Args:
        amount: Amount to validate (number or numeric string)
        field_name: Name of field for error message
        allow_zero: Whether to allow zero values

    Returns:
        Validated amount

    Raises:
        ValidationError: If amount is invalid
    """
    if amount is None or amount == "":
        raise ValidationError(f"Please enter {field_name.lower()}")

    value = to_decimal(amount, field_name)

    if allow_zero:
        if value < 0:
            raise ValidationError(f"{field_name} must be non-negative, got {value}")
    elif value <= 0:
        raise ValidationError(f"{field_name} must be positive, got {value}")

    return value


def validate_required_string(
    value: Optional[str],
    field_name: str,
    max_length: Optional[int] = None
) -> str:
    """
    Validate required string field.

    Args:
        value: String value to validate
        field_name: Name of field for error message
        max_length: Maximum allowed length

    Returns:
        Validated string (stripped)

    Raises:
        ValidationError: If string is invalid
    """
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} is required")

    stripped = value.strip()

    if not stripped:
        raise ValidationError(f"{field_name} is required")

    if max_length and len(stripped) > max_length:
        raise ValidationError(
            f"{field_name} must be at most {max_length} characters, "
            f"got {len(stripped)}"
        )

    return stripped


def validate_charge_type(charge_type: Optional[str], allowed: Iterable[str]) -> str:
    """
    Validate an additional charge type against the controlled vocabulary.

    Args:
        charge_type: Selected charge type
        allowed: Allowed charge types

    Returns:
        Validated charge type

    Raises:
        ValidationError: If the type is empty, the placeholder, or unknown
    """
    if charge_type is None or not charge_type.strip() or charge_type.strip() == CHARGE_TYPE_PLACEHOLDER:
        raise ValidationError("Please select a specific charge type")

    value = validate_required_string(charge_type, "Charge type", MAX_CHARGE_TYPE_LENGTH)

    allowed = list(allowed)
    if value not in allowed:
        raise ValidationError(
            f"Unknown charge type '{value}'. Expected one of: {', '.join(allowed)}"
        )

    return value


def validate_end_trip_km(end_trip_km: Any, start_trip_km: Optional[Decimal]) -> Decimal:
    """
    Validate the odometer reading entered when completing a trip.

    Args:
        end_trip_km: Odometer reading at trip end
        start_trip_km: Odometer reading recorded at trip start (0 if unknown)

    Returns:
        Validated end reading

    Raises:
        ValidationError: If the reading is missing, non-positive, or not past the start reading
    """
    try:
        value = to_decimal(end_trip_km, "End Trip KM")
    except ValidationError as e:
        raise ValidationError("Please enter a valid End Trip KM value") from e

    if value <= 0:
        raise ValidationError("Please enter a valid End Trip KM value")

    if value > MAX_ODOMETER_READING:
        raise ValidationError(f"End Trip KM must be at most {MAX_ODOMETER_READING}")

    start = start_trip_km or Decimal("0")
    if value <= start:
        raise ValidationError(
            f"End Trip KM must be greater than Start Trip KM ({start} km)"
        )

    return value


def validate_new_end_datetime(new_end: Any, current_end: Optional[datetime]) -> datetime:
    """
    Validate the new end date-time for a trip extension.

    Args:
        new_end: Requested end (datetime, ISO string or epoch millis)
        current_end: Booking's current end

    Returns:
        Timezone-aware new end

    Raises:
        ValidationError: If missing, unparseable, or not later than the current end
    """
    if new_end is None or new_end == "":
        raise ValidationError("Please select new end date & time")

    try:
        parsed = parse_backend_datetime(new_end)
    except ValidationError as e:
        raise ValidationError("Invalid date") from e

    if current_end is not None and parsed <= current_end:
        raise ValidationError(
            "New end date & time must be later than the current end date & time"
        )

    return parsed
