"""Utility modules."""
from utils.validation import (
    to_decimal,
    validate_charge_type,
    validate_end_trip_km,
    validate_new_end_datetime,
    validate_positive_amount,
    validate_required_string,
)
from utils.date_helpers import (
    format_date_display,
    get_current_utc,
    parse_backend_datetime,
    to_epoch_millis,
)
from utils.formatting import (
    format_currency,
    format_km,
    round_currency,
)
from utils.retry import (
    exponential_backoff,
    retry_async_with_backoff,
)

__all__ = [
    "to_decimal",
    "validate_charge_type",
    "validate_end_trip_km",
    "validate_new_end_datetime",
    "validate_positive_amount",
    "validate_required_string",
    "format_date_display",
    "get_current_utc",
    "parse_backend_datetime",
    "to_epoch_millis",
    "format_currency",
    "format_km",
    "round_currency",
    "exponential_backoff",
    "retry_async_with_backoff",
]
