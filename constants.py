"""Application-wide constants.

Backend connection details (base URL, timeout, read attempts) are configured in
config.Settings; use get_settings() for anything environment specific.
"""

# Booking statuses selectable from the admin status dropdown
BOOKING_CONFIRMED = "Confirmed"
BOOKING_ACCEPTED = "Accepted"
BOOKING_COMPLETED = "Completed"
BOOKING_CANCELLED = "Cancelled"

# Operational sub-states reported by the backend
BOOKING_START_TRIP = "Start Trip"
BOOKING_END_TRIP = "End Trip"
BOOKING_TRIP_EXTEND = "Trip Extend"

TERMINAL_BOOKING_STATUSES = [
    BOOKING_COMPLETED,
    BOOKING_CANCELLED,
]

# Statuses in which the trip is live (vehicle handed over or about to be)
ACTIVE_TRIP_STATUSES = [
    BOOKING_ACCEPTED,
    BOOKING_START_TRIP,
    BOOKING_END_TRIP,
    BOOKING_TRIP_EXTEND,
]

ENGINE_CONTROL_STATUSES = ACTIVE_TRIP_STATUSES

# Engine relay states
ENGINE_OFF = 0
ENGINE_ON = 1

# Additional charge types
CHARGE_TYPE_PLACEHOLDER = "Additional Charges"
CHARGE_TYPE_CHALLAN = "Challan"
CHARGE_TYPE_DAMAGE = "Damage"
CHARGE_TYPE_OTHER = "Other Charges"

ADDITIONAL_CHARGE_TYPES = [
    CHARGE_TYPE_CHALLAN,
    CHARGE_TYPE_DAMAGE,
    CHARGE_TYPE_OTHER,
]

# Encoded additionalChargesDetails wire format
CHARGE_DETAILS_DELIMITER = " | "
MANUAL_CHARGES_TOTAL_PREFIX = "total"
EXTENSION_TOTAL_TOLERANCE = 1

# Invoice line item categories
LINE_ITEM_CHARGE = "charge"
LINE_ITEM_DISCOUNT = "discount"
LINE_ITEM_TAX = "tax"
LINE_ITEM_ADVANCE = "advance"

# Invoice sources
INVOICE_SOURCE_BACKEND = "backend"
INVOICE_SOURCE_COMPUTED = "computed"

# API timeouts (in seconds)
API_TIMEOUT_DEFAULT = 30

# Retry configuration
MAX_RETRY_ATTEMPTS = 3
RETRY_BACKOFF_FACTOR = 2
RETRY_INITIAL_DELAY = 1  # seconds

# Date formats
DATE_FORMAT_DISPLAY = "%d/%m/%Y"
DATETIME_FORMAT_DISPLAY = "%d %b %Y, %I:%M %p"
DEFAULT_DISPLAY_TIMEZONE = "Asia/Kolkata"

# Currency
CURRENCY_SYMBOL = "₹"

# Validation limits
MAX_CHARGE_TYPE_LENGTH = 100
MAX_ODOMETER_READING = 10_000_000
