"""Custom exceptions for the rental admin service.

Every exception carries a ``category`` telling the caller which corrective
action applies: fix the input, accept the rejection, try again, or log in.
"""
from typing import Any, Dict, Optional

CATEGORY_INVALID_INPUT = "invalid_input"
CATEGORY_REJECTED = "rejected"
CATEGORY_RETRY = "retry"
CATEGORY_AUTH = "auth"


class RentalAdminException(Exception):
    """Base exception for rental admin errors."""

    category = CATEGORY_REJECTED

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class ValidationError(RentalAdminException):
    """Raised when input is invalid before any remote call is made."""

    category = CATEGORY_INVALID_INPUT


class ConfigurationError(RentalAdminException):
    """Raised when configuration is invalid or missing."""
    pass


class BackendAPIError(RentalAdminException):
    """Raised when the rental backend reports a failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, detail=payload)
        self.status_code = status_code
        self.payload = payload or {}


class PreconditionError(BackendAPIError):
    """Raised when the backend rejects a transition over an unmet precondition."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
        requires_end_trip_km: bool = False,
    ):
        super().__init__(message, status_code=status_code, payload=payload)
        self.requires_end_trip_km = requires_end_trip_km


class ConflictError(BackendAPIError):
    """Raised when an action is illegal for the booking's current state."""
    pass


class NotFoundError(BackendAPIError):
    """Raised when a booking, charge or invoice does not exist."""
    pass


class TransientError(BackendAPIError):
    """Raised on network failures, timeouts and 5xx responses."""

    category = CATEGORY_RETRY


class AuthError(BackendAPIError):
    """Raised when the session is missing, expired or forbidden."""

    category = CATEGORY_AUTH
