"""Booking status transitions and trip extensions."""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Set

from constants import (
    BOOKING_ACCEPTED,
    BOOKING_CANCELLED,
    BOOKING_COMPLETED,
    BOOKING_CONFIRMED,
    BOOKING_END_TRIP,
    BOOKING_START_TRIP,
    BOOKING_TRIP_EXTEND,
)
from exceptions import (
    AuthError,
    BackendAPIError,
    ConflictError,
    PreconditionError,
    RentalAdminException,
    TransientError,
    ValidationError,
)
from integrations.rental_backend_client import RentalBackendClient
from models.booking import Booking, BookingStatus
from models.optimistic import OptimisticValue
from services.busy_guard import BookingBusyRegistry
from utils.date_helpers import to_epoch_millis
from utils.validation import validate_end_trip_km, validate_new_end_datetime

logger = logging.getLogger(__name__)

_ACCEPTED_EXITS = {BOOKING_CANCELLED, BOOKING_COMPLETED}

# Operational sub-states behave like Accepted for the status dropdown
ALLOWED_TRANSITIONS: Dict[str, Set[str]] = {
    BOOKING_CONFIRMED: {BOOKING_ACCEPTED},
    BOOKING_ACCEPTED: _ACCEPTED_EXITS,
    BOOKING_START_TRIP: _ACCEPTED_EXITS,
    BOOKING_END_TRIP: _ACCEPTED_EXITS,
    BOOKING_TRIP_EXTEND: _ACCEPTED_EXITS,
    BOOKING_COMPLETED: set(),
    BOOKING_CANCELLED: set(),
}


class TransitionOutcome(str, Enum):
    """How a transition request ended."""
    APPLIED = "applied"
    UP_TO_DATE = "up_to_date"
    END_TRIP_KM_REQUIRED = "end_trip_km_required"


@dataclass
class TransitionResult:
    """Result of a status transition or extension request."""
    outcome: TransitionOutcome
    booking: Booking
    message: str
    refreshed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "message": self.message,
            "refreshed": self.refreshed,
            "booking": self.booking.model_dump(mode="json", by_alias=True),
        }


class BookingStatusMachine:
    """
    Enforce legal booking status transitions.

    Picks the transition-specific backend call, checks preconditions before
    any remote call, and re-fetches the booking afterwards: the backend
    derives fields the client must not assume.
    """

    def __init__(self, client: RentalBackendClient, busy_registry: Optional[BookingBusyRegistry] = None):
        """
        Initialize status machine.

        Args:
            client: Rental backend client
            busy_registry: Shared per-booking in-flight guard
        """
        self.client = client
        self.busy = busy_registry or BookingBusyRegistry()

    def allowed_targets(self, booking: Booking) -> Set[str]:
        """Statuses reachable from the booking's current status."""
        return set(ALLOWED_TRANSITIONS.get(booking.status, set()))

    async def request_transition(
        self,
        booking: Booking,
        target_status: str,
        end_trip_km: Any = None,
        status_state: Optional[OptimisticValue[str]] = None
    ) -> TransitionResult:
        """
        Move a booking to a new status.

        Args:
            booking: Current working copy of the booking
            target_status: Desired status
            end_trip_km: Odometer reading, required when completing
            status_state: Optional displayed status to update optimistically

        Returns:
            TransitionResult (APPLIED, UP_TO_DATE or END_TRIP_KM_REQUIRED)

        Raises:
            ValidationError: Bad target or odometer reading (no remote call made)
            ConflictError: Transition not allowed from the current status
            TransientError: Backend unreachable and the outcome could not be confirmed
            AuthError: Session missing or expired
        """
        target = self._normalize_status(target_status)

        if target == booking.status:
            return TransitionResult(
                outcome=TransitionOutcome.UP_TO_DATE,
                booking=booking,
                message="Status is already up to date",
            )

        if booking.is_terminal:
            raise ConflictError(
                f"Booking {booking.booking_id or booking.id} is {booking.status}; "
                f"its status can no longer be changed"
            )

        if target not in ALLOWED_TRANSITIONS.get(booking.status, set()):
            raise ConflictError(f"Cannot change status from {booking.status} to {target}")

        km: Optional[Decimal] = None
        if target == BOOKING_COMPLETED:
            if end_trip_km is None or end_trip_km == "":
                return TransitionResult(
                    outcome=TransitionOutcome.END_TRIP_KM_REQUIRED,
                    booking=booking,
                    message="End Trip KM is required to complete the trip",
                )
            km = validate_end_trip_km(end_trip_km, booking.start_trip_km)

        state = status_state if status_state is not None else OptimisticValue(confirmed_value=booking.status)

        async with self.busy.guard(booking.id):
            state.propose(target)
            try:
                await self._dispatch(booking, target, km)

            except PreconditionError as e:
                state.rollback()
                if e.requires_end_trip_km:
                    logger.info(f"Backend requires End Trip KM for booking {booking.id}")
                    return TransitionResult(
                        outcome=TransitionOutcome.END_TRIP_KM_REQUIRED,
                        booking=booking,
                        message=e.message or "End Trip KM is required",
                    )
                raise

            except TransientError:
                current = await self._refetch_quietly(booking.id)
                if current is not None and current.status == target:
                    logger.info(
                        f"Transition of booking {booking.id} to {target} applied despite transport failure"
                    )
                    state.confirm(current.status)
                    return TransitionResult(
                        outcome=TransitionOutcome.APPLIED,
                        booking=current,
                        message=f"Status changed from {booking.status} to {target}",
                        refreshed=True,
                    )
                state.rollback()
                raise

            except RentalAdminException:
                state.rollback()
                raise

            state.confirm(target)

        logger.info(f"Booking {booking.id} status changed from {booking.status} to {target}")

        local_update: Dict[str, Any] = {"status": target}
        if km is not None:
            local_update["end_trip_km"] = km
        return await self._refresh(
            booking,
            local_update,
            message=f"Status changed from {booking.status} to {target}",
        )

    async def extend_trip(self, booking: Booking, new_end: Any) -> TransitionResult:
        """
        Extend a trip to a later end date-time.

        The backend computes the extension charge and records it; the
        booking is re-fetched to pick it up.

        Args:
            booking: Current working copy of the booking
            new_end: New end (datetime, ISO string or epoch millis)

        Returns:
            TransitionResult with outcome APPLIED

        Raises:
            ValidationError: Missing, unparseable or not later than the current end
            ConflictError: Booking is completed or cancelled
        """
        parsed: datetime = validate_new_end_datetime(new_end, booking.end_date)

        if booking.is_terminal:
            raise ConflictError(f"Cannot extend a {booking.status.lower()} booking")

        async with self.busy.guard(booking.id):
            try:
                message = await self.client.extend_booking(booking.id, to_epoch_millis(parsed))
            except TransientError:
                current = await self._refetch_quietly(booking.id)
                if current is not None and current.end_date is not None and current.end_date >= parsed:
                    logger.info(f"Extension of booking {booking.id} applied despite transport failure")
                    return TransitionResult(
                        outcome=TransitionOutcome.APPLIED,
                        booking=current,
                        message="Trip extended",
                        refreshed=True,
                    )
                raise

        logger.info(f"Booking {booking.id} extended to {parsed.isoformat()}")
        return await self._refresh(booking, {}, message=message)

    async def _dispatch(self, booking: Booking, target: str, km: Optional[Decimal]) -> None:
        if target == BOOKING_ACCEPTED:
            await self.client.accept_booking(booking.id)
        elif target == BOOKING_CANCELLED:
            await self.client.cancel_booking(booking.id)
        elif target == BOOKING_COMPLETED:
            await self.client.complete_booking(booking.id, km)
        else:
            raise ConflictError(f"Status {target} cannot be set directly")

    async def _refresh(self, booking: Booking, local_update: Dict[str, Any], message: str) -> TransitionResult:
        current = await self._refetch_quietly(booking.id)
        if current is not None:
            return TransitionResult(
                outcome=TransitionOutcome.APPLIED,
                booking=current,
                message=message,
                refreshed=True,
            )

        return TransitionResult(
            outcome=TransitionOutcome.APPLIED,
            booking=booking.model_copy(update=local_update),
            message=message,
            refreshed=False,
        )

    async def _refetch_quietly(self, booking_id: int) -> Optional[Booking]:
        try:
            return await self.client.get_booking(booking_id)
        except AuthError:
            raise
        except BackendAPIError as e:
            logger.warning(f"Could not re-fetch booking {booking_id}: {e}")
            return None

    @staticmethod
    def _normalize_status(status: Any) -> str:
        if isinstance(status, BookingStatus):
            return status.value
        for known in BookingStatus:
            if isinstance(status, str) and status.strip().lower() == known.value.lower():
                return known.value
        raise ValidationError(f"Unknown booking status: {status!r}")
