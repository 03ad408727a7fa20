"""Engine relay commands for GPS-equipped bikes."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from constants import ENGINE_CONTROL_STATUSES, ENGINE_OFF, ENGINE_ON
from exceptions import ConflictError, RentalAdminException
from integrations.rental_backend_client import RentalBackendClient
from models.booking import Booking
from models.optimistic import OptimisticValue
from services.busy_guard import BookingBusyRegistry

logger = logging.getLogger(__name__)


@dataclass
class EngineCommandResult:
    """Outcome of an engine relay command."""
    booking_id: int
    engine_status: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bookingId": self.booking_id,
            "engineStatus": self.engine_status,
            "message": self.message,
        }


class EngineRelayService:
    """Switch a bike's engine relay and finalize trips on the tracking device."""

    def __init__(self, client: RentalBackendClient, busy_registry: Optional[BookingBusyRegistry] = None):
        self.client = client
        self.busy = busy_registry or BookingBusyRegistry()

    async def switch_engine(
        self,
        booking: Booking,
        turn_on: bool,
        engine_state: Optional[OptimisticValue[int]] = None
    ) -> EngineCommandResult:
        """
        Turn the engine relay on or off.

        The displayed engine state flips immediately and is rolled back if
        the device command fails.

        Args:
            booking: Booking whose bike is commanded
            turn_on: True to enable the engine, False to cut it
            engine_state: Optional displayed engine state to update optimistically

        Returns:
            EngineCommandResult

        Raises:
            ConflictError: If the trip is not active
        """
        if booking.status not in ENGINE_CONTROL_STATUSES:
            raise ConflictError(
                f"Engine control is not available for a booking in status {booking.status}"
            )

        target = ENGINE_ON if turn_on else ENGINE_OFF
        state = engine_state if engine_state is not None else OptimisticValue(
            confirmed_value=booking.current_engine_status
        )

        async with self.busy.guard(booking.id):
            state.propose(target)
            try:
                if turn_on:
                    response = await self.client.relay_on(booking.id)
                else:
                    response = await self.client.relay_off(booking.id)
            except RentalAdminException as e:
                state.rollback()
                logger.error(f"Engine {'ON' if turn_on else 'OFF'} failed for booking {booking.id}: {e}")
                raise
            state.confirm(target)

        default_message = "Engine started successfully" if turn_on else "Engine stopped successfully"
        message = response.get("message") if isinstance(response, dict) else None
        logger.info(f"Engine {'ON' if turn_on else 'OFF'} for booking {booking.id}")

        return EngineCommandResult(
            booking_id=booking.id,
            engine_status=target,
            message=message or default_message,
        )

    async def finalize_trip(self, booking: Booking) -> str:
        """
        Tell the tracking device the trip is over.

        Args:
            booking: Booking to finalize

        Returns:
            Confirmation message
        """
        async with self.busy.guard(booking.id):
            response = await self.client.finalize_trip(booking.id)

        logger.info(f"Finalized trip on device for booking {booking.id}")
        if isinstance(response, dict) and response.get("message"):
            return str(response["message"])
        return "Trip finalized"
