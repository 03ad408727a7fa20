"""Per-booking in-flight guard for mutating operations."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Set

from exceptions import ConflictError

logger = logging.getLogger(__name__)


class BookingBusyRegistry:
    """
    Tracks bookings with a mutation in flight.

    At most one status transition, extension or device command runs per
    booking at a time; a second request is rejected rather than queued.
    Shared by every service acting on the same process's bookings.
    """

    def __init__(self):
        self._in_flight: Set[int] = set()

    def is_busy(self, booking_id: int) -> bool:
        return booking_id in self._in_flight

    @asynccontextmanager
    async def guard(self, booking_id: int) -> AsyncIterator[None]:
        """
        Hold the busy flag for a booking for the duration of the block.

        Raises:
            ConflictError: If another operation on the booking is in flight
        """
        if booking_id in self._in_flight:
            logger.warning(f"Rejected concurrent update for booking {booking_id}")
            raise ConflictError(
                f"Another update for booking {booking_id} is already in progress"
            )

        self._in_flight.add(booking_id)
        try:
            yield
        finally:
            self._in_flight.discard(booking_id)
