"""Two-phase view state for values changed ahead of server confirmation."""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from exceptions import ConflictError

T = TypeVar("T")


class OptimisticState(str, Enum):
    """Phase of an optimistic value."""
    CONFIRMED = "confirmed"
    PENDING = "pending"
    ROLLED_BACK = "rolled_back"


@dataclass
class OptimisticValue(Generic[T]):
    """
    A server-owned value with at most one local change in flight.

    ``propose`` moves to PENDING; the change then ends in ``confirm`` (server
    accepted, possibly with its own value) or ``rollback`` (the last confirmed
    value is shown again).
    """

    confirmed_value: T
    pending_value: Optional[T] = None
    state: OptimisticState = OptimisticState.CONFIRMED

    @property
    def value(self) -> T:
        """Value to display right now."""
        if self.state == OptimisticState.PENDING:
            return self.pending_value
        return self.confirmed_value

    @property
    def is_pending(self) -> bool:
        return self.state == OptimisticState.PENDING

    def propose(self, local_value: T) -> None:
        if self.is_pending:
            raise ConflictError(
                f"A change to {self.pending_value!r} is already awaiting confirmation"
            )
        self.pending_value = local_value
        self.state = OptimisticState.PENDING

    def confirm(self, server_value: Optional[T] = None) -> None:
        if server_value is None:
            server_value = self.pending_value
        self.confirmed_value = server_value
        self.pending_value = None
        self.state = OptimisticState.CONFIRMED

    def rollback(self) -> None:
        self.pending_value = None
        self.state = OptimisticState.ROLLED_BACK
