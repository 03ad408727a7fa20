"""Booking models."""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from constants import (
    ACTIVE_TRIP_STATUSES,
    BOOKING_ACCEPTED,
    BOOKING_CANCELLED,
    BOOKING_COMPLETED,
    BOOKING_CONFIRMED,
    BOOKING_END_TRIP,
    BOOKING_START_TRIP,
    BOOKING_TRIP_EXTEND,
    ENGINE_OFF,
    TERMINAL_BOOKING_STATUSES,
)
from exceptions import ValidationError
from utils.date_helpers import parse_backend_datetime
from utils.validation import to_decimal


class BookingStatus(str, Enum):
    """Booking status as reported by the backend."""
    CONFIRMED = BOOKING_CONFIRMED
    ACCEPTED = BOOKING_ACCEPTED
    COMPLETED = BOOKING_COMPLETED
    CANCELLED = BOOKING_CANCELLED
    START_TRIP = BOOKING_START_TRIP
    END_TRIP = BOOKING_END_TRIP
    TRIP_EXTEND = BOOKING_TRIP_EXTEND

    @classmethod
    def dropdown_statuses(cls) -> list["BookingStatus"]:
        """Statuses an operator can pick from the status dropdown."""
        return [cls.CONFIRMED, cls.ACCEPTED, cls.COMPLETED, cls.CANCELLED]

    @property
    def is_terminal(self) -> bool:
        return self.value in TERMINAL_BOOKING_STATUSES


class Booking(BaseModel):
    """
    Working copy of a booking owned by the rental backend.

    Field names follow Python conventions; the backend's camelCase keys are
    accepted as aliases. Missing charge fields default to zero.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Identity
    id: int = Field(frozen=True)
    booking_id: str = Field(default="", alias="bookingId", frozen=True)

    # Lifecycle
    status: str = BOOKING_CONFIRMED
    start_date: Optional[datetime] = Field(default=None, alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")

    # Charges
    charges: Decimal = Decimal("0")
    gst: Decimal = Decimal("0")
    delivery_charges: Decimal = Field(default=Decimal("0"), alias="deliveryCharges")
    late_fee_charges: Decimal = Field(default=Decimal("0"), alias="lateFeeCharges")
    late_charges_km: Decimal = Field(default=Decimal("0"), alias="lateChargesKm")
    coupon_amount: Decimal = Field(default=Decimal("0"), alias="couponAmount")
    advance_amount: Decimal = Field(default=Decimal("0"), alias="advanceAmount")
    final_amount: Optional[Decimal] = Field(default=None, alias="finalAmount")
    additional_charges_details: Optional[str] = Field(default=None, alias="additionalChargesDetails")

    # Odometer
    start_trip_km: Optional[Decimal] = Field(default=None, alias="startTripKm")
    end_trip_km: Optional[Decimal] = Field(default=None, alias="endTripKm")

    # Customer and vehicle
    customer_id: Optional[int] = Field(default=None, alias="customerId")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    customer_number: Optional[str] = Field(default=None, alias="customerNumber")
    address: Optional[str] = None
    payment_type: Optional[int] = Field(default=None, alias="paymentType")
    engine_status: Optional[int] = Field(default=None, alias="engineStatus")
    bike_details: Optional[Dict[str, Any]] = Field(default=None, alias="bikeDetails")

    @field_validator("booking_id", mode="before")
    @classmethod
    def _coerce_booking_code(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator(
        "charges",
        "gst",
        "delivery_charges",
        "late_fee_charges",
        "late_charges_km",
        "coupon_amount",
        "advance_amount",
        mode="before",
    )
    @classmethod
    def _non_negative_amount(cls, value: Any, info) -> Decimal:
        if value is None or value == "":
            return Decimal("0")
        try:
            amount = to_decimal(value, info.field_name)
        except ValidationError as e:
            raise ValueError(e.message) from e
        if amount < 0:
            raise ValueError(f"{info.field_name} must be non-negative, got {amount}")
        return amount

    @field_validator("final_amount", "start_trip_km", "end_trip_km", mode="before")
    @classmethod
    def _optional_decimal(cls, value: Any, info) -> Optional[Decimal]:
        if value is None or value == "":
            return None
        try:
            return to_decimal(value, info.field_name)
        except ValidationError as e:
            raise ValueError(e.message) from e

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Optional[datetime]:
        try:
            return parse_backend_datetime(value)
        except ValidationError as e:
            raise ValueError(e.message) from e

    @property
    def is_terminal(self) -> bool:
        """Completed and cancelled bookings accept no further transitions."""
        return self.status in TERMINAL_BOOKING_STATUSES

    @property
    def is_trip_active(self) -> bool:
        return self.status in ACTIVE_TRIP_STATUSES

    @property
    def trip_distance_km(self) -> Optional[Decimal]:
        """Distance covered, available once both odometer readings exist."""
        if self.start_trip_km is None or self.end_trip_km is None:
            return None
        return self.end_trip_km - self.start_trip_km

    @property
    def current_engine_status(self) -> int:
        """Engine relay state, read from the bike details when not on the booking."""
        if self.engine_status is not None:
            return self.engine_status
        if self.bike_details and self.bike_details.get("engineStatus") is not None:
            return int(self.bike_details["engineStatus"])
        return ENGINE_OFF

    @property
    def vehicle_number(self) -> Optional[str]:
        if self.bike_details:
            return self.bike_details.get("registrationNumber")
        return None

    def __repr__(self):
        return f"<Booking(id={self.id}, code='{self.booking_id}', status='{self.status}')>"
