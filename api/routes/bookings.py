"""Booking endpoints: record, breakdown, status transitions and extensions."""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from api.dependencies import (
    get_backend_client,
    get_invoice_service,
    get_status_machine,
)
from integrations.rental_backend_client import RentalBackendClient
from services.invoice_service import InvoiceService
from services.status_machine import BookingStatusMachine

router = APIRouter()


class StatusChangeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    end_trip_km: Optional[Any] = Field(default=None, alias="endTripKm")


class ExtendTripRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_end_date_time: Any = Field(alias="newEndDateTime")


@router.get("/bookings/{booking_id}")
async def get_booking(
    booking_id: int,
    client: RentalBackendClient = Depends(get_backend_client),
):
    """Get booking by ID."""
    booking = await client.get_booking(booking_id)
    return booking.model_dump(mode="json", by_alias=True)


@router.get("/bookings/{booking_id}/breakdown")
async def get_breakdown(
    booking_id: int,
    format: str = Query(default="json", pattern="^(json|text)$"),
    client: RentalBackendClient = Depends(get_backend_client),
    invoices: InvoiceService = Depends(get_invoice_service),
):
    """Computed charge breakdown for a booking."""
    booking = await client.get_booking(booking_id)
    charges = await client.get_additional_charges(booking_id)
    breakdown = invoices.aggregator.compute_breakdown(booking, charges)

    if format == "text":
        return PlainTextResponse(invoices.render_breakdown(booking, breakdown))
    return breakdown.model_dump(mode="json")


@router.post("/bookings/{booking_id}/status")
async def change_status(
    booking_id: int,
    payload: StatusChangeRequest,
    client: RentalBackendClient = Depends(get_backend_client),
    machine: BookingStatusMachine = Depends(get_status_machine),
):
    """Request a status transition."""
    booking = await client.get_booking(booking_id)
    result = await machine.request_transition(booking, payload.status, end_trip_km=payload.end_trip_km)
    return result.to_dict()


@router.post("/bookings/{booking_id}/extend")
async def extend_trip(
    booking_id: int,
    payload: ExtendTripRequest,
    client: RentalBackendClient = Depends(get_backend_client),
    machine: BookingStatusMachine = Depends(get_status_machine),
):
    """Extend a trip to a later end date-time."""
    booking = await client.get_booking(booking_id)
    result = await machine.extend_trip(booking, payload.new_end_date_time)
    return result.to_dict()
