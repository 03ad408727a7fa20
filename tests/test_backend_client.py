"""Tests for the rental backend client."""
import logging

import httpx
import pytest

from exceptions import (
    CATEGORY_AUTH,
    CATEGORY_REJECTED,
    CATEGORY_RETRY,
    AuthError,
    BackendAPIError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    TransientError,
)
from integrations.rental_backend_client import RentalBackendClient
from models.auth import AuthContext

from tests.conftest import BACKEND_URL, booking_payload, make_token

GET_BOOKING = "/api/booking-bikes/getById/1"


async def test_get_booking_maps_backend_fields(client, backend):
    backend.add("GET", GET_BOOKING, json=booking_payload(charges="1000.00", startTripKm="100"))

    booking = await client.get_booking(1)

    assert booking.id == 1
    assert booking.booking_id == "BK0001"
    assert booking.charges == 1000
    assert booking.start_trip_km == 100
    assert booking.vehicle_number == "KA01AB1234"


async def test_data_envelope_is_unwrapped(client, backend):
    backend.add("GET", GET_BOOKING, json={"data": booking_payload(status="Confirmed")})

    booking = await client.get_booking(1)

    assert booking.status == "Confirmed"


async def test_bearer_token_is_sent(client, backend, auth):
    backend.add("GET", GET_BOOKING, json=booking_payload())

    await client.get_booking(1)

    assert backend.requests[0].headers["Authorization"] == f"Bearer {auth.token}"


@pytest.mark.parametrize(
    "status,exc_type,category",
    [
        (401, AuthError, CATEGORY_AUTH),
        (403, AuthError, CATEGORY_AUTH),
        (404, NotFoundError, CATEGORY_REJECTED),
        (409, ConflictError, CATEGORY_REJECTED),
        (500, TransientError, CATEGORY_RETRY),
        (503, TransientError, CATEGORY_RETRY),
    ],
)
async def test_error_status_mapping(client, backend, status, exc_type, category):
    backend.add("POST", "/api/booking-bikes/1/accept", status=status, json={"message": "nope"})

    with pytest.raises(exc_type) as exc_info:
        await client.accept_booking(1)

    assert exc_info.value.category == category
    assert exc_info.value.status_code == status
    assert exc_info.value.message == "nope"


async def test_structured_km_requirement(client, backend):
    backend.add(
        "POST",
        "/api/booking-bikes/1/complete",
        status=400,
        json={"message": "End trip km is required", "requireEndTripKm": True},
    )

    with pytest.raises(PreconditionError) as exc_info:
        await client.complete_booking(1)

    assert exc_info.value.requires_end_trip_km is True


async def test_precondition_with_structured_message(client, backend):
    backend.add(
        "POST",
        "/api/booking-bikes/1/complete",
        status=412,
        json={"message": {"code": "END_TRIP_KM", "text": "End Trip KM missing"}},
    )

    with pytest.raises(PreconditionError) as exc_info:
        await client.complete_booking(1)

    assert exc_info.value.requires_end_trip_km is True
    assert "END_TRIP_KM" in exc_info.value.message


async def test_other_rejections_are_not_retryable(client, backend):
    backend.add("POST", "/api/booking-bikes/1/accept", status=400, json={"message": "Bike not available"})

    with pytest.raises(BackendAPIError) as exc_info:
        await client.accept_booking(1)

    assert not isinstance(exc_info.value, TransientError)
    assert exc_info.value.category == CATEGORY_REJECTED


async def test_network_failure_is_transient(auth):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = RentalBackendClient(auth, base_url=BACKEND_URL, transport=httpx.MockTransport(refuse), read_attempts=1)

    with pytest.raises(TransientError):
        await client.get_booking(1)


async def test_expired_token_fails_before_any_call(backend):
    client = RentalBackendClient(
        AuthContext(token=make_token(expires_in=-60)),
        base_url=BACKEND_URL,
        transport=httpx.MockTransport(backend),
        read_attempts=1,
    )

    with pytest.raises(AuthError):
        await client.get_booking(1)

    assert backend.requests == []


async def test_reads_are_retried_on_transient_failure(auth, backend):
    backend.add("GET", GET_BOOKING, status=503, json={"message": "busy"})
    backend.add("GET", GET_BOOKING, json=booking_payload())
    client = RentalBackendClient(
        auth,
        base_url=BACKEND_URL,
        transport=httpx.MockTransport(backend),
        read_attempts=3,
        retry_base_delay=0,
    )

    booking = await client.get_booking(1)

    assert booking.id == 1
    assert len(backend.calls("GET", GET_BOOKING)) == 2


async def test_mutations_are_not_retried(auth, backend):
    backend.add("POST", "/api/booking-bikes/1/accept", status=503, json={"message": "busy"})
    client = RentalBackendClient(
        auth,
        base_url=BACKEND_URL,
        transport=httpx.MockTransport(backend),
        read_attempts=3,
        retry_base_delay=0,
    )

    with pytest.raises(TransientError):
        await client.accept_booking(1)

    assert len(backend.calls("POST", "/api/booking-bikes/1/accept")) == 1


async def test_missing_invoice_is_none(client, backend):
    backend.add("GET", "/api/invoices/booking/1", status=404, json={"message": "Invoice not found"})

    assert await client.get_invoice(1) is None


async def test_invoice_is_parsed(client, backend):
    backend.add("GET", "/api/invoices/booking/1", json={
        "invoiceNumber": "INV-0001",
        "amount": 1000,
        "taxAmount": 50,
        "totalAmount": 950,
        "status": "PAID",
        "createdAt": "2025-01-05T10:00:00",
    })

    invoice = await client.get_invoice(1)

    assert invoice.invoice_number == "INV-0001"
    assert invoice.total_amount == 950
    assert invoice.created_at.year == 2025


async def test_malformed_charge_rows_are_skipped(client, backend, caplog):
    backend.add("GET", "/api/additional-charges/booking/1", json=[
        {"id": 7, "chargeType": "Challan", "amount": 0},
        {"id": 8, "chargeType": "", "amount": 100},
        {"id": 9, "chargeType": "Damage", "amount": "abc"},
        {"id": 10, "chargeType": "Damage", "amount": 250},
    ])

    with caplog.at_level(logging.WARNING):
        charges = await client.get_additional_charges(1)

    assert [c.id for c in charges] == [10]
    assert "Skipping malformed additional charge" in caplog.text


async def test_extend_returns_backend_message(client, backend):
    backend.add("POST", "/api/booking-bikes/admin/bookings/1/extend", json={"message": "Extended"})

    assert await client.extend_booking(1, 1736157600000) == "Extended"


async def test_test_connection(client, backend):
    backend.add("GET", "/", json={"status": "UP"})

    assert await client.test_connection() is True


def test_rejects_non_http_base_url():
    with pytest.raises(ConfigurationError):
        RentalBackendClient(AuthContext(token=make_token()), base_url="backend.local")
