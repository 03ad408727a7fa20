"""Tests for the HTTP API."""
import httpx
import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_backend_client
from api.main import app
from integrations.rental_backend_client import RentalBackendClient
from models.auth import AuthContext

from tests.conftest import BACKEND_URL, BackendStub, booking_payload, make_token

GET_BOOKING = "/api/booking-bikes/getById/1"


@pytest.fixture
def stub():
    return BackendStub()


@pytest.fixture
def api(stub):
    token = make_token()

    def override():
        return RentalBackendClient(
            AuthContext(token=token),
            base_url=BACKEND_URL,
            transport=httpx.MockTransport(stub),
            read_attempts=1,
            retry_base_delay=0,
        )

    app.dependency_overrides[get_backend_client] = override
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(api):
    response = api.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] in ("healthy", "degraded")


def test_get_booking(api, stub):
    stub.add("GET", GET_BOOKING, json=booking_payload())

    response = api.get("/api/bookings/1")

    assert response.status_code == 200
    assert response.json()["bookingId"] == "BK0001"


def test_breakdown(api, stub):
    stub.add("GET", GET_BOOKING, json=booking_payload())
    stub.add("GET", "/api/additional-charges/booking/1", json=[])

    response = api.get("/api/bookings/1/breakdown")

    assert response.status_code == 200
    body = response.json()
    assert body["grand_total"] == 1250
    assert body["final_amount_payable"] == 950


def test_invalid_odometer_is_input_error(api, stub):
    stub.add("GET", GET_BOOKING, json=booking_payload(status="Accepted", startTripKm=100))

    response = api.post("/api/bookings/1/status", json={"status": "Completed", "endTripKm": 90})

    assert response.status_code == 400
    assert response.json()["category"] == "invalid_input"
    assert stub.calls("POST", "/api/booking-bikes/1/complete") == []


def test_terminal_booking_is_rejected(api, stub):
    stub.add("GET", GET_BOOKING, json=booking_payload(status="Cancelled"))

    response = api.post("/api/bookings/1/status", json={"status": "Accepted"})

    assert response.status_code == 409
    assert response.json()["category"] == "rejected"


def test_status_change_applied(api, stub):
    stub.add("GET", GET_BOOKING, json=booking_payload(status="Confirmed"))
    stub.add("GET", GET_BOOKING, json=booking_payload(status="Accepted"))
    stub.add("POST", "/api/booking-bikes/1/accept", json={"message": "Booking accepted"})

    response = api.post("/api/bookings/1/status", json={"status": "Accepted"})

    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "applied"
    assert body["booking"]["status"] == "Accepted"


def test_missing_odometer_asks_for_it(api, stub):
    stub.add("GET", GET_BOOKING, json=booking_payload(status="Accepted"))

    response = api.post("/api/bookings/1/status", json={"status": "Completed"})

    assert response.status_code == 200
    assert response.json()["outcome"] == "end_trip_km_required"


def test_backend_outage_is_retryable(api, stub):
    stub.add("GET", GET_BOOKING, status=503, json={"message": "maintenance"})

    response = api.get("/api/bookings/1")

    assert response.status_code == 503
    assert response.json()["category"] == "retry"


def test_expired_session(stub):
    app.dependency_overrides[get_backend_client] = lambda: RentalBackendClient(
        AuthContext(token=make_token(expires_in=-60)),
        base_url=BACKEND_URL,
        transport=httpx.MockTransport(stub),
    )
    try:
        response = TestClient(app).get("/api/bookings/1")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 401
    assert response.json()["category"] == "auth"


def test_save_additional_charges(api, stub):
    stub.add("POST", "/api/additional-charges/save", json={"message": "Saved"})
    stub.add("GET", "/api/additional-charges/booking/1", json=[])
    stub.add("GET", "/api/additional-charges/booking/1", json=[{"id": 11, "chargeType": "Damage", "amount": 750}])

    response = api.post(
        "/api/bookings/1/additional-charges",
        json={"charges": [{"type": "Damage", "amount": 750}]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["persistedTotal"] == 750
    assert body["saved"][0]["id"] == 11


def test_placeholder_charge_type_rejected(api, stub):
    response = api.post(
        "/api/bookings/1/additional-charges",
        json={"charges": [{"type": "Additional Charges", "amount": 750}]},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Please select a specific charge type"
    assert stub.requests == []


def test_print_invoice_text(api, stub):
    stub.add("GET", GET_BOOKING, json=booking_payload())
    stub.add("GET", "/api/invoices/booking/1", status=404, json={"message": "Invoice not found"})
    stub.add("GET", "/api/additional-charges/booking/1", json=[])

    response = api.get("/api/bookings/1/invoice/print", params={"format": "text"})

    assert response.status_code == 200
    assert "Total Payable: ₹950" in response.text


def test_engine_on(api, stub):
    stub.add("GET", GET_BOOKING, json=booking_payload(status="Start Trip"))
    stub.add("POST", "/admin/device/1/relay/on", json={"message": "Engine started"})

    response = api.post("/api/bookings/1/engine/on")

    assert response.status_code == 200
    assert response.json()["engineStatus"] == 1
