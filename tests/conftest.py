"""Shared fixtures: booking factory, auth tokens and a stub rental backend."""
import base64
import json
import time
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from integrations.rental_backend_client import RentalBackendClient
from models.auth import AuthContext
from models.booking import Booking

BACKEND_URL = "http://backend.test"


def _b64(data: Dict[str, Any]) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


def make_token(expires_in: int = 3600) -> str:
    """Unsigned JWT with an ``exp`` claim ``expires_in`` seconds from now."""
    header = _b64({"alg": "HS256", "typ": "JWT"})
    payload = _b64({"sub": "admin@example.com", "exp": int(time.time()) + expires_in})
    return f"{header}.{payload}.signature"


def booking_payload(**overrides) -> Dict[str, Any]:
    """Booking as the backend serialises it."""
    data = {
        "id": 1,
        "bookingId": "BK0001",
        "status": "Accepted",
        "startDate": "2025-01-01T10:00:00",
        "endDate": "2025-01-05T10:00:00",
        "charges": 1000,
        "gst": 50,
        "deliveryCharges": 100,
        "lateFeeCharges": 0,
        "lateChargesKm": 0,
        "couponAmount": 200,
        "advanceAmount": 300,
        "startTripKm": 100,
        "endTripKm": None,
        "additionalChargesDetails": None,
        "customerName": "Asha Rao",
        "customerNumber": "9876543210",
        "paymentType": 1,
        "bikeDetails": {"registrationNumber": "KA01AB1234", "engineStatus": 0},
    }
    data.update(overrides)
    return data


class BackendStub:
    """
    Canned rental backend for httpx.MockTransport.

    Responses are registered per (method, path); a list of responses is
    served in order, the last one repeating. Every request is recorded.
    """

    def __init__(self):
        self.routes: Dict[tuple, List[Any]] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    ) -> None:
        response = handler or (status, json)
        self.routes.setdefault((method, path), []).append(response)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": f"No route for {request.method} {request.url.path}"})

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(response):
            return response(request)

        status, body = response
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)


@pytest.fixture
def auth() -> AuthContext:
    return AuthContext(token=make_token())


@pytest.fixture
def backend() -> BackendStub:
    return BackendStub()


@pytest.fixture
def client(auth, backend) -> RentalBackendClient:
    return RentalBackendClient(
        auth,
        base_url=BACKEND_URL,
        transport=httpx.MockTransport(backend),
        read_attempts=1,
        retry_base_delay=0,
    )


@pytest.fixture
def make_booking() -> Callable[..., Booking]:
    def _make(**overrides) -> Booking:
        return Booking.model_validate(booking_payload(**overrides))
    return _make
