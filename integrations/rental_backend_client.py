"""Rental backend REST API client."""
import logging
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from config import get_settings
from exceptions import (
    AuthError,
    BackendAPIError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    TransientError,
)
from models.auth import AuthContext
from models.booking import Booking
from models.charge import AdditionalCharge
from models.invoice import InvoiceRecord
from utils.retry import retry_async_with_backoff

logger = logging.getLogger(__name__)
settings = get_settings()

_END_TRIP_KM_MESSAGE = re.compile(r"end\s*trip\s*km", re.IGNORECASE)


class RentalBackendClient:
    """
    Client for the bike-rental backend.

    Every call carries the bearer token from the given AuthContext. Failures
    are mapped onto the exception taxonomy in ``exceptions``; reads are
    retried on transient failures, mutations never are.
    """

    def __init__(
        self,
        auth: AuthContext,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        read_attempts: Optional[int] = None,
        retry_base_delay: Optional[float] = None
    ):
        """
        Initialize backend client.

        Args:
            auth: Authentication context for every call
            base_url: Backend base URL (default: settings.backend_base_url)
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
            read_attempts: Attempts for idempotent reads
            retry_base_delay: Initial delay between read attempts
        """
        self.auth = auth
        self.base_url = (base_url or settings.backend_base_url).rstrip("/")
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Backend base URL must be http(s), got '{self.base_url}'")
        self.timeout = timeout if timeout is not None else settings.backend_timeout_seconds
        self.transport = transport
        self.read_attempts = read_attempts if read_attempts is not None else settings.backend_read_attempts
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else settings.retry_initial_delay
        )

    # Bookings

    async def get_booking(self, booking_id: int) -> Booking:
        """
        Fetch the authoritative booking record.

        Args:
            booking_id: Internal booking ID

        Returns:
            Booking
        """
        data = await self._get(f"/api/booking-bikes/getById/{booking_id}")
        return Booking.model_validate(data)

    async def accept_booking(self, booking_id: int) -> Optional[Booking]:
        data = await self._request("POST", f"/api/booking-bikes/{booking_id}/accept")
        logger.info(f"Booking {booking_id} accepted")
        return self._booking_or_none(data)

    async def cancel_booking(self, booking_id: int, cancelled_by: str = "ADMIN") -> Optional[Booking]:
        data = await self._request(
            "POST",
            f"/api/booking-bikes/{booking_id}/cancel",
            params={"cancelledBy": cancelled_by},
        )
        logger.info(f"Booking {booking_id} cancelled by {cancelled_by}")
        return self._booking_or_none(data)

    async def complete_booking(self, booking_id: int, end_trip_km: Optional[Decimal] = None) -> Optional[Booking]:
        """
        Complete a trip.

        Args:
            booking_id: Internal booking ID
            end_trip_km: Odometer reading at trip end; omitted if None

        Returns:
            Updated booking if the backend returned one
        """
        params = {}
        if end_trip_km is not None:
            params["endTripKm"] = str(end_trip_km)

        data = await self._request(
            "POST",
            f"/api/booking-bikes/{booking_id}/complete",
            params=params,
        )
        logger.info(f"Booking {booking_id} completed at {end_trip_km} km")
        return self._booking_or_none(data)

    async def extend_booking(self, booking_id: int, new_end_millis: int) -> str:
        """
        Extend a trip. The backend records the extension in
        ``additionalChargesDetails``; fetch the booking to see it.

        Args:
            booking_id: Internal booking ID
            new_end_millis: New end date-time as epoch milliseconds

        Returns:
            Confirmation message from the backend
        """
        data = await self._request(
            "POST",
            f"/api/booking-bikes/admin/bookings/{booking_id}/extend",
            params={"newEndDateTime": new_end_millis},
        )
        logger.info(f"Booking {booking_id} extended to {new_end_millis}")

        if isinstance(data, dict):
            return str(data.get("message") or "Trip extended")
        return str(data or "Trip extended")

    # Additional charges

    async def get_additional_charges(self, booking_id: int) -> List[AdditionalCharge]:
        """
        List persisted additional charges for a booking.

        Args:
            booking_id: Internal booking ID

        Returns:
            Persisted charges (empty if the backend has none)
        """
        try:
            data = await self._get(f"/api/additional-charges/booking/{booking_id}")
        except NotFoundError:
            return []

        if not isinstance(data, list):
            logger.warning(f"Unexpected additional charges payload for booking {booking_id}")
            return []

        charges = []
        for item in data:
            try:
                charges.append(AdditionalCharge.from_backend(item))
            except (PydanticValidationError, ArithmeticError, AttributeError) as e:
                logger.warning(f"Skipping malformed additional charge {item!r} for booking {booking_id}: {e}")

        return charges

    async def save_additional_charges(
        self,
        booking_id: int,
        charge_types: List[str],
        amounts: List[Decimal]
    ) -> Any:
        """
        Persist a batch of charges. ``charge_types[i]`` pairs with ``amounts[i]``.

        Args:
            booking_id: Internal booking ID
            charge_types: Charge types
            amounts: Charge amounts

        Returns:
            Backend response body
        """
        if len(charge_types) != len(amounts):
            raise ValueError("charge_types and amounts must have the same length")

        payload = {
            "bookingId": booking_id,
            "chargesType": list(charge_types),
            "chargesAmount": [_json_number(amount) for amount in amounts],
        }
        data = await self._request("POST", "/api/additional-charges/save", json=payload)
        logger.info(f"Saved {len(charge_types)} additional charges for booking {booking_id}")
        return data

    async def delete_additional_charge(self, charge_id: int) -> None:
        await self._request("DELETE", f"/api/additional-charges/{charge_id}")
        logger.info(f"Deleted additional charge {charge_id}")

    # Invoices

    async def get_invoice(self, booking_id: int) -> Optional[InvoiceRecord]:
        """
        Fetch the backend's invoice for a booking.

        Args:
            booking_id: Internal booking ID

        Returns:
            InvoiceRecord or None if no invoice exists yet
        """
        try:
            data = await self._get(f"/api/invoices/booking/{booking_id}")
        except NotFoundError:
            logger.info(f"No invoice for booking {booking_id}")
            return None

        if not data:
            return None
        return InvoiceRecord.model_validate(data)

    # Device commands

    async def relay_on(self, booking_id: int) -> Any:
        return await self._request("POST", f"/admin/device/{booking_id}/relay/on")

    async def relay_off(self, booking_id: int) -> Any:
        return await self._request("POST", f"/admin/device/{booking_id}/relay/off")

    async def finalize_trip(self, booking_id: int) -> Any:
        return await self._request("POST", f"/admin/device/{booking_id}/finalize")

    async def test_connection(self) -> bool:
        """
        Test connection to the rental backend.

        Returns:
            True if the backend answered
        """
        try:
            async with self._client() as client:
                response = await client.get("/")
                logger.info(f"Rental backend reachable (HTTP {response.status_code})")
                return response.status_code < 500
        except httpx.HTTPError as e:
            logger.error(f"Rental backend connection failed: {e}")
            return False

    # Internals

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self.auth.token:
            headers.update(self.auth.authorization_header())

        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers=headers,
        )

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET with retries on transient failures."""
        retrying = retry_async_with_backoff(
            max_attempts=self.read_attempts,
            base_delay=self.retry_base_delay,
            exceptions=(TransientError,),
        )(self._request)
        return await retrying("GET", path, params=params)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None
    ) -> Any:
        if not self.auth.is_valid():
            raise AuthError("Session expired, please log in again")

        try:
            async with self._client() as client:
                response = await client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling {method} {path}: {e}")
            raise TransientError(f"Request timed out: {method} {path}") from e
        except httpx.TransportError as e:
            logger.error(f"Network error calling {method} {path}: {e}")
            raise TransientError(f"Could not reach the rental backend: {e}") from e

        return self._handle_response(method, path, response)

    def _handle_response(self, method: str, path: str, response: httpx.Response) -> Any:
        body = _decode_body(response)

        if response.is_success:
            if isinstance(body, dict) and "data" in body and "id" not in body:
                return body["data"]
            return body

        payload = body if isinstance(body, dict) else {}
        message = str(
            payload.get("message")
            or payload.get("error")
            or (body if isinstance(body, str) and body else None)
            or f"Backend returned HTTP {response.status_code}"
        )
        status = response.status_code

        logger.warning(f"{method} {path} failed with HTTP {status}: {message}")

        if payload.get("requireEndTripKm") is True:
            raise PreconditionError(message, status_code=status, payload=payload, requires_end_trip_km=True)
        if status in (401, 403):
            raise AuthError(message, status_code=status, payload=payload)
        if status == 404:
            raise NotFoundError(message, status_code=status, payload=payload)
        if status == 409:
            raise ConflictError(message, status_code=status, payload=payload)
        if status == 412:
            raise PreconditionError(
                message,
                status_code=status,
                payload=payload,
                requires_end_trip_km=bool(_END_TRIP_KM_MESSAGE.search(message)),
            )
        if status >= 500 or status == 429:
            raise TransientError(message, status_code=status, payload=payload)

        raise BackendAPIError(message, status_code=status, payload=payload)

    @staticmethod
    def _booking_or_none(data: Any) -> Optional[Booking]:
        if isinstance(data, dict) and "id" in data:
            return Booking.model_validate(data)
        return None


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _json_number(amount: Decimal) -> Any:
    """Whole amounts as int, fractional ones as float."""
    amount = Decimal(str(amount))
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)
