"""Request-scoped dependencies for the API routes."""
from typing import Optional

from fastapi import Depends, Header, Request

from config import get_settings
from integrations.rental_backend_client import RentalBackendClient
from models.auth import AuthContext
from services.busy_guard import BookingBusyRegistry
from services.invoice_service import InvoiceService
from services.relay_control import EngineRelayService
from services.status_machine import BookingStatusMachine


def get_auth_context(authorization: Optional[str] = Header(default=None)) -> AuthContext:
    """Caller's bearer token, falling back to the configured service token."""
    return AuthContext.from_authorization_header(
        authorization,
        fallback_token=get_settings().backend_api_token,
    )


def get_backend_client(auth: AuthContext = Depends(get_auth_context)) -> RentalBackendClient:
    return RentalBackendClient(auth)


def get_busy_registry(request: Request) -> BookingBusyRegistry:
    """Process-wide busy registry kept on the application state."""
    registry = getattr(request.app.state, "busy_registry", None)
    if registry is None:
        registry = BookingBusyRegistry()
        request.app.state.busy_registry = registry
    return registry


def get_status_machine(
    client: RentalBackendClient = Depends(get_backend_client),
    busy: BookingBusyRegistry = Depends(get_busy_registry),
) -> BookingStatusMachine:
    return BookingStatusMachine(client, busy)


def get_relay_service(
    client: RentalBackendClient = Depends(get_backend_client),
    busy: BookingBusyRegistry = Depends(get_busy_registry),
) -> EngineRelayService:
    return EngineRelayService(client, busy)


def get_invoice_service(client: RentalBackendClient = Depends(get_backend_client)) -> InvoiceService:
    return InvoiceService(client)
