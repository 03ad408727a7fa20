"""Tracking device endpoints: engine relay and trip finalization."""
from fastapi import APIRouter, Depends, Path

from api.dependencies import get_backend_client, get_relay_service
from integrations.rental_backend_client import RentalBackendClient
from services.relay_control import EngineRelayService

router = APIRouter()


@router.post("/bookings/{booking_id}/engine/{command}")
async def switch_engine(
    booking_id: int,
    command: str = Path(pattern="^(on|off)$"),
    client: RentalBackendClient = Depends(get_backend_client),
    relay: EngineRelayService = Depends(get_relay_service),
):
    """Turn the bike's engine relay on or off."""
    booking = await client.get_booking(booking_id)
    result = await relay.switch_engine(booking, turn_on=(command == "on"))
    return result.to_dict()


@router.post("/bookings/{booking_id}/finalize")
async def finalize_trip(
    booking_id: int,
    client: RentalBackendClient = Depends(get_backend_client),
    relay: EngineRelayService = Depends(get_relay_service),
):
    """Finalize the trip on the tracking device."""
    booking = await client.get_booking(booking_id)
    message = await relay.finalize_trip(booking)
    return {"bookingId": booking_id, "message": message}
