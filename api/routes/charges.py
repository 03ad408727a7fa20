"""Additional charge endpoints."""
from typing import Any, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from api.dependencies import get_backend_client
from integrations.rental_backend_client import RentalBackendClient
from models.charge import AdditionalCharge
from services.additional_charges import AdditionalChargesManager
from utils.formatting import round_currency

router = APIRouter()


class ChargeInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(alias="chargeType")
    amount: Any


class SaveChargesRequest(BaseModel):
    charges: List[ChargeInput]


def _charges_response(manager: AdditionalChargesManager, saved: List[AdditionalCharge] = None):
    body = {
        "bookingId": manager.booking_id,
        "charges": [c.model_dump(mode="json", by_alias=True) for c in manager.charges],
        "persistedTotal": round_currency(manager.persisted_total),
        "stagedTotal": round_currency(manager.staged_total),
        "total": round_currency(manager.total),
    }
    if saved is not None:
        body["saved"] = [c.model_dump(mode="json", by_alias=True) for c in saved]
    return body


@router.get("/bookings/{booking_id}/additional-charges")
async def list_additional_charges(
    booking_id: int,
    client: RentalBackendClient = Depends(get_backend_client),
):
    """List persisted additional charges."""
    manager = AdditionalChargesManager(client, booking_id)
    await manager.refresh()
    return _charges_response(manager)


@router.post("/bookings/{booking_id}/additional-charges")
async def save_additional_charges(
    booking_id: int,
    payload: SaveChargesRequest,
    client: RentalBackendClient = Depends(get_backend_client),
):
    """Validate and save a batch of additional charges."""
    manager = AdditionalChargesManager(client, booking_id)
    for charge in payload.charges:
        manager.stage(charge.type, charge.amount)

    saved = await manager.save_all()
    return _charges_response(manager, saved)


@router.delete("/bookings/{booking_id}/additional-charges/{charge_id}")
async def delete_additional_charge(
    booking_id: int,
    charge_id: int,
    client: RentalBackendClient = Depends(get_backend_client),
):
    """Delete a persisted additional charge."""
    manager = AdditionalChargesManager(client, booking_id)
    await manager.refresh()
    await manager.remove(charge_id)
    return _charges_response(manager)
