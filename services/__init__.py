"""Business logic services."""
from services.additional_charges import AdditionalChargesManager
from services.busy_guard import BookingBusyRegistry
from services.charge_aggregator import ChargeAggregator, compute_breakdown
from services.charge_details_parser import parse_charge_details
from services.invoice_service import InvoiceService
from services.relay_control import EngineCommandResult, EngineRelayService
from services.status_machine import (
    BookingStatusMachine,
    TransitionOutcome,
    TransitionResult,
)

__all__ = [
    "AdditionalChargesManager",
    "BookingBusyRegistry",
    "ChargeAggregator",
    "compute_breakdown",
    "parse_charge_details",
    "InvoiceService",
    "EngineCommandResult",
    "EngineRelayService",
    "BookingStatusMachine",
    "TransitionOutcome",
    "TransitionResult",
]
