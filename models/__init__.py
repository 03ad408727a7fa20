"""Booking, charge and invoice models."""
from models.auth import AuthContext
from models.booking import Booking, BookingStatus
from models.charge import (
    AdditionalCharge,
    ChargeDetailEntry,
    ChargeDetails,
    ExtensionRecord,
    ManualChargeRecord,
)
from models.invoice import (
    InvoiceAmounts,
    InvoiceBreakdown,
    InvoiceDiscrepancy,
    InvoiceLineItem,
    InvoiceRecord,
    InvoiceView,
)
from models.optimistic import OptimisticState, OptimisticValue

__all__ = [
    "AuthContext",
    "Booking",
    "BookingStatus",
    "AdditionalCharge",
    "ChargeDetailEntry",
    "ChargeDetails",
    "ExtensionRecord",
    "ManualChargeRecord",
    "InvoiceAmounts",
    "InvoiceBreakdown",
    "InvoiceDiscrepancy",
    "InvoiceLineItem",
    "InvoiceRecord",
    "InvoiceView",
    "OptimisticState",
    "OptimisticValue",
]
