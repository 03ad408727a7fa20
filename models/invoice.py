"""Invoice models."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from constants import INVOICE_SOURCE_COMPUTED
from exceptions import ValidationError
from models.charge import ExtensionRecord, ManualChargeRecord
from utils.date_helpers import parse_backend_datetime


class InvoiceLineItem(BaseModel):
    """Individual line of a computed breakdown, in whole rupees."""

    description: str
    amount: int
    category: str

    def __repr__(self):
        return f"<InvoiceLineItem(description='{self.description}', amount={self.amount})>"


class InvoiceBreakdown(BaseModel):
    """
    Itemised payable computation for one booking.

    Recomputed on demand from the booking; never cached across a mutation.
    ``grand_total`` includes the advance as received money and
    ``final_amount_payable`` deducts it again.
    """

    base_rental_price: int = 0
    base_rental_gst: int = 0
    delivery_charges: int = 0
    coupon_discount: int = 0
    late_fee: int = 0
    extra_km_charges: int = 0
    advance_amount: int = 0
    extension_base_total: int = 0
    extension_gst_total: int = 0
    manual_charges_total: int = 0

    subtotal_before_gst: int = 0
    total_gst_amount: int = 0
    grand_total: int = 0
    final_amount_payable: int = 0

    line_items: list[InvoiceLineItem] = Field(default_factory=list)
    extensions: list[ExtensionRecord] = Field(default_factory=list)
    manual_charges: list[ManualChargeRecord] = Field(default_factory=list)

    # Informational: operator-entered charges, outside the totals above
    persisted_charges_total: int = 0
    staged_charges_total: int = 0


class InvoiceRecord(BaseModel):
    """Invoice as computed and stored by the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    invoice_number: Optional[str] = Field(default=None, alias="invoiceNumber")
    status: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    amount: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = Field(default=None, alias="taxAmount")
    additional_amount: Optional[Decimal] = Field(default=None, alias="additionalAmount")
    late_fee_charges: Optional[Decimal] = Field(default=None, alias="lateFeeCharges")
    late_charges_km: Optional[Decimal] = Field(default=None, alias="lateChargesKm")
    advance_amount: Optional[Decimal] = Field(default=None, alias="advanceAmount")
    total_amount: Optional[Decimal] = Field(default=None, alias="totalAmount")
    additional_details: Optional[str] = Field(default=None, alias="additionalDetails")

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> Optional[datetime]:
        try:
            return parse_backend_datetime(value)
        except ValidationError as e:
            raise ValueError(e.message) from e


class InvoiceDiscrepancy(BaseModel):
    """A field where the backend invoice and the computed breakdown disagree."""

    field: str
    invoice_amount: int
    computed_amount: int

    @property
    def difference(self) -> int:
        return self.invoice_amount - self.computed_amount


class InvoiceAmounts(BaseModel):
    """Amounts shown on the printable invoice."""

    base_amount: int = 0
    gst_amount: int = 0
    delivery_charges: int = 0
    additional_amount: int = 0
    late_fee_charges: int = 0
    late_charges_km: int = 0
    coupon_discount: int = 0
    advance_amount: int = 0
    total_amount: int = 0


class InvoiceView(BaseModel):
    """Printable invoice: backend record where present, computed breakdown otherwise."""

    booking_id: int
    booking_code: str
    invoice_number: Optional[str] = None
    invoice_date: Optional[datetime] = None
    source: str = INVOICE_SOURCE_COMPUTED

    customer_name: Optional[str] = None
    customer_number: Optional[str] = None
    vehicle_number: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    start_trip_km: Optional[Decimal] = None
    end_trip_km: Optional[Decimal] = None
    trip_distance_km: Optional[Decimal] = None
    payment_mode: str = "Cash"
    payment_status: Optional[str] = None
    address: Optional[str] = None
    additional_details: Optional[str] = None

    amounts: InvoiceAmounts
    breakdown: InvoiceBreakdown
    discrepancies: list[InvoiceDiscrepancy] = Field(default_factory=list)

    @property
    def has_discrepancies(self) -> bool:
        return bool(self.discrepancies)

    @property
    def payment_status_label(self) -> str:
        return "Payment Completed" if self.payment_status == "PAID" else "Payment Pending"
