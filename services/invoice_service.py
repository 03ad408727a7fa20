"""Invoice view: backend invoice reconciled against the computed breakdown."""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from constants import (
    INVOICE_SOURCE_BACKEND,
    INVOICE_SOURCE_COMPUTED,
    LINE_ITEM_ADVANCE,
    LINE_ITEM_DISCOUNT,
)
from integrations.rental_backend_client import RentalBackendClient
from models.booking import Booking
from models.charge import AdditionalCharge
from models.invoice import (
    InvoiceAmounts,
    InvoiceBreakdown,
    InvoiceDiscrepancy,
    InvoiceRecord,
    InvoiceView,
)
from services.charge_aggregator import ChargeAggregator
from templates.invoice_templates import get_document_template
from utils.date_helpers import format_date_display
from utils.formatting import format_currency, format_km, round_currency

logger = logging.getLogger(__name__)

PAYMENT_TYPE_ONLINE = 2


class InvoiceService:
    """Build, reconcile and render invoices for bookings."""

    def __init__(self, client: Optional[RentalBackendClient] = None, aggregator: Optional[ChargeAggregator] = None):
        """
        Initialize invoice service.

        Args:
            client: Rental backend client (only needed by ``load_invoice_view``)
            aggregator: Charge aggregator
        """
        self.client = client
        self.aggregator = aggregator or ChargeAggregator()

    async def load_invoice_view(self, booking_id: int) -> InvoiceView:
        """
        Fetch booking, invoice and additional charges and build the view.

        Args:
            booking_id: Internal booking ID

        Returns:
            InvoiceView
        """
        booking = await self.client.get_booking(booking_id)
        invoice = await self.client.get_invoice(booking_id)
        charges = await self.client.get_additional_charges(booking_id)
        return self.build_view(booking, invoice, charges)

    def build_view(
        self,
        booking: Booking,
        invoice: Optional[InvoiceRecord] = None,
        additional_charges: Optional[List[AdditionalCharge]] = None
    ) -> InvoiceView:
        """
        Build the printable invoice view.

        The backend invoice is authoritative wherever it carries a value; the
        computed breakdown fills the gaps. Disagreements are reported, never
        overwritten.

        Args:
            booking: Booking record
            invoice: Backend invoice, if one exists
            additional_charges: Charges listed for the booking

        Returns:
            InvoiceView
        """
        breakdown = self.aggregator.compute_breakdown(booking, additional_charges)
        discrepancies = self.reconcile(invoice, breakdown) if invoice else []

        computed_total = (
            round_currency(booking.final_amount)
            if booking.final_amount is not None
            else breakdown.final_amount_payable
        )

        def pick(invoice_value: Optional[Decimal], fallback: int) -> int:
            return round_currency(invoice_value) if invoice_value is not None else fallback

        amounts = InvoiceAmounts(
            base_amount=pick(invoice.amount if invoice else None, breakdown.base_rental_price),
            gst_amount=pick(invoice.tax_amount if invoice else None, breakdown.total_gst_amount),
            delivery_charges=breakdown.delivery_charges,
            additional_amount=pick(
                invoice.additional_amount if invoice else None,
                self._computed_additional_amount(breakdown),
            ),
            late_fee_charges=pick(invoice.late_fee_charges if invoice else None, breakdown.late_fee),
            late_charges_km=pick(invoice.late_charges_km if invoice else None, breakdown.extra_km_charges),
            coupon_discount=breakdown.coupon_discount,
            advance_amount=pick(invoice.advance_amount if invoice else None, breakdown.advance_amount),
            total_amount=pick(invoice.total_amount if invoice else None, computed_total),
        )

        return InvoiceView(
            booking_id=booking.id,
            booking_code=booking.booking_id,
            invoice_number=invoice.invoice_number if invoice else None,
            invoice_date=(invoice.created_at if invoice else None) or booking.end_date,
            source=INVOICE_SOURCE_BACKEND if invoice else INVOICE_SOURCE_COMPUTED,
            customer_name=booking.customer_name,
            customer_number=booking.customer_number,
            vehicle_number=booking.vehicle_number,
            start_date=booking.start_date,
            end_date=booking.end_date,
            start_trip_km=booking.start_trip_km,
            end_trip_km=booking.end_trip_km,
            trip_distance_km=booking.trip_distance_km,
            payment_mode="Online Payment" if booking.payment_type == PAYMENT_TYPE_ONLINE else "Cash",
            payment_status=(invoice.status if invoice and invoice.status else None),
            address=booking.address,
            additional_details=(invoice.additional_details if invoice else None) or booking.additional_charges_details,
            amounts=amounts,
            breakdown=breakdown,
            discrepancies=discrepancies,
        )

    def reconcile(self, invoice: InvoiceRecord, breakdown: InvoiceBreakdown) -> List[InvoiceDiscrepancy]:
        """
        Compare the backend invoice with the computed breakdown.

        Only fields the invoice actually carries are compared.

        Args:
            invoice: Backend invoice
            breakdown: Computed breakdown

        Returns:
            Discrepancies, empty if the two agree
        """
        comparisons = [
            ("amount", invoice.amount, breakdown.base_rental_price),
            ("taxAmount", invoice.tax_amount, breakdown.total_gst_amount),
            ("lateFeeCharges", invoice.late_fee_charges, breakdown.late_fee),
            ("lateChargesKm", invoice.late_charges_km, breakdown.extra_km_charges),
            ("advanceAmount", invoice.advance_amount, breakdown.advance_amount),
            ("additionalAmount", invoice.additional_amount, self._computed_additional_amount(breakdown)),
            ("totalAmount", invoice.total_amount, breakdown.final_amount_payable),
        ]

        discrepancies = []
        for field, invoice_value, computed in comparisons:
            if invoice_value is None:
                continue
            invoiced = round_currency(invoice_value)
            if invoiced != computed:
                discrepancies.append(InvoiceDiscrepancy(
                    field=field,
                    invoice_amount=invoiced,
                    computed_amount=computed,
                ))

        if discrepancies:
            logger.warning(
                f"Invoice {invoice.invoice_number} disagrees with computed breakdown on "
                f"{', '.join(d.field for d in discrepancies)}"
            )

        return discrepancies

    def render(self, view: InvoiceView, fmt: str = "html") -> str:
        """
        Render the printable invoice.

        Args:
            view: Invoice view
            fmt: ``html`` or ``text``

        Returns:
            Rendered document
        """
        template = get_document_template("invoice", self._invoice_template_data(view))
        if fmt == "text":
            return template.render_text()
        if fmt == "html":
            return template.render_html()
        raise ValueError(f"Unknown invoice format: {fmt}")

    def render_breakdown(self, booking: Booking, breakdown: InvoiceBreakdown) -> str:
        """Plain-text breakdown summary for operators."""
        rows = []
        for item in breakdown.line_items:
            sign = "-" if item.category in (LINE_ITEM_DISCOUNT, LINE_ITEM_ADVANCE) else ""
            rows.append({"label": item.description, "amount": f"{sign}{format_currency(item.amount)}"})

        data = {
            "booking_code": booking.booking_id or str(booking.id),
            "rows": rows,
            "subtotal_before_gst": format_currency(breakdown.subtotal_before_gst),
            "total_gst_amount": format_currency(breakdown.total_gst_amount),
            "grand_total": format_currency(breakdown.grand_total),
            "final_amount_payable": format_currency(breakdown.final_amount_payable),
            "staged_charges_total": (
                format_currency(breakdown.staged_charges_total) if breakdown.staged_charges_total else ""
            ),
        }
        return get_document_template("breakdown", data).render_text()

    @staticmethod
    def _computed_additional_amount(breakdown: InvoiceBreakdown) -> int:
        """Everything beyond the base rental that the backend bills as additional."""
        return (
            breakdown.extension_base_total
            + breakdown.extension_gst_total
            + breakdown.manual_charges_total
        )

    @staticmethod
    def _invoice_template_data(view: InvoiceView) -> Dict[str, Any]:
        amounts = view.amounts
        rows = [{"label": "Base Rental", "amount": format_currency(amounts.base_amount)}]

        optional = [
            ("Delivery Charges", amounts.delivery_charges, ""),
            ("Additional Charges", amounts.additional_amount, "+"),
            ("Late Fee", amounts.late_fee_charges, "+"),
            ("Extra KM Charges", amounts.late_charges_km, "+"),
            ("Coupon Discount", amounts.coupon_discount, "-"),
        ]
        for label, amount, sign in optional:
            if amount:
                rows.append({"label": label, "amount": f"{sign}{format_currency(amount)}"})

        rows.append({"label": "GST", "amount": format_currency(amounts.gst_amount)})
        if amounts.advance_amount:
            rows.append({"label": "Advance Paid", "amount": f"-{format_currency(amounts.advance_amount)}"})

        return {
            "invoice_number": view.invoice_number or "",
            "booking_code": view.booking_code,
            "invoice_date": format_date_display(view.invoice_date),
            "payment_status": view.payment_status_label,
            "customer_name": view.customer_name or "",
            "customer_number": view.customer_number or "",
            "vehicle_number": view.vehicle_number or "",
            "start_date": format_date_display(view.start_date),
            "end_date": format_date_display(view.end_date),
            "start_trip_km": format_km(view.start_trip_km),
            "end_trip_km": format_km(view.end_trip_km),
            "trip_distance": format_km(view.trip_distance_km),
            "rows": rows,
            "total_amount": format_currency(amounts.total_amount),
            "payment_mode": view.payment_mode,
            "address": view.address or "",
            "additional_details": view.additional_details or "",
        }
