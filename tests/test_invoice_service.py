"""Tests for invoice building and reconciliation."""
from decimal import Decimal

import pytest

from constants import INVOICE_SOURCE_BACKEND, INVOICE_SOURCE_COMPUTED
from models.invoice import InvoiceRecord
from services.invoice_service import InvoiceService

from tests.conftest import booking_payload


@pytest.fixture
def service():
    return InvoiceService()


def matching_invoice(**overrides):
    data = {
        "invoiceNumber": "INV-0001",
        "amount": 1000,
        "taxAmount": 50,
        "lateFeeCharges": 0,
        "lateChargesKm": 0,
        "advanceAmount": 300,
        "additionalAmount": 0,
        "totalAmount": 950,
        "status": "PAID",
        "createdAt": "2025-01-05T10:00:00",
    }
    data.update(overrides)
    return InvoiceRecord.model_validate(data)


def test_view_without_invoice_uses_computed_amounts(service, make_booking):
    view = service.build_view(make_booking(), None)

    assert view.source == INVOICE_SOURCE_COMPUTED
    assert view.invoice_number is None
    assert view.amounts.base_amount == 1000
    assert view.amounts.gst_amount == 50
    assert view.amounts.total_amount == 950
    assert view.discrepancies == []


def test_view_prefers_booking_final_amount_over_computed(service, make_booking):
    view = service.build_view(make_booking(finalAmount=975), None)

    assert view.amounts.total_amount == 975


def test_matching_invoice_has_no_discrepancies(service, make_booking):
    view = service.build_view(make_booking(), matching_invoice())

    assert view.source == INVOICE_SOURCE_BACKEND
    assert view.invoice_number == "INV-0001"
    assert view.has_discrepancies is False
    assert view.payment_status_label == "Payment Completed"


def test_disagreement_is_reported_not_overwritten(service, make_booking):
    view = service.build_view(make_booking(), matching_invoice(totalAmount=1000, taxAmount=55))

    fields = {d.field: d for d in view.discrepancies}
    assert set(fields) == {"totalAmount", "taxAmount"}
    assert fields["totalAmount"].invoice_amount == 1000
    assert fields["totalAmount"].computed_amount == 950
    assert fields["totalAmount"].difference == 50
    # The backend invoice stays authoritative for display
    assert view.amounts.total_amount == 1000
    assert view.amounts.gst_amount == 55


def test_fields_absent_from_invoice_are_not_compared(service, make_booking):
    invoice = InvoiceRecord.model_validate({"invoiceNumber": "INV-0002", "amount": 1000})

    view = service.build_view(make_booking(), invoice)

    assert view.discrepancies == []
    assert view.amounts.total_amount == 950


def test_additional_amount_covers_extensions_and_manual_charges(service, make_booking):
    booking = make_booking(
        additionalChargesDetails=(
            "Extend Trip 05 Jan 2025 -> 06 Jan 2025: base=500.00, gst(5%)=25.00, total=525.00"
            " | Manual charges: Helmet=100"
        ),
    )

    view = service.build_view(booking, None)

    assert view.amounts.additional_amount == 625


def test_trip_details_carried_into_view(service, make_booking):
    view = service.build_view(make_booking(startTripKm=100, endTripKm=150, paymentType=2), None)

    assert view.trip_distance_km == Decimal("50")
    assert view.payment_mode == "Online Payment"
    assert view.vehicle_number == "KA01AB1234"


def test_render_text(service, make_booking):
    view = service.build_view(make_booking(startTripKm=100, endTripKm=150), matching_invoice())

    text = service.render(view, fmt="text")

    assert "Invoice #INV-0001" in text
    assert "Invoice Date: 05/01/2025" in text
    assert "Total Payable: ₹950" in text
    assert "Distance: 50.00 km" in text


def test_render_html_escapes_customer_data(service, make_booking):
    view = service.build_view(make_booking(customerName="<script>alert(1)</script>"), None)

    html = service.render(view, fmt="html")

    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_render_unknown_format(service, make_booking):
    view = service.build_view(make_booking(), None)

    with pytest.raises(ValueError):
        service.render(view, fmt="pdf")


def test_breakdown_summary(service, make_booking):
    booking = make_booking()
    breakdown = service.aggregator.compute_breakdown(booking)

    text = service.render_breakdown(booking, breakdown)

    assert "Coupon Discount: -₹200" in text
    assert "Grand Total: ₹1,250" in text
    assert "Final Payable: ₹950" in text


async def test_load_invoice_view(client, backend):
    backend.add("GET", "/api/booking-bikes/getById/1", json=booking_payload())
    backend.add("GET", "/api/invoices/booking/1", json={"invoiceNumber": "INV-0001", "totalAmount": 950})
    backend.add("GET", "/api/additional-charges/booking/1", json=[])

    view = await InvoiceService(client).load_invoice_view(1)

    assert view.invoice_number == "INV-0001"
    assert view.discrepancies == []
