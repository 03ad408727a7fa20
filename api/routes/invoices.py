"""Invoice endpoints."""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, PlainTextResponse

from api.dependencies import get_invoice_service
from services.invoice_service import InvoiceService

router = APIRouter()


@router.get("/bookings/{booking_id}/invoice")
async def get_invoice(
    booking_id: int,
    invoices: InvoiceService = Depends(get_invoice_service),
):
    """Invoice view with any disagreement against the computed breakdown."""
    view = await invoices.load_invoice_view(booking_id)
    body = view.model_dump(mode="json")
    body["hasDiscrepancies"] = view.has_discrepancies
    return body


@router.get("/bookings/{booking_id}/invoice/print")
async def print_invoice(
    booking_id: int,
    format: str = Query(default="html", pattern="^(html|text)$"),
    invoices: InvoiceService = Depends(get_invoice_service),
):
    """Printable invoice."""
    view = await invoices.load_invoice_view(booking_id)
    document = invoices.render(view, fmt=format)
    if format == "text":
        return PlainTextResponse(document)
    return HTMLResponse(document)
