"""Printable invoice and charge breakdown templates."""
from html import escape
from typing import Any, Dict, List


class DocumentTemplate:
    """Base class for rendered documents."""

    def __init__(self, data: Dict[str, Any]):
        self.data = data

    def render_title(self) -> str:
        """Render document title."""
        raise NotImplementedError

    def render_text(self) -> str:
        """Render plain text document."""
        raise NotImplementedError

    def render_html(self) -> str:
        """Render HTML document."""
        raise NotImplementedError

    def _rows(self) -> List[Dict[str, str]]:
        return self.data.get("rows", [])


class InvoiceDocumentTemplate(DocumentTemplate):
    """Printable customer invoice. All values arrive pre-formatted."""

    def render_title(self) -> str:
        invoice_number = self.data.get("invoice_number", "")
        return f"Invoice #{invoice_number}" if invoice_number else "Invoice"

    def render_text(self) -> str:
        lines = [
            self.render_title(),
            "=" * 40,
            f"Booking: {self.data.get('booking_code', '')}",
            f"Invoice Date: {self.data.get('invoice_date', '')}",
            f"Payment Status: {self.data.get('payment_status', '')}",
            "",
            f"Customer: {self.data.get('customer_name', '')}",
            f"Phone: {self.data.get('customer_number', '')}",
            f"Vehicle: {self.data.get('vehicle_number', '')}",
            f"Trip: {self.data.get('start_date', '')} to {self.data.get('end_date', '')}",
            f"Odometer: {self.data.get('start_trip_km', '')} to {self.data.get('end_trip_km', '')}",
            f"Distance: {self.data.get('trip_distance', '')}",
            "",
            "Charges:",
            "-" * 40,
        ]

        for row in self._rows():
            lines.append(f"{row['label']}: {row['amount']}")

        lines.extend([
            "-" * 40,
            f"Total Payable: {self.data.get('total_amount', '')}",
            "",
            f"Payment Method: {self.data.get('payment_mode', '')}",
        ])

        if self.data.get("additional_details"):
            lines.append(f"Additional Details: {self.data['additional_details']}")

        if self.data.get("address"):
            lines.append(f"Address: {self.data['address']}")

        return "\n".join(lines)

    def render_html(self) -> str:
        rows_html = "\n".join(
            f"""                <tr><td>{escape(row['label'])}</td><td class="amount">{escape(row['amount'])}</td></tr>"""
            for row in self._rows()
        )
        details_html = ""
        if self.data.get("additional_details"):
            details_html = f"""
            <p class="details"><strong>Additional Details:</strong> {escape(self.data['additional_details'])}</p>"""

        return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{escape(self.render_title())}</title>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 700px; margin: 0 auto; padding: 20px; }}
        .header {{ background-color: #4f46e5; color: white; padding: 20px; }}
        .section {{ padding: 15px; margin: 15px 0; background-color: #f9fafb; border-radius: 5px; }}
        table {{ width: 100%; border-collapse: collapse; }}
        td {{ padding: 8px 0; border-bottom: 1px solid #eee; }}
        .amount {{ text-align: right; }}
        .total {{ font-size: 1.2em; font-weight: bold; border-top: 2px solid #4f46e5; padding-top: 10px; }}
        .details {{ color: #666; font-size: 0.9em; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{escape(self.render_title())}</h1>
            <p>Booking {escape(self.data.get('booking_code', ''))} &middot; {escape(self.data.get('invoice_date', ''))} &middot; {escape(self.data.get('payment_status', ''))}</p>
        </div>

        <div class="section">
            <p><strong>Customer:</strong> {escape(self.data.get('customer_name', ''))}</p>
            <p><strong>Phone:</strong> {escape(self.data.get('customer_number', ''))}</p>
            <p><strong>Vehicle:</strong> {escape(self.data.get('vehicle_number', ''))}</p>
            <p><strong>Trip:</strong> {escape(self.data.get('start_date', ''))} to {escape(self.data.get('end_date', ''))}</p>
            <p><strong>Distance:</strong> {escape(self.data.get('trip_distance', ''))}</p>
        </div>

        <div class="section">
            <table>
{rows_html}
            </table>
            <p class="total">Total Payable: {escape(self.data.get('total_amount', ''))}</p>{details_html}
        </div>

        <div class="section">
            <p><strong>Payment Method:</strong> {escape(self.data.get('payment_mode', ''))}</p>
            <p><strong>Address:</strong> {escape(self.data.get('address', ''))}</p>
        </div>
    </div>
</body>
</html>
"""


class BreakdownSummaryTemplate(DocumentTemplate):
    """Operator-facing summary of a computed charge breakdown."""

    def render_title(self) -> str:
        return f"Charge Breakdown - Booking {self.data.get('booking_code', '')}"

    def render_text(self) -> str:
        lines = [self.render_title(), ""]
        for row in self._rows():
            lines.append(f"{row['label']}: {row['amount']}")
        lines.extend([
            "",
            f"Subtotal (before GST): {self.data.get('subtotal_before_gst', '')}",
            f"Total GST: {self.data.get('total_gst_amount', '')}",
            f"Grand Total: {self.data.get('grand_total', '')}",
            f"Final Payable: {self.data.get('final_amount_payable', '')}",
        ])
        if self.data.get("staged_charges_total"):
            lines.append(f"Unsaved Additional Charges: {self.data['staged_charges_total']}")
        return "\n".join(lines)

    def render_html(self) -> str:
        rows_html = "\n".join(
            f"        <li>{escape(row['label'])}: {escape(row['amount'])}</li>"
            for row in self._rows()
        )
        return f"""<div class="breakdown">
    <h3>{escape(self.render_title())}</h3>
    <ul>
{rows_html}
    </ul>
    <p>Subtotal (before GST): {escape(self.data.get('subtotal_before_gst', ''))}</p>
    <p>Total GST: {escape(self.data.get('total_gst_amount', ''))}</p>
    <p>Grand Total: {escape(self.data.get('grand_total', ''))}</p>
    <p><strong>Final Payable: {escape(self.data.get('final_amount_payable', ''))}</strong></p>
</div>
"""


def get_document_template(template_type: str, data: Dict[str, Any]) -> DocumentTemplate:
    """
    Get document template by type.

    Args:
        template_type: Type of template (invoice, breakdown)
        data: Template data

    Returns:
        DocumentTemplate instance

    Raises:
        ValueError: If template type is unknown
    """
    templates = {
        "invoice": InvoiceDocumentTemplate,
        "breakdown": BreakdownSummaryTemplate,
    }

    template_class = templates.get(template_type.lower())
    if not template_class:
        raise ValueError(f"Unknown template type: {template_type}")

    return template_class(data)
