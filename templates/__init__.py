"""Invoice and breakdown document templates."""
from templates.invoice_templates import (
    BreakdownSummaryTemplate,
    DocumentTemplate,
    InvoiceDocumentTemplate,
    get_document_template,
)

__all__ = [
    "BreakdownSummaryTemplate",
    "DocumentTemplate",
    "InvoiceDocumentTemplate",
    "get_document_template",
]
