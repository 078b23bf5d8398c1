"""
PDF Service - Business logic for PDF generation.

Responsibilities:
- Invoice PDF generation
- PDF encoding backends (WeasyPrint by default)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from django.template.loader import render_to_string

from billing.services.document_layout import (
    BusinessIdentity,
    InvoiceLayout,
    build_invoice_layout,
)

if TYPE_CHECKING:
    from billing.models import Client, Invoice, Project, Workday

logger = logging.getLogger(__name__)

PDF_TEMPLATE = "billing/invoice_pdf.html"


class PDFBackend:
    """Turns an invoice layout into PDF bytes."""

    def encode(self, layout: InvoiceLayout) -> bytes:
        raise NotImplementedError


class WeasyPrintBackend(PDFBackend):
    """Renders the layout through an HTML template and prints it with WeasyPrint."""

    template_name = PDF_TEMPLATE

    def render_html(self, layout: InvoiceLayout) -> str:
        return render_to_string(self.template_name, {
            "layout": layout,
            "sections": layout.sections(),
        })

    def encode(self, layout: InvoiceLayout) -> bytes:
        from weasyprint import HTML
        from weasyprint.text.fonts import FontConfiguration

        font_config = FontConfiguration()
        html = HTML(string=self.render_html(layout))
        return html.write_pdf(font_config=font_config)


class PDFService:
    """Handles PDF generation with a unified rendering pipeline."""

    @staticmethod
    def is_available() -> bool:
        """Check if PDF generation is available."""
        try:
            from weasyprint import HTML  # noqa: F401
            return True
        except (ImportError, OSError):
            return False

    @staticmethod
    def build_layout(
        invoice: "Invoice",
        client: "Client",
        project: "Project",
        workdays: Sequence["Workday"] = (),
        identity: Optional[BusinessIdentity] = None,
    ) -> InvoiceLayout:
        return build_invoice_layout(
            invoice,
            client,
            project,
            workdays,
            identity=identity or BusinessIdentity.from_settings(),
        )

    @staticmethod
    def generate_pdf_bytes(
        invoice: "Invoice",
        client: "Client",
        project: "Project",
        workdays: Sequence["Workday"] = (),
        identity: Optional[BusinessIdentity] = None,
        backend: Optional[PDFBackend] = None,
    ) -> bytes:
        """
        Generate PDF bytes for an invoice.

        Args:
            invoice: The invoice to render
            client: Recipient of the invoice
            project: Project the invoice bills for
            workdays: Workdays referenced by the invoice (daily-rate only)
            identity: Issuer block, defaults to settings.BUSINESS_IDENTITY
            backend: PDF encoder, defaults to WeasyPrint

        Returns:
            PDF file content as bytes

        Rendering errors are logged and re-raised unchanged.
        """
        layout = PDFService.build_layout(invoice, client, project, workdays, identity)
        backend = backend or WeasyPrintBackend()

        try:
            pdf_bytes = backend.encode(layout)
        except Exception as e:
            logger.error(f"PDF generation failed for invoice {invoice.invoice_number}: {e}")
            raise

        logger.info(f"Generated PDF for invoice {invoice.invoice_number} ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    @staticmethod
    def get_invoice_filename(invoice: "Invoice") -> str:
        """Generate standardized filename for invoice PDF."""
        return f"invoice-{invoice.invoice_number}.pdf"
