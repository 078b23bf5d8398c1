"""Management command to render an invoice PDF to disk."""
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from billing.models import Invoice
from billing.services import InvoiceService, PDFService


class Command(BaseCommand):
    help = "Render an invoice to PDF and write it to a file"

    def add_arguments(self, parser):
        parser.add_argument("invoice_number", type=str, help="Invoice number, e.g. INV-2025-001")
        parser.add_argument(
            "--output",
            type=str,
            help="Destination path (defaults to invoice-<number>.pdf in the current directory)",
        )

    def handle(self, *args, **options):
        number = options["invoice_number"]
        invoice = Invoice.objects.filter(invoice_number=number).first()
        if invoice is None:
            raise CommandError(f"Invoice {number} not found")

        if not PDFService.is_available():
            raise CommandError("PDF generation is unavailable: WeasyPrint could not be loaded.")

        filename, pdf_bytes = InvoiceService.render_invoice_document(invoice.pk)
        output = Path(options.get("output") or filename)
        output.write_bytes(pdf_bytes)

        self.stdout.write(self.style.SUCCESS(f"Wrote {output} ({len(pdf_bytes)} bytes)"))
