import io

import pytest

from billing.services.pdf_service import PDFBackend, PDFService, WeasyPrintBackend
from tests.factories import InvoiceFactory

requires_weasyprint = pytest.mark.skipif(
    not PDFService.is_available(),
    reason="WeasyPrint system libraries are not installed",
)


@pytest.mark.django_db
class TestPDFService:
    def test_filename(self):
        invoice = InvoiceFactory(invoice_number="INV-2025-001")
        assert PDFService.get_invoice_filename(invoice) == "invoice-INV-2025-001.pdf"

    def test_generate_uses_given_backend(self, acme_workdays, pdf_backend, identity):
        project = acme_workdays[0].project
        invoice = InvoiceFactory(
            invoice_number="INV-2025-001",
            project=project,
            amount=120000,
            workday_ids=[w.pk for w in acme_workdays],
        )

        pdf = PDFService.generate_pdf_bytes(
            invoice, project.client, project, acme_workdays, identity=identity, backend=pdf_backend
        )

        assert pdf.startswith(b"%PDF")
        assert b"INV-2025-001" in pdf
        assert b"ap@acme.test" in pdf
        assert len(pdf_backend.layouts) == 1
        assert len(pdf_backend.layouts[0].line_item_rows) == 6

    def test_backend_errors_propagate(self, identity):
        class BrokenBackend(PDFBackend):
            def encode(self, layout):
                raise RuntimeError("font missing")

        invoice = InvoiceFactory()
        with pytest.raises(RuntimeError):
            PDFService.generate_pdf_bytes(
                invoice, invoice.client, invoice.project, [], identity=identity, backend=BrokenBackend()
            )

    def test_html_carries_layout_text(self, acme_workdays, identity):
        project = acme_workdays[0].project
        invoice = InvoiceFactory(invoice_number="INV-2025-001", project=project, amount=120000)
        layout = PDFService.build_layout(invoice, project.client, project, acme_workdays, identity)

        html = WeasyPrintBackend().render_html(layout)

        assert "INV-2025-001" in html
        assert "Bill To:" in html
        assert html.count("Daily Rate - ") == 6
        assert "$1,200.00" in html

    @requires_weasyprint
    def test_weasyprint_produces_a_pdf(self, acme_workdays, identity):
        project = acme_workdays[0].project
        invoice = InvoiceFactory(invoice_number="INV-2025-001", project=project, amount=120000)

        pdf = PDFService.generate_pdf_bytes(invoice, project.client, project, acme_workdays, identity=identity)

        assert pdf.startswith(b"%PDF")

    @requires_weasyprint
    def test_rendering_twice_yields_the_same_text(self, acme_workdays, identity):
        pypdf = pytest.importorskip("pypdf")
        project = acme_workdays[0].project
        invoice = InvoiceFactory(invoice_number="INV-2025-001", project=project, amount=120000)

        def extracted_text():
            pdf = PDFService.generate_pdf_bytes(invoice, project.client, project, acme_workdays, identity=identity)
            reader = pypdf.PdfReader(io.BytesIO(pdf))
            return "\n".join(page.extract_text() for page in reader.pages)

        first, second = extracted_text(), extracted_text()

        assert first == second
        assert "INV-2025-001" in first
