"""
Invoice Service - generation, rendering and dispatch of invoices.

Responsibilities:
- Invoice generation from a project and its selected workdays
- Status changes and deletion
- PDF rendering of a stored invoice
- Emailing an invoice with its PDF attached
- Dashboard figures
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from billing.models import Client, Invoice, Project, Workday
from billing.services.dispatch import (
    PDF_CONTENT_TYPE,
    DispatchGateway,
    EmailAttachment,
    get_dispatch_gateway,
)
from billing.services.document_layout import BusinessIdentity
from billing.services.numbering import InvoiceNumberAllocator
from billing.services.pdf_service import PDFBackend, PDFService
from billing.services.rate_calculator import compute_invoice_amount, normalize_workday_date
from billing.utils import DateHelper, format_long_date
from billing.validation import InvoiceEmailSchema, InvoiceNumberSchema
from billing.validation.errors import (
    ConflictError,
    DispatchError,
    ErrorCode,
    FieldError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

EMAIL_BODY_TEMPLATE = (
    "Dear {greeting},\n"
    "\n"
    "Please find attached invoice #{number} for the {project}. The invoice is due on {due_date}.\n"
    "\n"
    "If you have any questions regarding this invoice, please don't hesitate to contact me.\n"
    "\n"
    "Thank you for your business.\n"
    "\n"
    "Best regards,\n"
    "{sender}"
)


class InvoiceService:

    @staticmethod
    def get_invoice(invoice_id: int) -> Invoice:
        try:
            return Invoice.objects.select_related("client", "project").get(pk=invoice_id)
        except Invoice.DoesNotExist:
            raise NotFoundError(f"Invoice {invoice_id} not found")

    @staticmethod
    def get_project(project_id: int) -> Project:
        try:
            return Project.objects.select_related("client").get(pk=project_id)
        except Project.DoesNotExist:
            raise NotFoundError(f"Project {project_id} not found")

    @staticmethod
    def resolve_workdays(project: Project, workday_ids: Iterable[int]) -> List[Workday]:
        """Workdays of ``project`` with the given ids, one per distinct date, ordered by date."""
        requested = set(workday_ids)
        found = list(
            Workday.objects.filter(project=project, pk__in=requested).order_by("date", "id")
        )
        missing = requested - {w.pk for w in found}
        if missing:
            raise NotFoundError(
                f"Workday(s) {', '.join(str(i) for i in sorted(missing))} not found for project {project.pk}"
            )

        unique: Dict[date, Workday] = {}
        for workday in found:
            unique.setdefault(workday.date, workday)
        return list(unique.values())

    @staticmethod
    def resolve_dates(
        invoice_date: Optional[Any] = None,
        due_date: Optional[Any] = None,
    ) -> Tuple[date, date]:
        invoice_date = normalize_workday_date(invoice_date) if invoice_date else timezone.localdate()
        if due_date:
            due_date = normalize_workday_date(due_date)
        else:
            due_date = DateHelper.add_days(invoice_date, settings.INVOICE_PAYMENT_TERMS_DAYS)

        if due_date < invoice_date:
            raise ValidationError(
                message="Due date cannot be before invoice date.",
                fields=[FieldError(
                    field="due_date",
                    code=ErrorCode.FIELD_OUT_OF_RANGE.value,
                    message="Due date cannot be before invoice date.",
                )],
            )
        return invoice_date, due_date

    @staticmethod
    def generate_invoice(
        project_id: int,
        workday_ids: Optional[Sequence[int]] = None,
        invoice_date: Optional[Any] = None,
        due_date: Optional[Any] = None,
        notes: str = "",
        invoice_number: Optional[str] = None,
        allocator: Optional[InvoiceNumberAllocator] = None,
    ) -> Invoice:
        """
        Create an invoice for a project.

        Daily-rate invoices bill the selected workdays; fixed-price invoices
        bill the project rate and ignore any selection. The amount is a
        snapshot: later changes to the project or its workdays do not alter
        it. Nothing is written unless every check passes.
        """
        project = InvoiceService.get_project(project_id)
        invoice_date, due_date = InvoiceService.resolve_dates(invoice_date, due_date)

        if project.billing_mode == Project.BillingMode.DAILY_RATE:
            workdays = InvoiceService.resolve_workdays(project, workday_ids or [])
            amount = compute_invoice_amount(project, [w.date for w in workdays])
            stored_ids = [w.pk for w in workdays]
        else:
            amount = compute_invoice_amount(project)
            stored_ids = []

        fields = {
            "project": project,
            "client": project.client,
            "amount": amount,
            "status": Invoice.Status.PENDING,
            "invoice_date": invoice_date,
            "due_date": due_date,
            "workday_ids": stored_ids,
            "notes": notes or "",
        }

        if invoice_number:
            invoice = InvoiceService._create_with_number(invoice_number, fields)
        else:
            allocator = allocator or InvoiceNumberAllocator()
            invoice = allocator.create_invoice(**fields)

        logger.info(
            f"Invoice {invoice.invoice_number} created for project {project.pk} "
            f"({len(stored_ids)} workday(s), amount={amount})"
        )
        return invoice

    @staticmethod
    def _create_with_number(invoice_number: str, fields: Dict[str, Any]) -> Invoice:
        invoice_number = invoice_number.strip()
        InvoiceNumberSchema.raise_if_invalid({"invoice_number": invoice_number})

        try:
            with transaction.atomic():
                return Invoice.objects.create(invoice_number=invoice_number, **fields)
        except IntegrityError:
            logger.warning(f"Requested invoice number {invoice_number} is already in use")
            raise ConflictError(
                message=f"Invoice number {invoice_number} already exists.",
                code=ErrorCode.INVOICE_NUMBER_CONFLICT,
            )

    @staticmethod
    def update_status(invoice_id: int, status: str) -> Invoice:
        if status not in Invoice.Status.values:
            raise ValidationError(
                message=f"Invalid status: {status}",
                fields=[FieldError(
                    field="status",
                    code=ErrorCode.FIELD_INVALID.value,
                    message=f"Status must be one of: {', '.join(Invoice.Status.values)}.",
                )],
            )

        invoice = InvoiceService.get_invoice(invoice_id)
        invoice.status = status
        invoice.save(update_fields=["status"])
        logger.info(f"Invoice {invoice.invoice_number} marked {status}")
        return invoice

    @staticmethod
    def delete_invoice(invoice_id: int) -> None:
        invoice = InvoiceService.get_invoice(invoice_id)
        number = invoice.invoice_number
        invoice.delete()
        logger.info(f"Invoice {number} deleted")

    @staticmethod
    def get_document_inputs(invoice: Invoice) -> Tuple[Client, Project, List[Workday]]:
        """Rows come from referenced workdays that still exist."""
        workdays = list(
            Workday.objects.filter(pk__in=invoice.workday_ids or []).order_by("date", "id")
        )
        return invoice.client, invoice.project, workdays

    @staticmethod
    def render_invoice_document(
        invoice_id: int,
        identity: Optional[BusinessIdentity] = None,
        backend: Optional[PDFBackend] = None,
    ) -> Tuple[str, bytes]:
        invoice = InvoiceService.get_invoice(invoice_id)
        client, project, workdays = InvoiceService.get_document_inputs(invoice)
        pdf_bytes = PDFService.generate_pdf_bytes(
            invoice, client, project, workdays, identity=identity, backend=backend
        )
        return PDFService.get_invoice_filename(invoice), pdf_bytes

    @staticmethod
    def default_email(invoice: Invoice, identity: Optional[BusinessIdentity] = None) -> Dict[str, str]:
        identity = identity or BusinessIdentity.from_settings()
        client = invoice.client
        project = invoice.project
        return {
            "recipient": client.billing_email,
            "subject": f"Invoice #{invoice.invoice_number} for {project.name}",
            "message": EMAIL_BODY_TEMPLATE.format(
                greeting=client.contact_person or client.company_name,
                number=invoice.invoice_number,
                project=project.name,
                due_date=format_long_date(invoice.due_date),
                sender=identity.name,
            ),
        }

    @staticmethod
    def send_invoice(
        invoice_id: int,
        recipient: str,
        subject: str,
        message: str,
        gateway: Optional[DispatchGateway] = None,
        backend: Optional[PDFBackend] = None,
    ) -> Invoice:
        """
        Email an invoice with its PDF attached.

        The invoice must already exist. A failed send raises ``DispatchError``
        and leaves the invoice exactly as it was.
        """
        InvoiceEmailSchema.raise_if_invalid({
            "recipient": recipient,
            "subject": subject,
            "message": message,
        })

        invoice = InvoiceService.get_invoice(invoice_id)
        filename, pdf_bytes = InvoiceService.render_invoice_document(invoice.pk, backend=backend)
        attachment = EmailAttachment(filename=filename, content=pdf_bytes, content_type=PDF_CONTENT_TYPE)

        gateway = gateway or get_dispatch_gateway()
        if not gateway.send(recipient.strip(), subject.strip(), message, [attachment]):
            logger.error(f"Dispatch of invoice {invoice.invoice_number} to {recipient} failed")
            raise DispatchError(f"Failed to send invoice {invoice.invoice_number} to {recipient.strip()}")

        logger.info(f"Invoice {invoice.invoice_number} sent to {recipient.strip()}")
        return invoice

    @staticmethod
    def dashboard_stats() -> Dict[str, int]:
        return {
            "active_projects": Project.objects.filter(status=Project.Status.IN_PROGRESS).count(),
            "total_clients": Client.objects.count(),
            "invoices_sent": Invoice.objects.count(),
            "total_earnings": Invoice.objects.aggregate(total=Sum("amount"))["total"] or 0,
        }

    @staticmethod
    def next_invoice_number() -> str:
        return InvoiceNumberAllocator().next_invoice_number()
