"""
Document Layout - pure description of an invoice document.

Turns an invoice, its client, project and workdays into an ordered sequence of
text instructions grouped by section. Nothing here touches a PDF library; the
PDF service hands the layout to a backend that encodes it.

Sections, in order:
- header: title and invoice number
- issuer: business identity block
- recipient: "Bill To" block
- details: dates, project and amount due
- items: line item table
- totals: subtotal, tax and total
- notes: invoice notes and payment instructions
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from django.conf import settings

from billing.models import Project
from billing.services.rate_calculator import normalize_workday_date
from billing.utils import format_currency, format_long_date

DEFAULT_NOTE_TEMPLATE = "Thank you for your business! Payment is due within {days} days of invoice date."
PAYMENT_INSTRUCTIONS = "Please make payment via bank transfer to the following account:"
TABLE_HEADERS = ("Description", "Rate", "Quantity", "Amount")
TAX_LABEL = "Tax (0%):"

SECTIONS = ("header", "issuer", "recipient", "details", "items", "totals", "notes")


def default_note(terms_days: Optional[int] = None) -> str:
    if terms_days is None:
        terms_days = getattr(settings, "INVOICE_PAYMENT_TERMS_DAYS", 14)
    return DEFAULT_NOTE_TEMPLATE.format(days=terms_days)


@dataclass(frozen=True)
class BusinessIdentity:
    """Issuer block and payment details printed on every invoice."""

    name: str
    address_lines: Tuple[str, ...]
    email: str
    bank_name: str
    account_name: str
    account_number: str

    @classmethod
    def from_settings(cls) -> "BusinessIdentity":
        config = getattr(settings, "BUSINESS_IDENTITY", {})
        return cls(
            name=config.get("name", "FreelanceFlow"),
            address_lines=tuple(config.get("address_lines", ())),
            email=config.get("email", ""),
            bank_name=config.get("bank_name", ""),
            account_name=config.get("account_name", ""),
            account_number=config.get("account_number", ""),
        )


@dataclass(frozen=True)
class LineItem:
    description: str
    rate: int
    quantity: int
    amount: int


@dataclass(frozen=True)
class DocumentInstruction:
    """
    One drawable element.

    ``kind`` is one of ``title``, ``text``, ``label``, ``field``,
    ``table_header``, ``table_row`` or ``total``. ``field`` and ``total``
    carry a label/value pair in ``cells``; table rows carry their cells.
    """

    section: str
    kind: str
    text: str = ""
    cells: Tuple[str, ...] = ()

    def texts(self) -> Tuple[str, ...]:
        if self.cells:
            return self.cells
        return (self.text,)


@dataclass(frozen=True)
class InvoiceLayout:
    instructions: Tuple[DocumentInstruction, ...] = field(default_factory=tuple)

    def text_lines(self) -> Iterator[str]:
        for instruction in self.instructions:
            yield from instruction.texts()

    def section(self, name: str) -> List[DocumentInstruction]:
        return [i for i in self.instructions if i.section == name]

    def sections(self) -> Dict[str, List[DocumentInstruction]]:
        return {name: self.section(name) for name in SECTIONS}

    @property
    def line_item_rows(self) -> List[DocumentInstruction]:
        return [i for i in self.section("items") if i.kind == "table_row"]


def build_line_items(project, workdays: Iterable[Any] = ()) -> List[LineItem]:
    """
    Daily-rate projects get one row per distinct workday date, ascending.
    Fixed-price projects get a single row whatever the workdays.
    """
    rate = project.rate

    if project.billing_mode == Project.BillingMode.FIXED_PRICE:
        return [LineItem(f"{project.name} - Fixed Price", rate, 1, rate)]

    days = sorted({normalize_workday_date(getattr(w, "date", w)) for w in workdays})
    return [
        LineItem(f"Daily Rate - {format_long_date(day)}", rate, 1, rate)
        for day in days
    ]


def build_invoice_layout(
    invoice,
    client,
    project,
    workdays: Sequence[Any] = (),
    identity: Optional[BusinessIdentity] = None,
    currency_symbol: Optional[str] = None,
) -> InvoiceLayout:
    identity = identity or BusinessIdentity.from_settings()

    def money(amount: int) -> str:
        return format_currency(amount, currency_symbol)

    out: List[DocumentInstruction] = []

    def add(section: str, kind: str, text: str = "", cells: Tuple[str, ...] = ()) -> None:
        out.append(DocumentInstruction(section=section, kind=kind, text=text, cells=cells))

    add("header", "title", "INVOICE")
    add("header", "text", f"#{invoice.invoice_number}")

    add("issuer", "label", identity.name)
    for line in identity.address_lines:
        add("issuer", "text", line)
    add("issuer", "text", identity.email)

    add("recipient", "label", "Bill To:")
    add("recipient", "text", client.company_name)
    if client.contact_person:
        add("recipient", "text", f"Attn: {client.contact_person}")
    if client.address:
        add("recipient", "text", client.address)
    add("recipient", "text", client.billing_email)

    add("details", "field", cells=("Invoice Date:", format_long_date(invoice.invoice_date)))
    add("details", "field", cells=("Due Date:", format_long_date(invoice.due_date)))
    add("details", "field", cells=("Project:", project.name))
    add("details", "field", cells=("Amount Due:", money(invoice.amount)))

    add("items", "table_header", cells=TABLE_HEADERS)
    for item in build_line_items(project, workdays):
        add("items", "table_row", cells=(
            item.description,
            money(item.rate),
            str(item.quantity),
            money(item.amount),
        ))

    # Totals come from the stored snapshot, not from the rows above.
    add("totals", "total", cells=("Subtotal:", money(invoice.amount)))
    add("totals", "total", cells=(TAX_LABEL, money(0)))
    add("totals", "total", cells=("Total:", money(invoice.amount)))

    add("notes", "label", "Notes:")
    add("notes", "text", invoice.notes or default_note())
    add("notes", "text", PAYMENT_INSTRUCTIONS)
    add("notes", "text", f"Bank: {identity.bank_name}")
    add("notes", "text", f"Account Name: {identity.account_name}")
    add("notes", "text", f"Account Number: {identity.account_number}")

    return InvoiceLayout(instructions=tuple(out))
