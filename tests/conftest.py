from datetime import date

import pytest
from rest_framework.test import APIClient

from billing.models import Project
from billing.services.dispatch import DispatchGateway
from billing.services.document_layout import BusinessIdentity
from billing.services.pdf_service import PDFBackend, WeasyPrintBackend
from tests.factories import ClientFactory, ProjectFactory, WorkdayFactory

ACME_DATES = [
    date(2025, 1, 1),
    date(2025, 1, 2),
    date(2025, 1, 3),
    date(2025, 1, 6),
    date(2025, 1, 8),
    date(2025, 1, 11),
]


class FakePDFBackend(PDFBackend):
    """Encodes the layout text stream instead of a real PDF."""

    def __init__(self):
        self.layouts = []

    def encode(self, layout):
        self.layouts.append(layout)
        return b"%PDF-1.4\n" + "\n".join(layout.text_lines()).encode("utf-8")


class RecordingGateway(DispatchGateway):
    def __init__(self, result=True):
        self.result = result
        self.sent = []

    def send(self, recipient, subject, body, attachments=()):
        self.sent.append({
            "recipient": recipient,
            "subject": subject,
            "body": body,
            "attachments": list(attachments),
        })
        return self.result


@pytest.fixture(autouse=True)
def _billing_settings(settings):
    settings.SENDGRID_API_KEY = ""
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    settings.INVOICE_CURRENCY_SYMBOL = "$"
    settings.INVOICE_PAYMENT_TERMS_DAYS = 14


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def identity():
    return BusinessIdentity(
        name="FreelanceFlow",
        address_lines=("123 Main Street", "New York, NY 10001"),
        email="contact@freelanceflow.com",
        bank_name="Example Bank",
        account_name="FreelanceFlow Inc.",
        account_number="XXXX-XXXX-XXXX-1234",
    )


@pytest.fixture
def pdf_backend():
    return FakePDFBackend()


@pytest.fixture
def fake_weasyprint(monkeypatch):
    """Routes the default PDF backend through the fake encoder."""
    backend = FakePDFBackend()
    monkeypatch.setattr(WeasyPrintBackend, "encode", lambda self, layout: backend.encode(layout))
    return backend


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def acme_client(db):
    return ClientFactory(
        company_name="Acme Co",
        contact_person="Wile E. Coyote",
        billing_email="ap@acme.test",
        emails=["ap@acme.test", "wile@acme.test"],
    )


@pytest.fixture
def website_revamp(acme_client):
    return ProjectFactory(
        name="Website Revamp",
        client=acme_client,
        billing_mode=Project.BillingMode.DAILY_RATE,
        rate=20000,
    )


@pytest.fixture
def acme_workdays(website_revamp):
    return [WorkdayFactory(project=website_revamp, date=day) for day in ACME_DATES]


@pytest.fixture
def fixed_project(acme_client):
    return ProjectFactory(
        name="Brand Identity",
        client=acme_client,
        billing_mode=Project.BillingMode.FIXED_PRICE,
        rate=500000,
    )
