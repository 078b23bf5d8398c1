import base64
from unittest import mock

import pytest
from django.core import mail

from billing.services.dispatch import (
    DjangoMailDispatchGateway,
    EmailAttachment,
    SendGridDispatchGateway,
    get_dispatch_gateway,
)

PDF = b"%PDF-1.4 test document"


def attachment():
    return EmailAttachment(filename="invoice-INV-2025-001.pdf", content=PDF)


class TestDjangoMailDispatchGateway:
    def test_sends_with_pdf_attachment(self, settings):
        settings.DEFAULT_FROM_EMAIL = "contact@freelanceflow.com"

        ok = DjangoMailDispatchGateway().send("ap@acme.test", "Invoice #INV-2025-001", "Hello", [attachment()])

        assert ok is True
        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == ["ap@acme.test"]
        assert message.from_email == "contact@freelanceflow.com"
        assert message.subject == "Invoice #INV-2025-001"
        assert message.attachments == [("invoice-INV-2025-001.pdf", PDF, "application/pdf")]

    def test_backend_failure_returns_false(self):
        connection = mock.Mock()
        connection.send_messages.side_effect = OSError("connection refused")

        ok = DjangoMailDispatchGateway(connection=connection).send("ap@acme.test", "s", "b", [attachment()])

        assert ok is False


class TestSendGridDispatchGateway:
    def test_success(self):
        client = mock.Mock()
        client.send.return_value = mock.Mock(status_code=202)
        gateway = SendGridDispatchGateway(api_key="SG.test", from_email="contact@freelanceflow.com", client=client)

        assert gateway.send("ap@acme.test", "Invoice", "Body", [attachment()]) is True

        payload = client.send.call_args[0][0].get()
        assert payload["personalizations"][0]["to"][0]["email"] == "ap@acme.test"
        assert payload["attachments"][0]["filename"] == "invoice-INV-2025-001.pdf"
        assert payload["attachments"][0]["type"] == "application/pdf"
        assert base64.b64decode(payload["attachments"][0]["content"]) == PDF

    @pytest.mark.parametrize("status_code", [400, 401, 403, 500])
    def test_error_status_returns_false(self, status_code):
        client = mock.Mock()
        client.send.return_value = mock.Mock(status_code=status_code)
        gateway = SendGridDispatchGateway(api_key="SG.test", client=client)

        assert gateway.send("ap@acme.test", "Invoice", "Body", [attachment()]) is False

    def test_client_exception_returns_false(self):
        client = mock.Mock()
        client.send.side_effect = Exception("HTTP Error 403: Forbidden")
        gateway = SendGridDispatchGateway(api_key="SG.test", client=client)

        assert gateway.send("ap@acme.test", "Invoice", "Body") is False


class TestGetDispatchGateway:
    def test_django_mail_without_api_key(self, settings):
        settings.SENDGRID_API_KEY = ""
        assert isinstance(get_dispatch_gateway(), DjangoMailDispatchGateway)

    def test_sendgrid_with_api_key(self, settings):
        settings.SENDGRID_API_KEY = "SG.test"
        assert isinstance(get_dispatch_gateway(), SendGridDispatchGateway)
