"""
Dispatch Gateway - hands a finished invoice email to a delivery channel.

Gateways accept a recipient, subject, plain-text body and attachments, and
report success as a boolean. They do not retry and do not track delivery;
failures are logged and reported as ``False``.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from django.conf import settings
from django.core.mail import EmailMessage
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import (
    Attachment,
    Disposition,
    FileContent,
    FileName,
    FileType,
    From,
    Mail,
    To,
)

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: bytes
    content_type: str = PDF_CONTENT_TYPE


class DispatchGateway:
    def send(
        self,
        recipient: str,
        subject: str,
        body: str,
        attachments: Sequence[EmailAttachment] = (),
    ) -> bool:
        raise NotImplementedError


class SendGridDispatchGateway(DispatchGateway):
    """Sends through the SendGrid Web API."""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None, client=None):
        self.api_key = api_key or getattr(settings, "SENDGRID_API_KEY", "")
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self.from_name = getattr(settings, "BUSINESS_IDENTITY", {}).get("name", "FreelanceFlow")
        self.client = client or SendGridAPIClient(self.api_key)

    def build_message(
        self,
        recipient: str,
        subject: str,
        body: str,
        attachments: Sequence[EmailAttachment] = (),
    ) -> Mail:
        message = Mail(
            from_email=From(self.from_email, self.from_name),
            to_emails=To(recipient),
            subject=subject,
            plain_text_content=body,
        )
        for item in attachments:
            message.add_attachment(Attachment(
                FileContent(base64.b64encode(item.content).decode()),
                FileName(item.filename),
                FileType(item.content_type),
                Disposition("attachment"),
            ))
        return message

    def send(self, recipient, subject, body, attachments=()) -> bool:
        try:
            message = self.build_message(recipient, subject, body, attachments)
            response = self.client.send(message)
        except Exception as e:
            logger.error(f"SendGrid API error sending to {recipient}: {e}")
            return False

        if 400 <= response.status_code < 600:
            logger.error(f"SendGrid returned error status: {response.status_code}")
            return False

        logger.info(f"Email sent via SendGrid to {recipient} ({response.status_code})")
        return True


class DjangoMailDispatchGateway(DispatchGateway):
    """Sends through the configured Django email backend."""

    def __init__(self, from_email: Optional[str] = None, connection=None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self.connection = connection

    def send(self, recipient, subject, body, attachments=()) -> bool:
        email = EmailMessage(
            subject=subject,
            body=body,
            from_email=self.from_email,
            to=[recipient],
            connection=self.connection,
        )
        for item in attachments:
            email.attach(item.filename, item.content, item.content_type)

        try:
            sent = email.send(fail_silently=False)
        except Exception as e:
            logger.error(f"Failed to send email to {recipient}: {e}")
            return False

        if not sent:
            logger.error(f"Email backend accepted no messages for {recipient}")
            return False

        logger.info(f"Email sent to {recipient}")
        return True


def get_dispatch_gateway() -> DispatchGateway:
    """SendGrid when an API key is configured, Django's email backend otherwise."""
    if getattr(settings, "SENDGRID_API_KEY", ""):
        return SendGridDispatchGateway()
    return DjangoMailDispatchGateway()
