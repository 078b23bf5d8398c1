from __future__ import annotations

from typing import List

from django.core.exceptions import ValidationError
from django.db import models

from billing.validation.schemas import is_valid_email


class Client(models.Model):
    company_name = models.CharField(max_length=255)
    contact_person = models.CharField(max_length=255, blank=True)
    emails = models.JSONField(default=list)
    billing_email = models.EmailField()
    phone = models.CharField(max_length=50, blank=True)
    address = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['company_name', 'id']

    def __str__(self):
        return self.company_name

    def clean(self):
        errors = {}
        if not isinstance(self.emails, list) or not self.emails:
            errors['emails'] = ['At least one email address is required.']
        else:
            invalid = [email for email in self.emails if not is_valid_email(email)]
            if invalid:
                errors['emails'] = [f"Invalid email address: {email}" for email in invalid]
        if errors:
            raise ValidationError(errors)

    @property
    def all_emails(self) -> List[str]:
        """Every known address, billing email first, without duplicates."""
        seen = [self.billing_email]
        for email in self.emails or []:
            if email not in seen:
                seen.append(email)
        return seen


class Project(models.Model):
    class BillingMode(models.TextChoices):
        DAILY_RATE = "daily_rate", "Daily Rate"
        FIXED_PRICE = "fixed_price", "Fixed Price"

    class Status(models.TextChoices):
        OPEN = "open", "Open"
        IN_PROGRESS = "in_progress", "In Progress"
        COMPLETED = "completed", "Completed"

    name = models.CharField(max_length=255)
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="projects")
    billing_mode = models.CharField(max_length=20, choices=BillingMode.choices)
    # Daily rate or fixed price, in minor currency units (cents)
    rate = models.PositiveBigIntegerField()
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.OPEN, db_index=True)
    description = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['client', 'status'], name='billing_project_client_status'),
        ]

    def __str__(self):
        return f"{self.name} ({self.client.company_name})"

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({'end_date': ['End date cannot be before start date.']})

    @property
    def is_daily_rate(self) -> bool:
        return self.billing_mode == self.BillingMode.DAILY_RATE


class Workday(models.Model):
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="workdays")
    date = models.DateField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['date', 'id']
        indexes = [
            models.Index(fields=['project', 'date'], name='billing_workday_project_date'),
        ]

    def __str__(self):
        return f"{self.project.name} - {self.date.isoformat()}"


class Invoice(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PAID = "paid", "Paid"
        OVERDUE = "overdue", "Overdue"

    invoice_number = models.CharField(max_length=50, unique=True)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="invoices")
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="invoices")
    # Total amount in minor currency units, fixed at generation time
    amount = models.PositiveBigIntegerField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    invoice_date = models.DateField()
    due_date = models.DateField()
    workday_ids = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-id']
        indexes = [
            models.Index(fields=['client', 'status'], name='billing_invoice_client_status'),
            models.Index(fields=['project', 'status'], name='billing_invoice_project_status'),
        ]

    def __str__(self):
        return f"{self.invoice_number} - {self.client.company_name}"

    def clean(self):
        if self.invoice_date and self.due_date and self.due_date < self.invoice_date:
            raise ValidationError({'due_date': ['Due date cannot be before invoice date.']})

