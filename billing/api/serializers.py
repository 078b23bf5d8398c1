from rest_framework import serializers

from billing.models import Client, Invoice, Project, Workday
from billing.utils import format_currency
from billing.validation import ClientEmailsSchema


class MinorUnitField(serializers.IntegerField):
    """Whole minor currency units. Floats and decimal strings are refused rather than truncated."""

    default_error_messages = {
        "not_whole": "Amounts must be whole numbers of minor currency units (cents).",
    }

    def to_internal_value(self, data):
        if isinstance(data, (bool, float)):
            self.fail("not_whole")
        if isinstance(data, str) and not data.strip().lstrip("-").isdigit():
            self.fail("not_whole")
        return super().to_internal_value(data)


class ClientSerializer(serializers.ModelSerializer):
    emails = serializers.ListField(child=serializers.CharField(), allow_empty=False)

    class Meta:
        model = Client
        fields = [
            "id",
            "company_name",
            "contact_person",
            "emails",
            "billing_email",
            "phone",
            "address",
            "notes",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]

    def validate(self, attrs):
        if "emails" in attrs:
            attrs["emails"] = [email.strip() for email in attrs["emails"]]

        merged = {
            "emails": attrs.get("emails", getattr(self.instance, "emails", None)),
            "billing_email": attrs.get("billing_email", getattr(self.instance, "billing_email", None)),
        }
        ClientEmailsSchema.raise_if_invalid(merged)
        return attrs


class ProjectSerializer(serializers.ModelSerializer):
    rate = MinorUnitField(min_value=0)
    client_name = serializers.CharField(source="client.company_name", read_only=True)

    class Meta:
        model = Project
        fields = [
            "id",
            "name",
            "client",
            "client_name",
            "billing_mode",
            "rate",
            "start_date",
            "end_date",
            "status",
            "description",
            "created_at",
        ]
        read_only_fields = ["id", "client_name", "created_at"]

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": ["End date cannot be before start date."]})
        return attrs


class WorkdaySerializer(serializers.ModelSerializer):
    class Meta:
        model = Workday
        fields = ["id", "project", "date", "created_at"]
        read_only_fields = ["id", "created_at"]


class WorkdayToggleSerializer(serializers.Serializer):
    date = serializers.CharField(max_length=40)


class InvoiceSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source="client.company_name", read_only=True)
    project_name = serializers.CharField(source="project.name", read_only=True)
    amount_display = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "project",
            "project_name",
            "client",
            "client_name",
            "amount",
            "amount_display",
            "status",
            "invoice_date",
            "due_date",
            "workday_ids",
            "notes",
            "created_at",
        ]
        read_only_fields = fields

    def get_amount_display(self, obj) -> str:
        return format_currency(obj.amount)


class InvoiceGenerateSerializer(serializers.Serializer):
    project = serializers.IntegerField(min_value=1)
    workday_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
    )
    invoice_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    invoice_number = serializers.CharField(required=False, allow_blank=True, max_length=50)


class InvoiceStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Invoice.Status.choices)


class InvoiceSendSerializer(serializers.Serializer):
    """Omitted fields fall back to the invoice's default email."""

    recipient = serializers.CharField(required=False, max_length=254)
    subject = serializers.CharField(required=False, max_length=255)
    message = serializers.CharField(required=False, max_length=10000)


class InvoiceEmailDefaultsSerializer(serializers.Serializer):
    recipient = serializers.EmailField()
    subject = serializers.CharField()
    message = serializers.CharField()


class DashboardStatsSerializer(serializers.Serializer):
    active_projects = serializers.IntegerField()
    total_clients = serializers.IntegerField()
    invoices_sent = serializers.IntegerField()
    total_earnings = serializers.IntegerField()
