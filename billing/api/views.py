from io import BytesIO
from typing import Any, Dict, Optional, cast

from django.http import FileResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from billing.models import Client, Invoice, Project, Workday
from billing.services import InvoiceService, WorkdayService
from billing.validation.errors import ErrorCode, FieldError, ValidationError

from .response import APIResponse
from .serializers import (
    ClientSerializer,
    DashboardStatsSerializer,
    InvoiceEmailDefaultsSerializer,
    InvoiceGenerateSerializer,
    InvoiceSendSerializer,
    InvoiceSerializer,
    InvoiceStatusSerializer,
    ProjectSerializer,
    WorkdaySerializer,
    WorkdayToggleSerializer,
)

INVOICE_ID_PARAM = OpenApiParameter(
    name="pk",
    description="Invoice ID",
    required=True,
    type=OpenApiTypes.INT,
    location=OpenApiParameter.PATH,
)

PROJECT_ID_PARAM = OpenApiParameter(
    name="pk",
    description="Project ID",
    required=True,
    type=OpenApiTypes.INT,
    location=OpenApiParameter.PATH,
)

CLIENT_FILTER_PARAM = OpenApiParameter(name="client", description="Filter by client ID", required=False, type=int)
PROJECT_FILTER_PARAM = OpenApiParameter(name="project", description="Filter by project ID", required=False, type=int)


def _int_param(request: Request, name: str) -> Optional[int]:
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(
            message=f"Invalid {name} filter.",
            fields=[FieldError(
                field=name,
                code=ErrorCode.FIELD_INVALID.value,
                message=f"{name} must be an integer id.",
            )],
        )


# ------------------------------
# Client ViewSet
# ------------------------------
@extend_schema_view(
    list=extend_schema(summary="List clients"),
    retrieve=extend_schema(summary="Get client details"),
    create=extend_schema(summary="Create client"),
    update=extend_schema(summary="Update client"),
    partial_update=extend_schema(summary="Partial update client"),
    destroy=extend_schema(
        summary="Delete client",
        description="Delete a client together with its projects, workdays and invoices.",
    ),
)
class ClientViewSet(viewsets.ModelViewSet):
    queryset = Client.objects.all()
    serializer_class = ClientSerializer


# ------------------------------
# Project ViewSet
# ------------------------------
@extend_schema_view(
    list=extend_schema(summary="List projects", parameters=[CLIENT_FILTER_PARAM]),
    retrieve=extend_schema(summary="Get project details", parameters=[PROJECT_ID_PARAM]),
    create=extend_schema(summary="Create project"),
    update=extend_schema(summary="Update project", parameters=[PROJECT_ID_PARAM]),
    partial_update=extend_schema(summary="Partial update project", parameters=[PROJECT_ID_PARAM]),
    destroy=extend_schema(summary="Delete project", parameters=[PROJECT_ID_PARAM]),
)
class ProjectViewSet(viewsets.ModelViewSet):
    serializer_class = ProjectSerializer

    def get_queryset(self):
        queryset = Project.objects.select_related("client")
        client_id = _int_param(self.request, "client")
        if client_id is not None:
            queryset = queryset.filter(client_id=client_id)
        return queryset

    @extend_schema(
        summary="List project workdays",
        description="Workdays marked on this project, ascending by date.",
        responses={200: WorkdaySerializer(many=True)},
        parameters=[PROJECT_ID_PARAM],
    )
    @action(detail=True, methods=["get"], url_path="workdays")
    def workdays(self, request: Request, pk: Optional[int] = None) -> Response:
        workdays = WorkdayService.list_workdays(self.get_object().pk)
        return APIResponse.success(
            data=WorkdaySerializer(workdays, many=True).data,
            message="Workdays retrieved.",
        )

    @extend_schema(
        summary="Toggle a workday",
        description="Unmark the date if it is marked on this project, mark it otherwise.",
        request=WorkdayToggleSerializer,
        parameters=[PROJECT_ID_PARAM],
    )
    @action(detail=True, methods=["post"], url_path="workdays/toggle")
    def toggle_workday(self, request: Request, pk: Optional[int] = None) -> Response:
        project = self.get_object()
        serializer = WorkdayToggleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        validated_data = cast(Dict[str, Any], serializer.validated_data)

        workday, created = WorkdayService.toggle_workday(project.pk, validated_data["date"])
        if created:
            return APIResponse.success(
                data=WorkdaySerializer(workday).data,
                message="Workday added.",
                status_code=201,
            )
        return APIResponse.success(message="Workday removed.")


# ------------------------------
# Workday ViewSet
# ------------------------------
@extend_schema_view(
    list=extend_schema(summary="List workdays", parameters=[PROJECT_FILTER_PARAM]),
    retrieve=extend_schema(summary="Get workday"),
    create=extend_schema(summary="Mark a workday", description="Returns the existing workday if the date is already marked."),
    destroy=extend_schema(summary="Unmark a workday"),
)
class WorkdayViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = WorkdaySerializer

    def get_queryset(self):
        queryset = Workday.objects.all()
        project_id = _int_param(self.request, "project")
        if project_id is not None:
            queryset = queryset.filter(project_id=project_id)
        return queryset

    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        validated_data = cast(Dict[str, Any], serializer.validated_data)

        workday, created = WorkdayService.add_workday(validated_data["project"].pk, validated_data["date"])
        return APIResponse.success(
            data=WorkdaySerializer(workday).data,
            message="Workday added." if created else "Workday already recorded.",
            status_code=201 if created else 200,
        )


# ------------------------------
# Invoice ViewSet
# ------------------------------
@extend_schema_view(
    list=extend_schema(
        summary="List invoices",
        parameters=[CLIENT_FILTER_PARAM, PROJECT_FILTER_PARAM],
    ),
    retrieve=extend_schema(summary="Get invoice details", parameters=[INVOICE_ID_PARAM]),
    destroy=extend_schema(summary="Delete invoice", parameters=[INVOICE_ID_PARAM]),
)
class InvoiceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = InvoiceSerializer

    def get_queryset(self):
        queryset = Invoice.objects.select_related("client", "project")
        client_id = _int_param(self.request, "client")
        if client_id is not None:
            queryset = queryset.filter(client_id=client_id)
        project_id = _int_param(self.request, "project")
        if project_id is not None:
            queryset = queryset.filter(project_id=project_id)
        return queryset

    @extend_schema(
        summary="Generate invoice",
        description=(
            "Create an invoice for a project. Daily-rate projects bill each selected workday once; "
            "fixed-price projects bill the project rate. The invoice number is allocated unless given."
        ),
        request=InvoiceGenerateSerializer,
        responses={201: InvoiceSerializer},
    )
    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = InvoiceGenerateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        validated_data = cast(Dict[str, Any], serializer.validated_data)

        invoice = InvoiceService.generate_invoice(
            project_id=validated_data["project"],
            workday_ids=validated_data.get("workday_ids", []),
            invoice_date=validated_data.get("invoice_date"),
            due_date=validated_data.get("due_date"),
            notes=validated_data.get("notes", ""),
            invoice_number=validated_data.get("invoice_number") or None,
        )
        return APIResponse.success(
            data=InvoiceSerializer(invoice).data,
            message="Invoice created.",
            status_code=201,
        )

    def perform_destroy(self, instance):
        InvoiceService.delete_invoice(instance.pk)

    @extend_schema(
        summary="Update invoice status",
        description="Set the status of an invoice (pending/paid/overdue).",
        request=InvoiceStatusSerializer,
        responses={200: InvoiceSerializer},
        parameters=[INVOICE_ID_PARAM],
    )
    @action(detail=True, methods=["put", "post"], url_path="status")
    def update_status(self, request: Request, pk: Optional[int] = None) -> Response:
        invoice = self.get_object()
        serializer = InvoiceStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        validated_data = cast(Dict[str, Any], serializer.validated_data)

        invoice = InvoiceService.update_status(invoice.pk, validated_data["status"])
        return APIResponse.success(
            data=InvoiceSerializer(invoice).data,
            message="Invoice status updated.",
        )

    @extend_schema(
        summary="Generate PDF",
        description="Generate and download PDF for an invoice.",
        responses={200: {"type": "string", "format": "binary"}},
        parameters=[INVOICE_ID_PARAM],
    )
    @action(detail=True, methods=["get"], url_path="pdf")
    def generate_pdf(self, request: Request, pk: Optional[int] = None) -> FileResponse:
        invoice = self.get_object()
        filename, pdf_bytes = InvoiceService.render_invoice_document(invoice.pk)
        return FileResponse(
            BytesIO(pdf_bytes),
            as_attachment=True,
            filename=filename,
            content_type="application/pdf",
        )

    @extend_schema(
        summary="Email invoice",
        description="Send the invoice PDF by email. Omitted fields use the invoice's default email.",
        request=InvoiceSendSerializer,
        parameters=[INVOICE_ID_PARAM],
    )
    @action(detail=True, methods=["post"], url_path="send")
    def send(self, request: Request, pk: Optional[int] = None) -> Response:
        invoice = self.get_object()
        serializer = InvoiceSendSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        validated_data = cast(Dict[str, Any], serializer.validated_data)

        email = {**InvoiceService.default_email(invoice), **validated_data}
        InvoiceService.send_invoice(
            invoice.pk,
            recipient=email["recipient"],
            subject=email["subject"],
            message=email["message"],
        )
        return APIResponse.success(
            data={"invoice_number": invoice.invoice_number, "recipient": email["recipient"].strip()},
            message="Invoice sent.",
        )

    @extend_schema(
        summary="Default invoice email",
        description="Recipient, subject and message pre-filled for sending this invoice.",
        responses={200: InvoiceEmailDefaultsSerializer},
        parameters=[INVOICE_ID_PARAM],
    )
    @action(detail=True, methods=["get"], url_path="email-defaults")
    def email_defaults(self, request: Request, pk: Optional[int] = None) -> Response:
        invoice = self.get_object()
        return APIResponse.success(
            data=InvoiceService.default_email(invoice),
            message="Email defaults retrieved.",
        )

    @extend_schema(
        summary="Preview next invoice number",
        description="The number the next generated invoice would receive. Not reserved.",
    )
    @action(detail=False, methods=["get"], url_path="next-number")
    def next_number(self, request: Request) -> Response:
        return APIResponse.success(
            data={"invoice_number": InvoiceService.next_invoice_number()},
            message="Next invoice number retrieved.",
        )

    @extend_schema(
        summary="Get dashboard statistics",
        description="Active projects, clients, invoices and total invoiced amount in minor units.",
        responses={200: DashboardStatsSerializer},
    )
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request: Request) -> Response:
        return APIResponse.success(
            data=InvoiceService.dashboard_stats(),
            message="Dashboard statistics retrieved.",
        )
