from datetime import date

import pytest

from billing.models import Client, Invoice, Workday
from tests.factories import ClientFactory, InvoiceFactory, ProjectFactory, WorkdayFactory


@pytest.mark.django_db
class TestClientAPI:
    def test_create_client(self, api_client):
        response = api_client.post("/api/v1/clients/", {
            "company_name": "Acme Co",
            "contact_person": "Wile E. Coyote",
            "emails": ["ap@acme.test", " wile@acme.test "],
            "billing_email": "ap@acme.test",
        }, format="json")

        assert response.status_code == 201
        assert response.json()["emails"] == ["ap@acme.test", "wile@acme.test"]
        assert Client.objects.filter(company_name="Acme Co").exists()

    def test_rejects_empty_email_list(self, api_client):
        response = api_client.post("/api/v1/clients/", {
            "company_name": "Acme Co",
            "emails": [],
            "billing_email": "ap@acme.test",
        }, format="json")

        body = response.json()
        assert response.status_code == 400
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert "request_id" in body

    def test_rejects_malformed_email(self, api_client):
        response = api_client.post("/api/v1/clients/", {
            "company_name": "Acme Co",
            "emails": ["ap@acme.test", "not-an-email"],
            "billing_email": "ap@acme.test",
        }, format="json")

        assert response.status_code == 400
        fields = [f["field"] for f in response.json()["error"]["fields"]]
        assert "emails.1" in fields

    def test_delete_client_cascades(self, api_client):
        invoice = InvoiceFactory()

        response = api_client.delete(f"/api/v1/clients/{invoice.client_id}/")

        assert response.status_code == 204
        assert Invoice.objects.count() == 0

    def test_missing_client_uses_error_envelope(self, api_client):
        response = api_client.get("/api/v1/clients/999999/")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


@pytest.mark.django_db
class TestProjectAPI:
    def test_create_project(self, api_client):
        client = ClientFactory()
        response = api_client.post("/api/v1/projects/", {
            "name": "Website Revamp",
            "client": client.pk,
            "billing_mode": "daily_rate",
            "rate": 20000,
        }, format="json")

        assert response.status_code == 201
        assert response.json()["status"] == "open"
        assert response.json()["rate"] == 20000

    @pytest.mark.parametrize("rate", [200.5, 200.0, "200.00", -1])
    def test_rate_must_be_whole_minor_units(self, api_client, rate):
        client = ClientFactory()
        response = api_client.post("/api/v1/projects/", {
            "name": "Website Revamp",
            "client": client.pk,
            "billing_mode": "daily_rate",
            "rate": rate,
        }, format="json")

        assert response.status_code == 400

    def test_end_before_start(self, api_client):
        client = ClientFactory()
        response = api_client.post("/api/v1/projects/", {
            "name": "Website Revamp",
            "client": client.pk,
            "billing_mode": "fixed_price",
            "rate": 500000,
            "start_date": "2025-02-01",
            "end_date": "2025-01-01",
        }, format="json")

        assert response.status_code == 400

    def test_filter_by_client(self, api_client):
        project = ProjectFactory()
        ProjectFactory()

        response = api_client.get(f"/api/v1/projects/?client={project.client_id}")

        assert [p["id"] for p in response.json()] == [project.pk]

    def test_bad_filter_value(self, api_client):
        response = api_client.get("/api/v1/projects/?client=abc")
        assert response.status_code == 400

    def test_toggle_workday(self, api_client):
        project = ProjectFactory()
        url = f"/api/v1/projects/{project.pk}/workdays/toggle/"

        added = api_client.post(url, {"date": "2025-01-06"}, format="json")
        assert added.status_code == 201
        assert added.json()["data"]["date"] == "2025-01-06"

        removed = api_client.post(url, {"date": "2025-01-06"}, format="json")
        assert removed.status_code == 200
        assert not Workday.objects.filter(project=project).exists()

    def test_list_project_workdays(self, api_client):
        project = ProjectFactory()
        WorkdayFactory(project=project, date=date(2025, 1, 3))
        WorkdayFactory(project=project, date=date(2025, 1, 1))

        response = api_client.get(f"/api/v1/projects/{project.pk}/workdays/")

        assert [w["date"] for w in response.json()["data"]] == ["2025-01-01", "2025-01-03"]


@pytest.mark.django_db
class TestWorkdayAPI:
    def test_create_is_idempotent(self, api_client):
        project = ProjectFactory()
        payload = {"project": project.pk, "date": "2025-01-01"}

        first = api_client.post("/api/v1/workdays/", payload, format="json")
        second = api_client.post("/api/v1/workdays/", payload, format="json")

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["success"] is True
        assert first.json()["data"]["id"] == second.json()["data"]["id"]
        assert first.json()["data"]["date"] == "2025-01-01"

    def test_filter_and_delete(self, api_client):
        workday = WorkdayFactory()
        WorkdayFactory()

        listed = api_client.get(f"/api/v1/workdays/?project={workday.project_id}")
        assert [w["id"] for w in listed.json()] == [workday.pk]

        assert api_client.delete(f"/api/v1/workdays/{workday.pk}/").status_code == 204


@pytest.mark.django_db
class TestInvoiceAPI:
    def test_generate_daily_rate_invoice(self, api_client, acme_workdays):
        project = acme_workdays[0].project

        response = api_client.post("/api/v1/invoices/", {
            "project": project.pk,
            "workday_ids": [w.pk for w in acme_workdays],
            "invoice_date": "2025-01-15",
        }, format="json")

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["amount"] == 120000
        assert data["amount_display"] == "$1,200.00"
        assert data["due_date"] == "2025-01-29"
        assert data["invoice_number"].endswith("-001")

    def test_generate_without_workdays(self, api_client, website_revamp):
        response = api_client.post("/api/v1/invoices/", {"project": website_revamp.pk}, format="json")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "WORKDAYS_REQUIRED"
        assert Invoice.objects.count() == 0

    def test_generate_for_missing_project(self, api_client):
        response = api_client.post("/api/v1/invoices/", {"project": 999999}, format="json")
        assert response.status_code == 404

    def test_duplicate_explicit_number(self, api_client, fixed_project):
        InvoiceFactory(invoice_number="INV-2025-001")
        response = api_client.post("/api/v1/invoices/", {
            "project": fixed_project.pk,
            "invoice_number": "INV-2025-001",
        }, format="json")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVOICE_NUMBER_CONFLICT"

    def test_list_filters(self, api_client):
        invoice = InvoiceFactory()
        InvoiceFactory()

        by_client = api_client.get(f"/api/v1/invoices/?client={invoice.client_id}").json()
        by_project = api_client.get(f"/api/v1/invoices/?project={invoice.project_id}").json()

        assert [i["id"] for i in by_client] == [invoice.pk]
        assert [i["id"] for i in by_project] == [invoice.pk]

    @pytest.mark.parametrize("method", ["put", "post"])
    def test_update_status(self, api_client, method):
        invoice = InvoiceFactory()

        response = getattr(api_client, method)(
            f"/api/v1/invoices/{invoice.pk}/status/", {"status": "paid"}, format="json"
        )

        assert response.status_code == 200
        invoice.refresh_from_db()
        assert invoice.status == Invoice.Status.PAID

    def test_update_status_invalid(self, api_client):
        invoice = InvoiceFactory()
        response = api_client.post(f"/api/v1/invoices/{invoice.pk}/status/", {"status": "void"}, format="json")
        assert response.status_code == 400

    def test_download_pdf(self, api_client, fake_weasyprint):
        invoice = InvoiceFactory(invoice_number="INV-2025-001")

        response = api_client.get(f"/api/v1/invoices/{invoice.pk}/pdf/")

        assert response.status_code == 200
        assert response["Content-Type"] == "application/pdf"
        assert 'filename="invoice-INV-2025-001.pdf"' in response["Content-Disposition"]
        assert b"".join(response.streaming_content).startswith(b"%PDF")

    def test_email_defaults(self, api_client, website_revamp):
        invoice = InvoiceFactory(invoice_number="INV-2025-004", project=website_revamp)

        data = api_client.get(f"/api/v1/invoices/{invoice.pk}/email-defaults/").json()["data"]

        assert data["recipient"] == "ap@acme.test"
        assert data["subject"] == "Invoice #INV-2025-004 for Website Revamp"

    def test_send_invoice(self, api_client, mailoutbox, fake_weasyprint):
        invoice = InvoiceFactory(invoice_number="INV-2025-001")

        response = api_client.post(f"/api/v1/invoices/{invoice.pk}/send/", {
            "recipient": "ap@acme.test",
            "subject": "Your invoice",
            "message": "Please find it attached.",
        }, format="json")

        assert response.status_code == 200
        assert len(mailoutbox) == 1
        assert mailoutbox[0].subject == "Your invoice"
        assert mailoutbox[0].attachments[0][0] == "invoice-INV-2025-001.pdf"

    def test_send_uses_defaults_for_missing_fields(self, api_client, mailoutbox, fake_weasyprint, website_revamp):
        invoice = InvoiceFactory(invoice_number="INV-2025-002", project=website_revamp)

        response = api_client.post(f"/api/v1/invoices/{invoice.pk}/send/", {}, format="json")

        assert response.status_code == 200
        assert mailoutbox[0].to == ["ap@acme.test"]
        assert mailoutbox[0].subject == "Invoice #INV-2025-002 for Website Revamp"

    def test_send_failure_is_bad_gateway(self, api_client, fake_weasyprint, monkeypatch):
        from billing.services.dispatch import DjangoMailDispatchGateway

        monkeypatch.setattr(DjangoMailDispatchGateway, "send", lambda self, *args, **kwargs: False)
        invoice = InvoiceFactory()

        response = api_client.post(f"/api/v1/invoices/{invoice.pk}/send/", {
            "recipient": "ap@acme.test",
            "subject": "Invoice",
            "message": "Body",
        }, format="json")

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "DISPATCH_FAILED"
        assert Invoice.objects.filter(pk=invoice.pk).exists()

    def test_next_number(self, api_client):
        response = api_client.get("/api/v1/invoices/next-number/")
        number = response.json()["data"]["invoice_number"]
        assert number.startswith("INV-") and number.endswith("-001")

    def test_stats(self, api_client):
        InvoiceFactory(amount=120000)

        data = api_client.get("/api/v1/invoices/stats/").json()["data"]

        assert data["invoices_sent"] == 1
        assert data["total_earnings"] == 120000

    def test_delete_invoice(self, api_client):
        invoice = InvoiceFactory()
        assert api_client.delete(f"/api/v1/invoices/{invoice.pk}/").status_code == 204
        assert not Invoice.objects.exists()


@pytest.mark.django_db
def test_schema_endpoint(api_client):
    response = api_client.get("/api/v1/schema/")
    assert response.status_code == 200
