# tests/test_api.py

"""
Ce qu'on teste :
→ L'auth (login statique + header X-API-KEY)
→ Le mapping des erreurs métier en codes HTTP
→ Les parcours complets : client → note → devis → commande
→ Import / export

Le store du process est remplacé par un store de test
via dependency_overrides : aucune donnée de démo.
"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

from fastapi.testclient import TestClient

from api.dependencies import get_store
from api.main import app
from config import settings
from connectors.csv_import import SAMPLE_CSV


LINE_ITEMS = [
    {"description": "Automatic Murukku Machine", "hsn": "8438", "pcs": 1, "quantity": 1, "amount": "1000"},
    {"description": "Installation", "hsn": "9987", "amount": 2000},
]


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    return {"X-API-KEY": settings.api_key}


class TestAuth:

    def test_login_returns_key(self, client):
        response = client.post("/auth/login", json={
            "username": settings.admin_username,
            "password": settings.admin_password,
        })

        assert response.status_code == 200
        assert response.json()["api_key"] == settings.api_key

    def test_login_rejected(self, client):
        response = client.post("/auth/login", json={"username": "admin", "password": "wrong-password"})

        assert response.status_code == 401

    def test_missing_key(self, client):
        assert client.get("/customers").status_code == 422

    def test_wrong_key(self, client):
        assert client.get("/customers", headers={"X-API-KEY": "nope"}).status_code == 401

    def test_health_is_public(self, client):
        assert client.get("/health").json()["status"] == "ok"


class TestCustomers:

    def test_list_filtered_and_sorted(self, client, headers):
        response = client.get(
            "/customers",
            params={"stage": ["Lead", "Booking"], "sort": "name", "direction": "descending"},
            headers=headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [c["id"] for c in data["customers"]] == ["CUST-C", "CUST-B"]

    def test_invalid_filter(self, client, headers):
        response = client.get("/customers", params={"created": "decade"}, headers=headers)

        assert response.status_code == 422

    def test_create(self, client, headers, store):
        response = client.post("/customers", headers=headers, json={
            "name": "Trichy Foods",
            "phone": "9443300000",
            "location": "Trichy",
            "business_type": "Murukku",
            "daily_production": 90,
        })

        assert response.status_code == 201
        data = response.json()
        assert data["stage"] == "Enquiry"
        assert len(data["stage_history"]) == 1
        assert store.all()[0].name == "Trichy Foods"

    def test_create_invalid(self, client, headers, store):
        response = client.post("/customers", headers=headers, json={
            "name": "Trichy Foods",
            "phone": "9443300000",
            "location": "Trichy",
            "business_type": "Murukku",
            "daily_production": "-5",
        })

        assert response.status_code == 422
        assert "dailyProduction" in response.json()["detail"]
        assert len(store) == 5

    def test_get_unknown(self, client, headers):
        assert client.get("/customers/CUST-NOPE", headers=headers).status_code == 404

    def test_patch(self, client, headers):
        response = client.patch("/customers/CUST-A", headers=headers, json={"location": "Dindigul"})

        assert response.status_code == 200
        assert response.json()["location"] == "Dindigul"
        assert response.json()["name"] == "Anbu Traders"

    def test_delete(self, client, headers, store):
        assert client.delete("/customers/CUST-A", headers=headers).status_code == 200
        assert len(store) == 4
        assert client.delete("/customers/CUST-A", headers=headers).status_code == 404

    def test_change_stage(self, client, headers):
        response = client.post("/customers/CUST-B/stage", headers=headers, json={"stage": "Booking"})

        history = response.json()["stage_history"]
        assert history[-1]["from_stage"] == "Lead"
        assert history[-1]["to_stage"] == "Booking"

    def test_note_default_follow_up(self, client, headers):
        response = client.post("/customers/CUST-D/notes", headers=headers, json={"content": "Asked for spares"})

        assert response.status_code == 201
        data = response.json()
        assert data["notes"][0]["content"] == "Asked for spares"
        assert data["next_follow_up_date"] is not None

    def test_note_explicit_null_clears_follow_up(self, client, headers):
        response = client.post(
            "/customers/CUST-A/notes",
            headers=headers,
            json={"content": "Not now", "next_follow_up_date": None}
        )

        assert response.json()["next_follow_up_date"] is None

    def test_aware_follow_up_sorts_with_default_ones(self, client, headers):
        client.post("/customers/CUST-D/notes", headers=headers, json={"content": "Call back"})
        client.post(
            "/customers/CUST-B/notes",
            headers=headers,
            json={"content": "Demo booked", "next_follow_up_date": "2024-06-20T10:00:00Z"}
        )

        response = client.get(
            "/customers", params={"sort": "next_follow_up_date"}, headers=headers
        )

        assert response.status_code == 200
        by_id = {c["id"]: c for c in response.json()["customers"]}
        assert datetime.fromisoformat(by_id["CUST-B"]["next_follow_up_date"]).tzinfo is None

    def test_empty_note(self, client, headers, store):
        response = client.post("/customers/CUST-A/notes", headers=headers, json={"content": "  "})

        assert response.status_code == 422
        assert store.get("CUST-A").notes == []

    def test_follow_up_suggestion(self, client, headers):
        with patch("api.routes.customers.suggest_follow_up", return_value="Can we call tomorrow?"):
            response = client.get("/customers/CUST-B/follow-up-suggestion", headers=headers)

        assert response.json()["suggestion"] == "Can we call tomorrow?"


class TestQuotations:

    def _create(self, client, headers, customer_id="CUST-B"):
        return client.post(
            f"/customers/{customer_id}/quotations",
            headers=headers,
            json={"quotation_number": "SLI-Q-2024-55", "line_items": LINE_ITEMS}
        )

    def test_create(self, client, headers):
        response = self._create(client, headers)

        assert response.status_code == 201
        quotation = response.json()["quotation"]
        assert quotation["status"] == "Draft"
        assert Decimal(quotation["net_amount"]) == Decimal("3540")

    def test_number_generated_when_missing(self, client, headers):
        response = client.post(
            "/customers/CUST-B/quotations", headers=headers, json={"line_items": LINE_ITEMS}
        )

        assert response.json()["quotation"]["quotation_number"].startswith(settings.quotation_prefix)

    def test_no_line_items(self, client, headers):
        response = client.post(
            "/customers/CUST-B/quotations", headers=headers,
            json={"quotation_number": "X", "line_items": []}
        )

        assert response.status_code == 422

    def test_full_order_flow(self, client, headers):
        quotation_id = self._create(client, headers).json()["quotation"]["id"]
        base = f"/customers/CUST-B/quotations/{quotation_id}"

        sent = client.post(f"{base}/send", headers=headers).json()
        assert sent["quotations"][0]["status"] == "Sent"

        confirmed = client.post(f"{base}/confirm", headers=headers).json()
        assert confirmed["stage"] == "Booking"
        assert confirmed["quotations"][0]["status"] == "Accepted"

        again = client.post(f"{base}/confirm", headers=headers).json()
        assert len(again["stage_history"]) == len(confirmed["stage_history"])

        locked = client.put(base, headers=headers, json={"quotation_number": "X", "line_items": LINE_ITEMS})
        assert locked.status_code == 422

    def test_update(self, client, headers):
        quotation_id = self._create(client, headers).json()["quotation"]["id"]

        response = client.put(
            f"/customers/CUST-B/quotations/{quotation_id}",
            headers=headers,
            json={"quotation_number": "SLI-Q-2024-56", "line_items": LINE_ITEMS[:1]}
        )

        data = response.json()
        assert data["quotation"]["id"] == quotation_id
        assert Decimal(data["quotation"]["net_amount"]) == Decimal("1180")
        assert len(data["customer"]["quotations"]) == 1

    def test_update_unknown(self, client, headers):
        response = client.put(
            "/customers/CUST-B/quotations/Q-NOPE",
            headers=headers,
            json={"quotation_number": "X", "line_items": LINE_ITEMS}
        )

        assert response.status_code == 404

    def test_pdf(self, client, headers):
        response = client.get("/customers/CUST-C/quotations/Q-C1/pdf", headers=headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_totals_preview(self, client, headers):
        response = client.post("/quotations/totals", headers=headers, json={"line_items": [
            {"description": "Die set", "amount": "999.99"},
        ]})

        data = response.json()
        assert data["exact"]["sub_total"] == "999.99"
        assert data["display"]["net_amount"] == "1179.99"

    def test_pdf_filename_with_non_latin_number(self, client, headers):
        created = client.post(
            "/customers/CUST-B/quotations",
            headers=headers,
            json={"quotation_number": "SLI-Q-2024-७", "line_items": LINE_ITEMS}
        ).json()["quotation"]

        response = client.get(f"/customers/CUST-B/quotations/{created['id']}/pdf", headers=headers)

        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert 'filename="quotation-SLI-Q-2024-_.pdf"' in disposition
        assert "filename*=UTF-8''quotation-SLI-Q-2024-%E0%A5%AD.pdf" in disposition

    def test_quotation_date_stored_as_local_time(self, client, headers):
        response = client.post(
            "/customers/CUST-B/quotations",
            headers=headers,
            json={"date": "2024-06-12T09:00:00+05:30", "line_items": LINE_ITEMS}
        )

        assert datetime.fromisoformat(response.json()["quotation"]["date"]).tzinfo is None

    def test_totals_keep_json_number_exact(self, client, headers):
        response = client.post(
            "/quotations/totals",
            headers={**headers, "Content-Type": "application/json"},
            content='{"line_items": [{"description": "Line", "amount": 12345678901234567.89}]}'
        )

        assert response.status_code == 200
        assert response.json()["exact"]["sub_total"] == "12345678901234567.89"

    def test_number(self, client, headers):
        response = client.get("/quotations/number", headers=headers)

        assert response.json()["quotation_number"].startswith(f"{settings.quotation_prefix}-")


class TestDashboard:

    def test_summary(self, client, headers):
        data = client.get("/dashboard/summary", headers=headers).json()

        assert data["total_customers"] == 5
        assert data["total_bookings"] == 2
        assert data["conversion_rate"] == 40.0

    def test_today_report(self, client, headers):
        response = client.get("/dashboard/reports/today", headers=headers)

        assert response.status_code == 200
        assert set(response.json()) == {"date", "follow_ups", "stage_changes"}

    def test_send_report(self, client, headers):
        with patch("api.routes.dashboard.send_daily_report", return_value=True) as send:
            response = client.post(
                "/dashboard/reports/today/send",
                headers=headers,
                json={"recipients": ["owner@example.com"]}
            )

        assert response.status_code == 200
        assert send.call_args.args[1] == ["owner@example.com"]
        assert send.call_args.kwargs["pending_threshold_days"] == settings.pending_follow_up_days

    def test_send_report_failure(self, client, headers):
        with patch("api.routes.dashboard.send_daily_report", return_value=False):
            response = client.post(
                "/dashboard/reports/today/send",
                headers=headers,
                json={"recipients": ["owner@example.com"]}
            )

        assert response.status_code == 502


class TestImportExport:

    def test_import(self, client, headers, store):
        response = client.post("/imports/customers", headers=headers, json={"csv": SAMPLE_CSV})

        assert response.status_code == 201
        assert response.json()["imported"] == 2
        assert len(store) == 7

    def test_import_rejected(self, client, headers, store):
        text = SAMPLE_CSV + "Bad Row,9000000000,Madurai,Snacks,-5,Lead\n"

        response = client.post("/imports/customers", headers=headers, json={"csv": text})

        assert response.status_code == 400
        assert response.json()["row"] == 4
        assert len(store) == 5

    def test_sample(self, client, headers):
        response = client.get("/imports/customers/sample", headers=headers)

        assert response.text == SAMPLE_CSV

    def test_export_csv(self, client, headers):
        response = client.get(
            "/exports/customers", params={"format": "csv", "stage": "Retail"}, headers=headers
        )

        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.strip().split("\n")
        assert len(lines) == 2
        assert lines[1].startswith("Salem Murukku Center")

    def test_export_pdf(self, client, headers):
        response = client.get("/exports/customers", params={"format": "pdf"}, headers=headers)

        assert response.content.startswith(b"%PDF")

    def test_export_unknown_format(self, client, headers):
        response = client.get("/exports/customers", params={"format": "docx"}, headers=headers)

        assert response.status_code == 422
