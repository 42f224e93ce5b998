from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from music_library.mail import get_mail_transport
from music_library.main import app
from music_library.reminders import today_in_zone
from music_library.repositories import InMemorySpreadsheet, get_spreadsheet
from music_library.settings import get_settings

from .conftest import TZ, days_from, item_row


@pytest.fixture
def client(spreadsheet, outbox, settings):
    app.dependency_overrides[get_spreadsheet] = lambda: spreadsheet
    app.dependency_overrides[get_mail_transport] = lambda: outbox
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def submission(sheet_name, values):
    return {"sheet_name": sheet_name, "values": values}


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")


class TestFormSubmissions:
    def test_check_in_reports_unknown_ids(self, client, items):
        items.append_row(item_row("10", "Checked Out", "Ann", "ann@x.com", days_from(today_in_zone(TZ), 3)))
        res = client.post(
            "/api/v1/forms/submissions",
            json=submission("Check In Responses", ["1/2/2025 10:00:00", "ann@x.com", "10, 99, 10"]),
        )
        assert res.status_code == 200
        data = res.json()
        assert data == {
            "action": "check_in",
            "requested_ids": ["10", "99", "10"],
            "matched_count": 2,
            "not_found_ids": ["99"],
        }
        assert items.read_all_rows()[1][2] == "Checked In"

    def test_check_out(self, client, items):
        items.append_row(item_row("12"))
        res = client.post(
            "/api/v1/forms/submissions",
            json=submission("Check Out Responses", ["1/2/2025 10:00:00", "ann@x.com", "1/16/2025", 12, "Ann Alto"]),
        )
        assert res.status_code == 200
        assert res.json()["matched_count"] == 1

        listed = client.get("/api/v1/items/?status=checked_out").json()
        assert len(listed) == 1
        assert listed[0]["id"] == "12"
        assert listed[0]["holder_email"] == "ann@x.com"
        assert listed[0]["due_date"] == "2025-01-16"

    def test_unknown_sheet(self, client):
        res = client.post("/api/v1/forms/submissions", json=submission("Other", []))
        assert res.status_code == 200
        assert res.json()["action"] == "ignored"

    def test_blank_sheet_name_is_a_validation_error(self, client):
        res = client.post("/api/v1/forms/submissions", json=submission("  ", []))
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)

    def test_missing_items_sheet(self, client):
        app.dependency_overrides[get_spreadsheet] = lambda: InMemorySpreadsheet(TZ)
        res = client.post("/api/v1/forms/submissions", json=submission("Check In Responses", ["", "", "1"]))
        assert res.status_code == 503
        body = res.json()
        assert body["code"] == "SHEET_NOT_FOUND"
        assert body["message"] == "Items sheet not found"


class TestReminders:
    def test_run_sends_due_tomorrow(self, client, items, outbox):
        items.append_row(item_row("42", "Checked Out", "Ann", "a@x.com", days_from(today_in_zone(TZ), 1)))
        res = client.post("/api/v1/reminders/run")
        assert res.status_code == 200
        data = res.json()
        assert data["processed"] == 1
        assert data["emails_sent"] == 1
        assert data["emails"] == []
        assert [e.to for e in outbox.sent] == ["a@x.com"]

    def test_dry_run_returns_emails(self, client, items, outbox):
        items.append_row(item_row("42", "Checked Out", "Ann", "a@x.com", days_from(today_in_zone(TZ), 7)))
        res = client.post("/api/v1/reminders/run?dry_run=true")
        assert res.status_code == 200
        data = res.json()
        assert data["dry_run"] is True
        assert data["emails_sent"] == 0
        assert data["emails"][0]["subject"].startswith("Sheet Music Due in 1 Week")
        assert outbox.sent == []


class TestItems:
    def test_list_and_filter(self, client, items):
        items.append_row(item_row("1"))
        items.append_row(item_row("2", status=""))
        res = client.get("/api/v1/items/")
        assert res.status_code == 200
        assert [i["id"] for i in res.json()] == ["1", "2"]

        unset = client.get("/api/v1/items/?status=unset").json()
        assert [i["id"] for i in unset] == ["2"]
        assert unset[0]["status"] is None

    def test_invalid_status_filter(self, client):
        res = client.get("/api/v1/items/?status=lost")
        assert res.status_code == 400
        assert res.json()["detail"] == "status must be 'checked_in', 'checked_out' or 'unset'"

    def test_initialize(self, client, items):
        items.append_row(item_row("1", status=""))
        res = client.post("/api/v1/items/initialize")
        assert res.status_code == 200
        assert res.json() == {"initialized": 1}


class TestBasicAuth:
    @pytest.fixture
    def auth_settings(self, settings):
        secured = replace(settings, enable_basic_auth=True, basic_auth_username="librarian", basic_auth_password="s3cret")
        app.dependency_overrides[get_settings] = lambda: secured
        return secured

    def test_triggers_require_credentials(self, client, auth_settings):
        res = client.post("/api/v1/reminders/run?dry_run=true")
        assert res.status_code == 401
        assert res.headers["WWW-Authenticate"] == "Basic"

        res_bad = client.post("/api/v1/reminders/run?dry_run=true", auth=("librarian", "nope"))
        assert res_bad.status_code == 401
        assert res_bad.json()["detail"] == "Invalid authentication credentials"

        res_ok = client.post("/api/v1/reminders/run?dry_run=true", auth=("librarian", "s3cret"))
        assert res_ok.status_code == 200

    def test_item_listing_stays_open(self, client, auth_settings):
        assert client.get("/api/v1/items/").status_code == 200
