from types import SimpleNamespace

import mysql.connector
import pytest

from club_attendance.main import create_app
from club_attendance.users.service import AuthService, UserService


class UnreachableDatabase:
    def connect(self):
        raise mysql.connector.Error("connection refused")


@pytest.fixture
def client(world, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    container = SimpleNamespace(
        conn=UnreachableDatabase(),
        auth_service=AuthService(world.users),
        user_service=UserService(world.users),
        attendance_service=world.attendance_service,
        duty_session_service=world.duty_service,
        hourly_log_service=world.log_service,
        strike_service=world.strike_service,
        request_service=world.request_service,
        notification_service=world.notification_service,
        report_service=world.report_service,
        event_service=world.event_service,
    )
    app = create_app(container=container)
    return app.test_client()


def _login(client, user):
    resp = client.post("/api/auth/login", json={"email": user.email, "password": "secret123"})
    assert resp.status_code == 200
    return resp


def test_requires_login(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_bad_password(client, world):
    resp = client.post("/api/auth/login", json={"email": world.student.email, "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid email or password"


def test_duty_start_conflict_maps_to_409(client, world):
    _login(client, world.student)

    first = client.post("/api/duty-sessions/start", json={"notes": "desk"})
    second = client.post("/api/duty-sessions/start", json={})

    assert first.status_code == 201
    assert first.get_json()["data"]["is_active"] is True
    assert second.status_code == 409
    assert second.get_json() == {"success": False, "message": "Active duty session already exists"}


def test_students_are_kept_out_of_staff_routes(client, world):
    _login(client, world.student)
    resp = client.get("/api/attendance/pending")
    assert resp.status_code == 403


def test_invalid_status_is_a_validation_error(client, world):
    _login(client, world.student)
    resp = client.post("/api/attendance", json={"status": "sleeping"})
    assert resp.status_code == 400


def test_suspended_member_gets_403_with_until(client, world, fixed_now):
    world.seed_strikes(world.student, 5, now=fixed_now.replace(year=2100))
    _login(client, world.student)

    resp = client.post("/api/attendance", json={"status": "present"})

    body = resp.get_json()
    assert resp.status_code == 403
    assert body["suspended_until"].startswith("2100-")


def test_report_csv_download(client, world):
    _login(client, world.teacher)
    resp = client.get("/api/reports/attendance?start=2026-03-01&end=2026-03-31&format=csv")
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "attachment" in resp.headers["Content-Disposition"]


def test_health_reports_unreachable_database(client):
    resp = client.get("/api/health")
    assert resp.status_code == 503
    assert resp.get_json()["database"] == "unreachable"


def test_report_pdf_download(client, world, monkeypatch):
    rendered = []

    def fake_pdf(html):
        rendered.append(html)
        return b"%PDF-1.7 fake"

    monkeypatch.setattr("club_attendance.reports.pdf.html_to_pdf", fake_pdf)
    _login(client, world.teacher)

    resp = client.get("/api/reports/daily?date=2026-03-02&format=pdf")

    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert resp.data.startswith(b"%PDF")
    assert "Daily Summary" in rendered[0]


def test_unknown_report_format_is_rejected(client, world):
    _login(client, world.teacher)
    assert client.get("/api/reports/duty?format=docx").status_code == 400


def test_event_search_route(client, world):
    world.events.add("Open Day", created_by=world.teacher.user_id)
    _login(client, world.student)

    resp = client.get("/api/events?query=open")

    assert resp.status_code == 200
    assert [e["name"] for e in resp.get_json()["data"]] == ["Open Day"]
