from __future__ import annotations

import base64
import sys
import threading
from dataclasses import replace
from datetime import time, timedelta

import pytest

from src.council_attendance.council_attendance.biometrics.capture import FileCaptureDevice
from src.council_attendance.council_attendance.container import assemble
from src.council_attendance.council_attendance.core.enums import EvidenceKind
from src.council_attendance.council_attendance.main import create_app

from tests.fakes import DictScorer, InMemoryTemplates

KIOSK = {"X-Kiosk-Key": "test-kiosk-key"}


@pytest.fixture
def container(members, settings, tokens, ledger, fixed_now):
    return assemble(
        members_repo=members,
        settings_repo=settings,
        tokens_repo=tokens,
        templates_repo=InMemoryTemplates(),
        ledger=ledger,
        scorer=DictScorer({(b"probe", b"bao"): 1700}),
        clock=lambda: fixed_now,
    )


@pytest.fixture
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


def login(client, council_id="MEM-001", password="secret"):
    resp = client.post("/api/auth/login", json={"council_id": council_id, "password": password})
    assert resp.status_code == 200
    return resp


def b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode()


def test_login_failure_is_401(client):
    resp = client.post("/api/auth/login", json={"council_id": "MEM-001", "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "authentication_error"


def test_member_endpoints_need_login(client):
    assert client.get("/api/attendance/qr").status_code == 401
    assert client.get("/api/attendance/my-attendance").status_code == 401


def test_member_qr_then_kiosk_scan_punches_in_once(client):
    login(client)
    issued = client.get("/api/attendance/qr").get_json()
    assert issued["success"] is True
    assert issued["expires_in"] == 15
    assert issued["refresh_in"] == 13

    first = client.post("/api/attendance/kiosk/scan-qr", json={"qr": issued["qr"]}, headers=KIOSK)
    assert first.status_code == 200
    assert first.get_json()["action"] == "punch_in"
    assert first.get_json()["member"]["council_id"] == "MEM-001"

    again = client.post("/api/attendance/kiosk/scan-qr", json={"qr": issued["qr"]}, headers=KIOSK)
    assert again.status_code == 409
    assert again.get_json()["code"] == "token_already_used"


def test_qr_image_is_png(client):
    login(client)
    resp = client.get("/api/attendance/qr/image")
    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.headers["X-QR-Expires-In"] == "15"


def test_kiosk_endpoints_need_key_or_admin(client):
    assert client.post("/api/attendance/kiosk/scan-qr", json={"qr": "x"}).status_code == 403

    login(client, "ADM-001", "admin123")
    resp = client.post("/api/attendance/kiosk/scan-qr", json={"qr": "CATT:nothex"})
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "token_invalid"


def test_blocked_member_gets_reason_on_qr_and_kiosk(client, container, fixed_now):
    login(client, "MEM-002")
    payload = client.get("/api/attendance/qr").get_json()["qr"]
    container.members_repo.set_qr_block(2, blocked=True, reason="misuse", at=fixed_now)

    issue = client.get("/api/attendance/qr")
    assert issue.status_code == 403
    assert issue.get_json()["message"] == "misuse"

    scan = client.post("/api/attendance/kiosk/scan-qr", json={"qr": payload}, headers=KIOSK)
    assert scan.status_code == 403
    body = scan.get_json()
    assert body["action"] == "blocked"
    assert body["message"] == "misuse"


def test_too_soon_payload_carries_remaining_minutes(client, container, fixed_now):
    container.ledger.commit_punch_in(1, fixed_now - timedelta(minutes=2), source=EvidenceKind.QR)
    login(client)
    payload = client.get("/api/attendance/qr").get_json()["qr"]

    resp = client.post("/api/attendance/kiosk/scan-qr", json={"qr": payload}, headers=KIOSK)

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["success"] is False
    assert body["code"] == "too_soon"
    assert body["remaining_minutes"] == 28


def test_fingerprint_enroll_and_scan(client):
    login(client, "ADM-001", "admin123")
    enroll = client.post("/api/biometrics/enroll", json={"member_id": 2, "template": b64(b"bao")})
    assert enroll.status_code == 200
    assert [r["member_id"] for r in client.get("/api/biometrics/enrolled").get_json()["enrolled"]] == [2]

    scan = client.post(
        "/api/attendance/kiosk/scan-fingerprint",
        json={"template": b64(b"probe"), "quality": 90},
        headers=KIOSK,
    )
    assert scan.status_code == 200
    assert scan.get_json()["member"]["council_id"] == "MEM-002"

    poor = client.post(
        "/api/attendance/kiosk/scan-fingerprint",
        json={"template": b64(b"probe"), "quality": 40},
        headers=KIOSK,
    )
    assert poor.status_code == 503
    assert poor.get_json()["code"] == "capture_rejected"

    assert client.delete("/api/biometrics/2").status_code == 200


def test_unrecognized_fingerprint_is_no_match(client):
    login(client, "ADM-001", "admin123")
    client.post("/api/biometrics/enroll", json={"member_id": 1, "template": b64(b"alice")})

    resp = client.post(
        "/api/attendance/kiosk/scan-fingerprint",
        json={"template": b64(b"probe"), "quality": 90},
        headers=KIOSK,
    )

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "no_match"
    assert resp.get_json()["score"] == 0


def test_today_live_and_history(client, container, fixed_now):
    s = container.ledger.commit_punch_in(1, fixed_now - timedelta(hours=1), source=EvidenceKind.QR)
    container.ledger.commit_punch_out(s.session_id, fixed_now)
    login(client)

    live = client.get("/api/attendance/today/live").get_json()
    assert live["success"] is True
    assert live["records"][0]["status"] == "completed"
    assert live["records"][0]["duration_minutes"] == 60

    history = client.get("/api/attendance/my-attendance").get_json()
    assert history["records"][0]["total_hours"] == 1.0


def test_admin_settings_round_trip_and_validation(client):
    login(client, "ADM-001", "admin123")

    assert client.get("/api/admin/attendance/settings").get_json()["settings"]["qr_expiry_seconds"] == 15

    ok = client.put("/api/admin/attendance/settings", json={"qr_expiry_seconds": 30})
    assert ok.status_code == 200
    assert ok.get_json()["settings"]["qr_expiry_seconds"] == 30

    bad = client.put("/api/admin/attendance/settings", json={"qr_expiry_seconds": 500})
    assert bad.status_code == 400


def test_admin_endpoints_reject_members(client):
    login(client)
    assert client.get("/api/admin/attendance/settings").status_code == 403
    assert client.put("/api/admin/users/2/qr-block", json={"blocked": True}).status_code == 403
    assert client.post("/api/admin/attendance/override", json={"member_id": 1, "action": "punch_in"}).status_code == 403


def test_admin_qr_block_and_override(client, container):
    login(client, "ADM-001", "admin123")

    blocked = client.put("/api/admin/users/2/qr-block", json={"blocked": True, "reason": "misuse"})
    assert blocked.get_json()["qr_blocked"] is True
    statuses = client.get("/api/admin/users/qr-status").get_json()["users"]
    assert {u["council_id"]: u["qr_blocked"] for u in statuses}["MEM-002"] is True

    override = client.post("/api/admin/attendance/override", json={"member_id": 2, "action": "punch_in"})
    assert override.status_code == 200
    assert override.get_json()["action"] == "punch_in"

    dup = client.post("/api/admin/attendance/override", json={"member_id": 2, "action": "punch_in"})
    assert dup.status_code == 409
    assert dup.get_json()["code"] == "already_open"

    bad = client.post("/api/admin/attendance/override", json={"member_id": 2, "action": "dance"})
    assert bad.status_code == 400


def test_admin_correct_session(client, container, fixed_now):
    s = container.ledger.commit_punch_in(1, fixed_now - timedelta(hours=2), source=EvidenceKind.QR)
    login(client, "ADM-001", "admin123")

    resp = client.put(
        f"/api/admin/attendance/sessions/{s.session_id}",
        json={
            "punch_in": (fixed_now - timedelta(hours=2)).isoformat(),
            "punch_out": (fixed_now - timedelta(hours=1)).isoformat(),
            "note": "Forgot to scan out",
        },
    )
    assert resp.status_code == 200
    assert resp.get_json()["session"]["duration_minutes"] == 60

    backwards = client.put(
        f"/api/admin/attendance/sessions/{s.session_id}",
        json={"punch_in": fixed_now.isoformat(), "punch_out": (fixed_now - timedelta(hours=1)).isoformat()},
    )
    assert backwards.status_code == 400


def test_unexpected_errors_are_500_with_generic_message(client, container, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("db exploded")

    monkeypatch.setattr(container.query_service, "today_live", boom)
    login(client)

    resp = client.get("/api/attendance/today/live")

    assert resp.status_code == 500
    assert "db exploded" not in resp.get_json()["message"]


class _SilentProcess:
    def poll(self):
        return None

    def kill(self):
        pass

    def wait(self, timeout=None):
        return -9


def test_kiosk_can_cancel_an_in_flight_capture(monkeypatch, members, settings, tokens, ledger, fixed_now, tmp_path):
    started = threading.Event()

    def capture_tool(args, **kwargs):
        started.set()
        return _SilentProcess()

    device = FileCaptureDevice(
        sys.executable, capture_dir=tmp_path, timeout=5, poll_interval=0.01, clock=lambda: fixed_now, popen=capture_tool
    )
    container = assemble(
        members_repo=members,
        settings_repo=settings,
        tokens_repo=tokens,
        templates_repo=InMemoryTemplates(),
        ledger=ledger,
        scorer=DictScorer({}),
        device=device,
        clock=lambda: fixed_now,
    )
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    replies = []

    def capture():
        replies.append(app.test_client().post("/api/attendance/kiosk/capture-fingerprint", headers=KIOSK))

    worker = threading.Thread(target=capture)
    worker.start()
    assert started.wait(2)

    cancel = app.test_client().post("/api/attendance/kiosk/capture-fingerprint/cancel", headers=KIOSK)
    worker.join(5)

    assert cancel.status_code == 200
    assert replies[0].status_code == 503
    assert replies[0].get_json()["code"] == "capture_cancelled"
    assert ledger.sessions == {}
    assert device._lock.acquire(blocking=False)
    device._lock.release()


def test_cancel_capture_needs_kiosk_key_and_a_reader(client):
    assert client.post("/api/attendance/kiosk/capture-fingerprint/cancel").status_code == 403

    resp = client.post("/api/attendance/kiosk/capture-fingerprint/cancel", headers=KIOSK)
    assert resp.status_code == 503
    assert resp.get_json()["code"] == "device_not_connected"


def test_kiosk_id_accepted_in_either_spelling(client, caplog):
    login(client)
    first = client.get("/api/attendance/qr").get_json()["qr"]

    with caplog.at_level("INFO"):
        resp = client.post(
            "/api/attendance/kiosk/scan-qr", json={"qr": first, "kioskDeviceId": "front-desk"}, headers=KIOSK
        )

    assert resp.status_code == 200
    assert any("kiosk front-desk" in r.getMessage() for r in caplog.records)


def test_outside_window_reply_has_bounds(client, container):
    container.settings_repo.current = replace(
        container.settings_repo.current, time_window_enabled=True, start_time=time(7, 0), end_time=time(8, 0)
    )
    login(client)
    payload = client.get("/api/attendance/qr").get_json()["qr"]

    resp = client.post("/api/attendance/kiosk/scan-qr", json={"qr": payload}, headers=KIOSK)

    assert resp.status_code == 400
    assert resp.get_json()["start"] == "07:00"
    assert resp.get_json()["end"] == "08:00"
