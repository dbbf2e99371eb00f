from __future__ import annotations

from datetime import timedelta

import pytest

from src.council_attendance.council_attendance.attendance.service import AttendanceAdminService, AttendanceQueryService
from src.council_attendance.council_attendance.core.enums import EvidenceKind, PunchAction, Role
from src.council_attendance.council_attendance.core.exceptions import AlreadyOpen, AuthorizationError, ValidationError

from tests.fakes import RecordingNotifier


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def admin(ledger, members, notifier, fixed_now):
    return AttendanceAdminService(ledger, members, notifier=notifier, clock=lambda: fixed_now)


@pytest.fixture
def queries(ledger, members, fixed_now):
    return AttendanceQueryService(ledger, members, clock=lambda: fixed_now)


def test_today_live_lists_open_and_closed_sessions(ledger, queries, fixed_now):
    s1 = ledger.commit_punch_in(1, fixed_now - timedelta(hours=2), source=EvidenceKind.QR)
    ledger.commit_punch_out(s1.session_id, fixed_now - timedelta(minutes=30))
    ledger.commit_punch_in(2, fixed_now - timedelta(minutes=10), source=EvidenceKind.BIOMETRIC)
    ledger.commit_punch_in(9, fixed_now - timedelta(days=1), source=EvidenceKind.QR)

    live = queries.today_live()

    assert live["date"] == "2026-03-02"
    by_member = {r["council_id"]: r for r in live["records"]}
    assert set(by_member) == {"MEM-001", "MEM-002"}
    assert by_member["MEM-001"]["status"] == "completed"
    assert by_member["MEM-001"]["duration_minutes"] == 90
    assert by_member["MEM-002"]["status"] == "punched_in"
    assert by_member["MEM-002"]["punch_out"] is None
    assert by_member["MEM-002"]["source"] == "biometric"
    assert live["summary"] == {"total": 2, "punched_in": 1, "completed": 1}


def test_history_reports_hours_newest_first(ledger, queries, fixed_now):
    first = ledger.commit_punch_in(1, fixed_now - timedelta(days=1), source=EvidenceKind.QR)
    ledger.commit_punch_out(first.session_id, fixed_now - timedelta(days=1) + timedelta(minutes=90))
    ledger.commit_punch_in(1, fixed_now, source=EvidenceKind.QR)

    rows = queries.history_for(1, limit=10)

    assert [r["date"] for r in rows] == ["2026-03-02", "2026-03-01"]
    assert rows[0]["total_hours"] is None
    assert rows[1]["total_hours"] == 1.5
    assert len(queries.history_for(1, limit=1)) == 1


def test_override_punch_in_ignores_time_window_but_not_one_open_session(admin, ledger, notifier):
    decision = admin.override_punch(1, PunchAction.PUNCH_IN, current_role=Role.ADMIN)

    assert decision.session.source == EvidenceKind.ADMIN
    assert [e.type for e in notifier.events] == ["punch_in"]
    with pytest.raises(AlreadyOpen):
        admin.override_punch(1, PunchAction.PUNCH_IN, current_role=Role.ADMIN)
    assert ledger.open_count(1) == 1


def test_override_punch_out_skips_minimum_duration(admin, ledger, fixed_now):
    admin.override_punch(1, PunchAction.PUNCH_IN, current_role=Role.ADMIN)

    decision = admin.override_punch(
        1, PunchAction.PUNCH_OUT, current_role=Role.ADMIN, now=fixed_now + timedelta(minutes=1)
    )

    assert decision.action == PunchAction.PUNCH_OUT
    assert decision.duration_minutes == 1
    assert ledger.open_count(1) == 0


def test_override_requires_admin_and_open_session(admin):
    with pytest.raises(AuthorizationError):
        admin.override_punch(1, PunchAction.PUNCH_IN, current_role=Role.HEAD)
    with pytest.raises(ValidationError):
        admin.override_punch(1, PunchAction.PUNCH_OUT, current_role=Role.ADMIN)
    with pytest.raises(ValidationError):
        admin.override_punch(1, PunchAction.BLOCKED, current_role=Role.ADMIN)


def test_correct_session_enforces_order_and_single_open(admin, ledger, fixed_now):
    old = ledger.commit_punch_in(1, fixed_now - timedelta(hours=3), source=EvidenceKind.QR)
    ledger.commit_punch_out(old.session_id, fixed_now - timedelta(hours=2))
    ledger.commit_punch_in(1, fixed_now, source=EvidenceKind.QR)

    fixed = admin.correct_session(
        old.session_id,
        fixed_now - timedelta(hours=4),
        fixed_now - timedelta(hours=2),
        "Forgot to scan in",
        current_role=Role.ADMIN,
    )
    assert fixed.duration_minutes == 120
    assert fixed.note == "Forgot to scan in"

    with pytest.raises(ValidationError):
        admin.correct_session(old.session_id, fixed_now, fixed_now, None, current_role=Role.ADMIN)
    with pytest.raises(AlreadyOpen):
        admin.correct_session(old.session_id, fixed_now - timedelta(hours=4), None, None, current_role=Role.ADMIN)
    with pytest.raises(ValidationError):
        admin.correct_session(999, fixed_now, None, None, current_role=Role.ADMIN)
