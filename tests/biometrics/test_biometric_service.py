from __future__ import annotations

import sys
import threading
from datetime import datetime
from pathlib import Path

import pytest

from src.council_attendance.council_attendance.biometrics.capture import FileCaptureDevice
from src.council_attendance.council_attendance.biometrics.matcher import BiometricMatcher
from src.council_attendance.council_attendance.biometrics.service import BiometricService
from src.council_attendance.council_attendance.core.enums import Role
from src.council_attendance.council_attendance.core.exceptions import (
    AuthorizationError,
    CaptureCancelled,
    DeviceNotConnected,
    IdentityNotFound,
    ValidationError,
)

from tests.fakes import DictScorer, InMemoryTemplates

AT = datetime(2026, 3, 2, 9, 0)


@pytest.fixture
def templates():
    return InMemoryTemplates()


@pytest.fixture
def service(templates, members):
    scorer = DictScorer({(b"probe", b"alice"): 1600, (b"probe", b"bao"): 300})
    return BiometricService(templates, members, BiometricMatcher(scorer), clock=lambda: AT)


def test_enroll_replaces_previous_template(service, templates):
    service.enroll(current_role=Role.ADMIN, member_id=1, template_bytes=b"old")
    service.enroll(current_role=Role.ADMIN, member_id=1, template_bytes=b"alice")

    assert templates.get_for_identity(1).template_bytes == b"alice"
    assert len(templates.list_active()) == 1


def test_enroll_requires_admin_and_known_member(service):
    with pytest.raises(AuthorizationError):
        service.enroll(current_role=Role.MEMBER, member_id=1, template_bytes=b"x")
    with pytest.raises(IdentityNotFound):
        service.enroll(current_role=Role.ADMIN, member_id=404, template_bytes=b"x")
    with pytest.raises(ValidationError):
        service.enroll(current_role=Role.ADMIN, member_id=1, template_bytes=b"")


def test_uploaded_sample_matches_enrolled_member(service):
    service.enroll(current_role=Role.ADMIN, member_id=1, template_bytes=b"alice")
    service.enroll(current_role=Role.ADMIN, member_id=2, template_bytes=b"bao")

    result = service.match(service.sample_from_upload(b"probe", 90))

    assert result.matched
    assert result.candidate_identity_id == 1


def test_list_enrolled_and_remove(service):
    service.enroll(current_role=Role.ADMIN, member_id=2, template_bytes=b"bao")

    listed = service.list_enrolled()
    assert [r["council_id"] for r in listed] == ["MEM-002"]

    service.remove(current_role=Role.ADMIN, member_id=2)
    assert service.list_enrolled() == []
    with pytest.raises(ValidationError):
        service.remove(current_role=Role.ADMIN, member_id=2)


def test_capture_without_device_is_not_connected(service):
    with pytest.raises(DeviceNotConnected):
        service.capture_and_match()


def test_cancel_capture_aborts_in_flight_capture(templates, members, tmp_path):
    started = threading.Event()

    class SilentProcess:
        def poll(self):
            return None

        def kill(self):
            pass

        def wait(self, timeout=None):
            return -9

    def never_writes(args, **kwargs):
        started.set()
        return SilentProcess()

    device = FileCaptureDevice(
        sys.executable, capture_dir=tmp_path, timeout=5, poll_interval=0.01, clock=lambda: AT, popen=never_writes
    )
    service = BiometricService(templates, members, BiometricMatcher(DictScorer({})), device=device, clock=lambda: AT)
    outcome = []

    def capture():
        try:
            service.capture_and_match()
        except CaptureCancelled as e:
            outcome.append(e)

    worker = threading.Thread(target=capture)
    worker.start()
    assert started.wait(2)
    service.cancel_capture()
    worker.join(2)

    assert len(outcome) == 1
    assert device._lock.acquire(blocking=False)
    device._lock.release()


def test_earlier_cancel_does_not_abort_next_capture(templates, members, tmp_path):
    def writes_template(args, **kwargs):
        out = Path(args[-1])
        out.with_suffix(".ansi").write_bytes(b"alice")
        out.with_suffix(".json").write_text('{"quality": 90}', encoding="utf-8")

        class Done:
            def poll(self):
                return 0

        return Done()

    device = FileCaptureDevice(sys.executable, capture_dir=tmp_path, clock=lambda: AT, popen=writes_template)
    scorer = DictScorer({(b"alice", b"alice"): 1900})
    service = BiometricService(templates, members, BiometricMatcher(scorer), device=device, clock=lambda: AT)
    service.enroll(current_role=Role.ADMIN, member_id=1, template_bytes=b"alice")

    service.cancel_capture()

    assert service.capture_and_match().candidate_identity_id == 1


def test_cancel_without_device_is_not_connected(service):
    with pytest.raises(DeviceNotConnected):
        service.cancel_capture()
