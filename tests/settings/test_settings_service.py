from __future__ import annotations

from datetime import time

import pytest

from src.council_attendance.council_attendance.core.enums import Role
from src.council_attendance.council_attendance.core.exceptions import AuthorizationError, ValidationError
from src.council_attendance.council_attendance.settings.service import SettingsService


@pytest.fixture
def service(settings, fixed_now):
    return SettingsService(settings, clock=lambda: fixed_now)


def test_update_applies_changes_and_stamps_time(service, fixed_now):
    saved = service.update(
        current_role=Role.ADMIN,
        changes={
            "qr_expiry_seconds": 20,
            "time_window_enabled": True,
            "start_time": "08:00",
            "end_time": "17:30",
            "punchout_min_minutes": 45,
        },
    )

    assert saved.qr_expiry_seconds == 20
    assert saved.start_time == time(8, 0)
    assert saved.end_time == time(17, 30)
    assert saved.punchout_min_minutes == 45
    assert saved.updated_at == fixed_now
    assert service.snapshot() == saved
    assert saved.to_dict()["end_time"] == "17:30"


def test_only_admin_can_update(service):
    with pytest.raises(AuthorizationError):
        service.update(current_role=Role.GS, changes={"qr_enabled": False})


@pytest.mark.parametrize(
    "changes",
    [
        {"qr_expiry_seconds": 4},
        {"qr_expiry_seconds": 121},
        {"punchout_min_minutes": -1},
        {"punchout_min_minutes": "lots"},
        {"qr_enabled": "maybe"},
        {"start_time": "25:00"},
        {"time_window_enabled": True},
        {"time_window_enabled": True, "start_time": "18:00", "end_time": "08:00"},
        {"colour": "blue"},
    ],
)
def test_invalid_updates_rejected_and_nothing_saved(service, settings, changes):
    before = settings.current
    with pytest.raises(ValidationError):
        service.update(current_role=Role.ADMIN, changes=changes)
    assert settings.current == before
