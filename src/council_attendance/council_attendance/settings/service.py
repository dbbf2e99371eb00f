from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Mapping

from ..common.datetime_utils import now_local, parse_hhmm
from ..common.validators import require_bool, require_int_in_range
from ..core.constants import PUNCHOUT_MIN_MINUTES_MAX, QR_EXPIRY_MAX_SECONDS, QR_EXPIRY_MIN_SECONDS
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from .model import AttendanceSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

_EDITABLE = {
    "qr_enabled",
    "qr_expiry_seconds",
    "time_window_enabled",
    "start_time",
    "end_time",
    "punchout_min_minutes",
}


class SettingsService:
    """Use case: read the attendance policy snapshot; admin updates it."""

    def __init__(self, settings: SettingsRepository, *, clock: Callable[[], datetime] = now_local):
        self._settings = settings
        self._clock = clock

    def snapshot(self) -> AttendanceSettings:
        return self._settings.load()

    def update(self, *, current_role: Role, changes: Mapping[str, Any]) -> AttendanceSettings:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can change attendance settings")

        unknown = set(changes) - _EDITABLE - {"updated_at"}
        if unknown:
            raise ValidationError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

        current = self._settings.load()
        values: dict[str, Any] = {}

        if "qr_enabled" in changes:
            values["qr_enabled"] = require_bool(changes["qr_enabled"], "qr_enabled")
        if "qr_expiry_seconds" in changes:
            values["qr_expiry_seconds"] = require_int_in_range(
                changes["qr_expiry_seconds"], "qr_expiry_seconds", low=QR_EXPIRY_MIN_SECONDS, high=QR_EXPIRY_MAX_SECONDS
            )
        if "time_window_enabled" in changes:
            values["time_window_enabled"] = require_bool(changes["time_window_enabled"], "time_window_enabled")
        if "start_time" in changes:
            values["start_time"] = parse_hhmm(changes["start_time"])
        if "end_time" in changes:
            values["end_time"] = parse_hhmm(changes["end_time"])
        if "punchout_min_minutes" in changes:
            values["punchout_min_minutes"] = require_int_in_range(
                changes["punchout_min_minutes"], "punchout_min_minutes", low=0, high=PUNCHOUT_MIN_MINUTES_MAX
            )

        updated = replace(current, **values, updated_at=self._clock())

        if updated.time_window_enabled:
            if not updated.start_time or not updated.end_time:
                raise ValidationError("Start time and end time are required when the time window is enabled")
            if updated.start_time > updated.end_time:
                raise ValidationError("Start time must not be after end time")

        saved = self._settings.save(updated)
        logger.info("Attendance settings updated: %s", saved.to_dict())
        return saved
