from __future__ import annotations

from typing import Protocol

from .model import AttendanceSettings


class SettingsRepository(Protocol):
    def load(self) -> AttendanceSettings:
        """Return the current settings, defaults when nothing is stored yet."""

        raise NotImplementedError

    def save(self, settings: AttendanceSettings) -> AttendanceSettings:
        raise NotImplementedError
