from __future__ import annotations

from dataclasses import dataclass

from ...settings.model import AttendanceSettings
from .base import AllowAllPolicy, PunchPolicy
from .minimum_duration import MinimumDurationPolicy
from .time_window import TimeWindowPolicy


@dataclass
class PunchPolicyFactory:
    """Factory Pattern: choose the guard for the action about to be taken."""

    def for_punch_in(self, settings: AttendanceSettings) -> PunchPolicy:
        if not settings.time_window_enabled:
            return AllowAllPolicy()
        return TimeWindowPolicy(settings.start_time, settings.end_time)

    def for_punch_out(self, settings: AttendanceSettings) -> PunchPolicy:
        return MinimumDurationPolicy(settings.punchout_min_minutes)
