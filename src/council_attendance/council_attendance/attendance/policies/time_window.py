from __future__ import annotations

from datetime import datetime, time
from typing import Optional

from ...core.exceptions import OutsideWindow
from ...settings.model import AttendanceSettings
from ..model import PunchSession
from .base import PunchPolicy


class TimeWindowPolicy(PunchPolicy):
    """Punch-in only between start and end, both ends inclusive.

    Compared at whole-second granularity. A missing bound leaves that side open.
    """

    def __init__(self, start: Optional[time], end: Optional[time]):
        self.start = start or time.min
        self.end = end or time(23, 59, 59)

    def check(self, *, now: datetime, settings: AttendanceSettings, open_session: Optional[PunchSession]) -> None:
        t = now.time().replace(microsecond=0)
        if not (self.start <= t <= self.end):
            raise OutsideWindow(self.start, self.end)
