from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from ...common.datetime_utils import elapsed_minutes
from ...core.exceptions import TooSoon
from ...settings.model import AttendanceSettings
from ..model import PunchSession
from .base import PunchPolicy


class MinimumDurationPolicy(PunchPolicy):
    """Punch-out only after ``min_minutes`` have elapsed since punch-in.

    Also refuses a punch-out at or before the punch-in instant, so a closed
    session always has a positive length.
    """

    def __init__(self, min_minutes: int):
        self.min_minutes = max(int(min_minutes), 0)

    def check(self, *, now: datetime, settings: AttendanceSettings, open_session: Optional[PunchSession]) -> None:
        if open_session is None:
            return
        elapsed = elapsed_minutes(open_session.punch_in, now)
        if elapsed < self.min_minutes or now <= open_session.punch_in:
            remaining = max(1, math.ceil(self.min_minutes - elapsed))
            raise TooSoon(remaining)
