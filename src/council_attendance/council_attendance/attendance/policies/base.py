from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ...settings.model import AttendanceSettings
from ..model import PunchSession


class PunchPolicy(ABC):
    """Strategy Pattern: a guard rule evaluated before a punch is committed.

    ``check`` returns nothing on success and raises a PolicyRejection when the
    punch must not happen.
    """

    @abstractmethod
    def check(self, *, now: datetime, settings: AttendanceSettings, open_session: Optional[PunchSession]) -> None:
        raise NotImplementedError


class AllowAllPolicy(PunchPolicy):
    def check(self, *, now: datetime, settings: AttendanceSettings, open_session: Optional[PunchSession]) -> None:
        return None
