from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, time
from typing import Optional

from ..core.constants import DEFAULT_PUNCHOUT_MIN_MINUTES, DEFAULT_QR_EXPIRY_SECONDS


@dataclass(frozen=True)
class AttendanceSettings:
    """Immutable snapshot of the attendance policy.

    A decision captures one snapshot at its start and uses it throughout, so an
    admin edit landing mid-scan cannot change the outcome of that scan.
    """

    qr_enabled: bool = True
    qr_expiry_seconds: int = DEFAULT_QR_EXPIRY_SECONDS
    time_window_enabled: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    punchout_min_minutes: int = DEFAULT_PUNCHOUT_MIN_MINUTES
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["start_time"] = self.start_time.strftime("%H:%M") if self.start_time else None
        d["end_time"] = self.end_time.strftime("%H:%M") if self.end_time else None
        d["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return d
