from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Member:
    """Domain entity: a council member eligible for attendance tracking.

    Note: Plain data object (no DB access code).
    """

    member_id: int
    council_id: str
    name: str
    committee: Optional[str]
    role: Role
    password_hash: str = ""
    is_active: bool = True
    qr_blocked: bool = False
    qr_block_reason: Optional[str] = None
    qr_blocked_at: Optional[datetime] = None

    def summary(self) -> dict:
        """What kiosks and dashboards display about a member."""
        return {
            "member_id": self.member_id,
            "council_id": self.council_id,
            "name": self.name,
            "committee": self.committee,
        }
