from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import EvidenceKind
from .model import PunchSession


class PunchLedger(Protocol):
    """Durable punch sessions. The only place attendance state changes.

    At most one open session (punch_out is None) exists per member. Both
    commits are single atomic storage operations; they report a lost race
    instead of retrying, because the right action may have changed.
    """

    def open_session_for(self, identity_id: int) -> Optional[PunchSession]:
        raise NotImplementedError

    def commit_punch_in(
        self,
        identity_id: int,
        at: datetime,
        *,
        source: EvidenceKind,
        note: Optional[str] = None,
    ) -> PunchSession:
        """Insert an open session. Raises AlreadyOpen if one already exists."""

        raise NotImplementedError

    def commit_punch_out(self, session_id: int, at: datetime) -> PunchSession:
        """Close the session. Raises NotOpen if it is already closed."""

        raise NotImplementedError

    def get_by_id(self, session_id: int) -> Optional[PunchSession]:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[PunchSession]:
        raise NotImplementedError

    def list_for_member(self, identity_id: int, limit: int) -> Sequence[PunchSession]:
        raise NotImplementedError

    def admin_update_session(
        self,
        *,
        session_id: int,
        punch_in: datetime,
        punch_out: Optional[datetime],
        note: Optional[str] = None,
    ) -> bool:
        """Admin-only correction. Raises AlreadyOpen if reopening would make a second open session."""

        raise NotImplementedError
