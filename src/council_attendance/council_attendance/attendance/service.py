from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import iso_or_none, now_local
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import EvidenceKind, PunchAction, Role
from ..core.exceptions import AuthorizationError, IdentityNotFound, ValidationError
from ..members.repository import MemberRepository
from ..realtime.notifier import NullNotifier, RealtimeNotifier
from .events import publish_decision
from .model import Decision, PunchSession
from .repository import PunchLedger

logger = logging.getLogger(__name__)


class AttendanceQueryService:
    """Read side: live dashboard and personal history."""

    def __init__(self, ledger: PunchLedger, members: MemberRepository, *, clock: Callable[[], datetime] = now_local):
        self._ledger = ledger
        self._members = members
        self._clock = clock

    def today_live(self, now: Optional[datetime] = None) -> dict:
        now = now or self._clock()
        today = now.date()
        roster = {m.member_id: m for m in self._members.list_all()}

        records = []
        for s in self._ledger.list_for_date(today):
            m = roster.get(s.identity_id)
            records.append(
                {
                    "id": s.session_id,
                    "member_id": s.identity_id,
                    "council_id": m.council_id if m else None,
                    "name": m.name if m else None,
                    "committee_name": m.committee if m else None,
                    "status": "punched_in" if s.is_open else "completed",
                    "punch_in": iso_or_none(s.punch_in),
                    "punch_out": iso_or_none(s.punch_out),
                    "duration_minutes": s.duration_minutes,
                    "source": s.source.value,
                }
            )

        return {
            "date": today.isoformat(),
            "records": records,
            "summary": {
                "total": len(records),
                "punched_in": sum(1 for r in records if r["status"] == "punched_in"),
                "completed": sum(1 for r in records if r["status"] == "completed"),
            },
        }

    def history_for(self, member_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict]:
        rows = self._ledger.list_for_member(int(member_id), int(limit))
        return [self._to_history_row(s) for s in rows]

    def _to_history_row(self, s: PunchSession) -> dict:
        minutes = s.duration_minutes
        return {
            "id": s.session_id,
            "date": s.work_date.strftime("%Y-%m-%d"),
            "punch_in": iso_or_none(s.punch_in),
            "punch_out": iso_or_none(s.punch_out),
            "total_hours": round(minutes / 60.0, 2) if minutes is not None else None,
            "source": s.source.value,
        }


class AttendanceAdminService:
    """Admin corrections. Skips the guard policies but never the ledger's atomic ops."""

    def __init__(
        self,
        ledger: PunchLedger,
        members: MemberRepository,
        *,
        notifier: Optional[RealtimeNotifier] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._ledger = ledger
        self._members = members
        self._notifier = notifier or NullNotifier()
        self._clock = clock

    def override_punch(
        self,
        member_id: int,
        action: PunchAction,
        *,
        current_role: Role,
        now: Optional[datetime] = None,
    ) -> Decision:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can override punches")
        now = now or self._clock()

        member = self._members.get_by_id(int(member_id))
        if not member:
            raise IdentityNotFound(member_id)

        if action == PunchAction.PUNCH_IN:
            session = self._ledger.commit_punch_in(member.member_id, now, source=EvidenceKind.ADMIN, note="Admin override")
        elif action == PunchAction.PUNCH_OUT:
            open_session = self._ledger.open_session_for(member.member_id)
            if open_session is None:
                raise ValidationError("Member has no open punch-in")
            session = self._ledger.commit_punch_out(open_session.session_id, now)
        else:
            raise ValidationError(f"Unsupported action {action.value!r}")

        decision = Decision(action, member, session, now)
        logger.info("Admin override: %s for %s", action.value, member.council_id)
        publish_decision(self._notifier, decision)
        return decision

    def correct_session(
        self,
        session_id: int,
        punch_in: datetime,
        punch_out: Optional[datetime],
        note: Optional[str] = None,
        *,
        current_role: Role,
    ) -> PunchSession:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can correct punch sessions")
        if punch_in is None:
            raise ValidationError("punch_in is required")
        if punch_out is not None and punch_out <= punch_in:
            raise ValidationError("Punch-out must be after punch-in")

        if not self._ledger.admin_update_session(
            session_id=int(session_id), punch_in=punch_in, punch_out=punch_out, note=note
        ):
            raise ValidationError(f"Punch session {session_id} not found")

        return self._ledger.get_by_id(int(session_id))
