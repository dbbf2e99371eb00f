from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from werkzeug.security import check_password_hash

from ..common.datetime_utils import iso_or_none, now_local
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, IdentityNotFound
from .model import Member
from .repository import MemberRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    member_id: int
    council_id: str
    name: str
    role: Role
    committee: Optional[str]


class AuthService:
    """Use case: authenticate member (login)."""

    def __init__(self, members: MemberRepository):
        self._members = members

    def authenticate(self, council_id: str, password: str) -> SessionUser:
        member = self._members.get_by_council_id((council_id or "").strip())
        if not member or not member.is_active:
            raise AuthenticationError("Invalid council id or password")

        try:
            ok = check_password_hash(member.password_hash, password or "")
        except ValueError:
            # placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid council id or password")

        return SessionUser(
            member_id=member.member_id,
            council_id=member.council_id,
            name=member.name,
            role=member.role,
            committee=member.committee,
        )


class MemberService:
    """Use case: identity lookup and admin QR blocking."""

    def __init__(self, members: MemberRepository, *, clock: Callable[[], datetime] = now_local):
        self._members = members
        self._clock = clock

    def get_identity(self, member_id: int) -> Member:
        member = self._members.get_by_id(int(member_id))
        if not member or not member.is_active:
            raise IdentityNotFound(member_id)
        return member

    def list_qr_status(self) -> list[dict]:
        return [
            {
                "user_id": m.member_id,
                "council_id": m.council_id,
                "role": m.role.value,
                "name": m.name,
                "committee_name": m.committee,
                "qr_blocked": m.qr_blocked,
                "qr_block_reason": m.qr_block_reason,
                "qr_blocked_at": iso_or_none(m.qr_blocked_at),
            }
            for m in self._members.list_all()
        ]

    def set_qr_block(self, *, current_role: Role, member_id: int, blocked: bool, reason: Optional[str] = None) -> Member:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can block QR attendance")

        member = self._members.get_by_id(int(member_id))
        if not member:
            raise IdentityNotFound(member_id)

        if blocked:
            reason = (reason or "").strip() or "Blocked by admin"
            self._members.set_qr_block(member.member_id, blocked=True, reason=reason, at=self._clock())
            logger.info("QR blocked for member %s: %s", member.council_id, reason)
        else:
            self._members.set_qr_block(member.member_id, blocked=False, reason=None, at=None)
            logger.info("QR unblocked for member %s", member.council_id)

        return self._members.get_by_id(member.member_id) or member
