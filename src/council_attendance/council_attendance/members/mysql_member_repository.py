from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Member
from .repository import MemberRepository

_COLUMNS = """
    member_id, council_id, name, committee, role, password_hash, is_active,
    qr_blocked, qr_block_reason, qr_blocked_at
"""


def _to_member(r: dict) -> Member:
    return Member(
        member_id=int(r["member_id"]),
        council_id=r["council_id"],
        name=r["name"],
        committee=r.get("committee"),
        role=Role(r["role"]),
        password_hash=r.get("password_hash") or "",
        is_active=bool(r.get("is_active", True)),
        qr_blocked=bool(r.get("qr_blocked", False)),
        qr_block_reason=r.get("qr_block_reason"),
        qr_blocked_at=r.get("qr_blocked_at"),
    )


class MySQLMemberRepository(MemberRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, member_id: int) -> Optional[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM members WHERE member_id=%s", (int(member_id),))
            row = fetchone(cur)
            return _to_member(row) if row else None

    def get_by_council_id(self, council_id: str) -> Optional[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM members WHERE council_id=%s", (council_id,))
            row = fetchone(cur)
            return _to_member(row) if row else None

    def list_all(self) -> Sequence[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM members ORDER BY committee, name")
            return [_to_member(r) for r in fetchall(cur)]

    def set_qr_block(
        self,
        member_id: int,
        *,
        blocked: bool,
        reason: Optional[str],
        at: Optional[datetime],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE members
                SET qr_blocked=%s, qr_block_reason=%s, qr_blocked_at=%s
                WHERE member_id=%s
                """,
                (1 if blocked else 0, reason, at, int(member_id)),
            )
            return cur.rowcount > 0
