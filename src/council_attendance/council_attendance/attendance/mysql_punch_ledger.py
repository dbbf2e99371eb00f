from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import EvidenceKind
from ..core.exceptions import AlreadyOpen, NotOpen, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import PunchSession
from .repository import PunchLedger

logger = logging.getLogger(__name__)

_COLUMNS = "session_id, member_id, work_date, punch_in, punch_out, source, note"


def _to_session(r: dict) -> PunchSession:
    return PunchSession(
        session_id=int(r["session_id"]),
        identity_id=int(r["member_id"]),
        work_date=r["work_date"],
        punch_in=r["punch_in"],
        punch_out=r.get("punch_out"),
        source=EvidenceKind(r.get("source") or EvidenceKind.QR.value),
        note=r.get("note"),
    )


class MySQLPunchLedger(PunchLedger):
    """Relies on the uq_one_open_session index (see database/schema.sql).

    Inserting a second open row for a member fails with a duplicate key no
    matter how many app instances race, which is what makes punch-in atomic.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def open_session_for(self, identity_id: int) -> Optional[PunchSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punch_sessions
                WHERE member_id=%s AND punch_out IS NULL
                ORDER BY punch_in DESC
                LIMIT 1
                """,
                (int(identity_id),),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def commit_punch_in(
        self,
        identity_id: int,
        at: datetime,
        *,
        source: EvidenceKind,
        note: Optional[str] = None,
    ) -> PunchSession:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO punch_sessions(member_id, work_date, punch_in, source, note)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(identity_id), at.date(), at, source.value, note),
                )
                session_id = int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise AlreadyOpen(int(identity_id))
            raise

        return PunchSession(
            session_id=session_id,
            identity_id=int(identity_id),
            work_date=at.date(),
            punch_in=at,
            punch_out=None,
            source=source,
            note=note,
        )

    def commit_punch_out(self, session_id: int, at: datetime) -> PunchSession:
        current = self.get_by_id(session_id)
        if current is None or current.punch_out is not None:
            raise NotOpen(int(session_id))
        if at <= current.punch_in:
            raise ValidationError("Punch-out must be after punch-in")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE punch_sessions
                SET punch_out=%s
                WHERE session_id=%s AND punch_out IS NULL AND punch_in < %s
                """,
                (at, int(session_id), at),
            )
            won = cur.rowcount == 1

        if not won:
            raise NotOpen(int(session_id))

        return PunchSession(
            session_id=current.session_id,
            identity_id=current.identity_id,
            work_date=current.work_date,
            punch_in=current.punch_in,
            punch_out=at,
            source=current.source,
            note=current.note,
        )

    def get_by_id(self, session_id: int) -> Optional[PunchSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM punch_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_for_date(self, work_date: date) -> Sequence[PunchSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punch_sessions
                WHERE work_date=%s
                ORDER BY punch_in DESC
                """,
                (work_date,),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def list_for_member(self, identity_id: int, limit: int) -> Sequence[PunchSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punch_sessions
                WHERE member_id=%s
                ORDER BY punch_in DESC
                LIMIT %s
                """,
                (int(identity_id), int(limit)),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def admin_update_session(
        self,
        *,
        session_id: int,
        punch_in: datetime,
        punch_out: Optional[datetime],
        note: Optional[str] = None,
    ) -> bool:
        current = self.get_by_id(session_id)
        if current is None:
            return False
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE punch_sessions
                    SET punch_in=%s, punch_out=%s, work_date=%s, note=%s
                    WHERE session_id=%s
                    """,
                    (punch_in, punch_out, punch_in.date(), note, int(session_id)),
                )
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise AlreadyOpen(current.identity_id)
            raise
        logger.info("Admin corrected punch session %s", session_id)
        return True
