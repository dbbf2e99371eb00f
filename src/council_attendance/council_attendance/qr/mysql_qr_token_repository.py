from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import QrToken
from .repository import QrTokenRepository


class MySQLQrTokenRepository(QrTokenRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def save(self, token: QrToken) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO qr_tokens(nonce, member_id, issued_at, expires_at, consumed)
                VALUES(%s,%s,%s,%s,0)
                """,
                (token.nonce, token.identity_id, token.issued_at, token.expires_at),
            )

    def get_by_nonce(self, nonce: str) -> Optional[QrToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT nonce, member_id, issued_at, expires_at, consumed, consumed_at
                FROM qr_tokens
                WHERE nonce=%s
                """,
                (nonce,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return QrToken(
                nonce=r["nonce"],
                identity_id=int(r["member_id"]),
                issued_at=r["issued_at"],
                expires_at=r["expires_at"],
                consumed=bool(r["consumed"]),
                consumed_at=r.get("consumed_at"),
            )

    def mark_consumed(self, nonce: str, *, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE qr_tokens SET consumed=1, consumed_at=%s WHERE nonce=%s AND consumed=0",
                (at, nonce),
            )
            return cur.rowcount == 1

    def delete_expired(self, *, before: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM qr_tokens WHERE expires_at < %s", (before,))
            return int(cur.rowcount)
