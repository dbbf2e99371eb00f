from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import EnrolledTemplate
from .repository import TemplateRepository


def _to_template(r: dict) -> EnrolledTemplate:
    return EnrolledTemplate(
        identity_id=int(r["member_id"]),
        template_bytes=bytes(r["template"]),
        enrolled_at=r["enrolled_at"],
    )


class MySQLTemplateRepository(TemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(self, template: EnrolledTemplate) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO biometric_templates(member_id, template, enrolled_at)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE template=VALUES(template), enrolled_at=VALUES(enrolled_at)
                """,
                (template.identity_id, template.template_bytes, template.enrolled_at),
            )

    def get_for_identity(self, identity_id: int) -> Optional[EnrolledTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT bt.member_id, bt.template, bt.enrolled_at
                FROM biometric_templates bt
                WHERE bt.member_id=%s
                """,
                (int(identity_id),),
            )
            r = fetchone(cur)
            return _to_template(r) if r else None

    def list_active(self) -> Sequence[EnrolledTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT bt.member_id, bt.template, bt.enrolled_at
                FROM biometric_templates bt
                JOIN members m ON m.member_id = bt.member_id
                WHERE m.is_active = 1
                ORDER BY bt.enrolled_at DESC
                """
            )
            return [_to_template(r) for r in fetchall(cur)]

    def delete(self, identity_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM biometric_templates WHERE member_id=%s", (int(identity_id),))
            return cur.rowcount > 0
