from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import AttendanceSettings
from .repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load(self) -> AttendanceSettings:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT qr_enabled, qr_expiry_seconds, time_window_enabled, start_time, end_time,
                       punchout_min_minutes, updated_at
                FROM attendance_settings
                WHERE id=1
                """
            )
            r = fetchone(cur)
            if not r:
                return AttendanceSettings()
            return AttendanceSettings(
                qr_enabled=bool(r["qr_enabled"]),
                qr_expiry_seconds=int(r["qr_expiry_seconds"]),
                time_window_enabled=bool(r["time_window_enabled"]),
                start_time=normalize_mysql_time(r.get("start_time")),
                end_time=normalize_mysql_time(r.get("end_time")),
                punchout_min_minutes=int(r["punchout_min_minutes"]),
                updated_at=r.get("updated_at"),
            )

    def save(self, settings: AttendanceSettings) -> AttendanceSettings:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_settings
                    (id, qr_enabled, qr_expiry_seconds, time_window_enabled, start_time, end_time,
                     punchout_min_minutes, updated_at)
                VALUES (1, %s, %s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    qr_enabled=VALUES(qr_enabled),
                    qr_expiry_seconds=VALUES(qr_expiry_seconds),
                    time_window_enabled=VALUES(time_window_enabled),
                    start_time=VALUES(start_time),
                    end_time=VALUES(end_time),
                    punchout_min_minutes=VALUES(punchout_min_minutes),
                    updated_at=VALUES(updated_at)
                """,
                (
                    1 if settings.qr_enabled else 0,
                    settings.qr_expiry_seconds,
                    1 if settings.time_window_enabled else 0,
                    settings.start_time,
                    settings.end_time,
                    settings.punchout_min_minutes,
                    settings.updated_at,
                ),
            )
        return settings
