"""Delete QR tokens that expired before now.

Optional housekeeping for cron. Expiry is checked when a token is scanned,
so attendance decisions never depend on this having run.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.council_attendance.council_attendance.common.logging_utils import configure_logging
from src.council_attendance.council_attendance.database.connection import DBConfig, DatabaseConnection
from src.council_attendance.council_attendance.members.mysql_member_repository import MySQLMemberRepository
from src.council_attendance.council_attendance.qr.mysql_qr_token_repository import MySQLQrTokenRepository
from src.council_attendance.council_attendance.qr.service import TokenIssuer
from src.council_attendance.council_attendance.settings.mysql_settings_repository import MySQLSettingsRepository


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    conn = DatabaseConnection.get_instance(DBConfig.from_dict(dict(settings.DB_CONFIG)))
    issuer = TokenIssuer(MySQLQrTokenRepository(conn), MySQLMemberRepository(conn), MySQLSettingsRepository(conn))
    removed = issuer.purge_expired()
    print(f"OK: Purged {removed} expired QR token(s)")


if __name__ == "__main__":
    main()
