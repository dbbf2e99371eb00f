from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .biometrics.controller import register as register_biometrics
from .common.logging_utils import configure_logging
from .container import Container, build_container
from .core.enums import BlockScope
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_members, list_tables
from .members.controller import register as register_members
from .qr.controller import register as register_qr
from .settings.controller import register as register_settings

logger = logging.getLogger(__name__)

_DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app(container: Optional[Container] = None) -> Flask:
    """App factory. Pass a pre-built container to skip MySQL (tests)."""

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["KIOSK_API_KEY"] = getattr(settings, "KIOSK_API_KEY", "")
    app.config["SSE_HEARTBEAT_SECONDS"] = float(getattr(settings, "SSE_HEARTBEAT_SECONDS", 15.0))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=_DATABASE_DIR / "schema.sql")
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            seed_path = _DATABASE_DIR / "seed.sql"
            if seed_path.exists():
                apply_seed_sql(db_config, seed_path=seed_path)
            ensure_demo_members(db_config)
            logger.info("Demo seed ready")

        container = build_container(
            db_config=db_config,
            block_scope=BlockScope(getattr(settings, "QR_BLOCK_SCOPE", BlockScope.QR.value)),
            match_threshold=float(getattr(settings, "BIOMETRIC_MATCH_THRESHOLD")),
            quality_floor=int(getattr(settings, "BIOMETRIC_QUALITY_FLOOR")),
            matcher_exe=getattr(settings, "MATCHER_EXE", "ansi_matcher"),
            capture_exe=getattr(settings, "CAPTURE_EXE", ""),
            capture_dir=getattr(settings, "CAPTURE_DIR", ""),
            capture_timeout=float(getattr(settings, "CAPTURE_TIMEOUT_SECONDS")),
            capture_poll_interval=float(getattr(settings, "CAPTURE_POLL_INTERVAL_SECONDS")),
        )

    app.extensions["council_attendance"] = container

    register_members(app, container)
    register_settings(app, container)
    register_qr(app, container)
    register_biometrics(app, container)
    register_attendance(app, container)

    return app
