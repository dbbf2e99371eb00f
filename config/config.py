import os


def env_bool(name: str, default: str = "0") -> bool:
    return bool(int(os.environ.get(name, default)))


class Config:
    """Values shared by every environment; each settings module overrides what differs."""

    SECRET_KEY = os.environ.get("SECRET_KEY") or "council-attendance-secret"

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "council_attendance")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Shared secret sent by kiosks in the X-Kiosk-Key header
    KIOSK_API_KEY = os.environ.get("KIOSK_API_KEY", "")

    # 'qr': the per-member block only stops QR scans; 'all': fingerprint scans too
    QR_BLOCK_SCOPE = os.environ.get("QR_BLOCK_SCOPE", "qr")

    BIOMETRIC_MATCH_THRESHOLD = float(os.environ.get("BIOMETRIC_MATCH_THRESHOLD", "1200"))
    BIOMETRIC_QUALITY_FLOOR = int(os.environ.get("BIOMETRIC_QUALITY_FLOOR", "70"))
    MATCHER_EXE = os.environ.get("MATCHER_EXE", "ansi_matcher")
    CAPTURE_EXE = os.environ.get("CAPTURE_EXE", "")
    CAPTURE_DIR = os.environ.get("CAPTURE_DIR", "")
    CAPTURE_TIMEOUT_SECONDS = float(os.environ.get("CAPTURE_TIMEOUT_SECONDS", "10"))
    CAPTURE_POLL_INTERVAL_SECONDS = float(os.environ.get("CAPTURE_POLL_INTERVAL_SECONDS", "0.2"))

    SSE_HEARTBEAT_SECONDS = float(os.environ.get("SSE_HEARTBEAT_SECONDS", "15"))

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }


LOG_LEVEL = Config.LOG_LEVEL
KIOSK_API_KEY = Config.KIOSK_API_KEY
QR_BLOCK_SCOPE = Config.QR_BLOCK_SCOPE
BIOMETRIC_MATCH_THRESHOLD = Config.BIOMETRIC_MATCH_THRESHOLD
BIOMETRIC_QUALITY_FLOOR = Config.BIOMETRIC_QUALITY_FLOOR
MATCHER_EXE = Config.MATCHER_EXE
CAPTURE_EXE = Config.CAPTURE_EXE
CAPTURE_DIR = Config.CAPTURE_DIR
CAPTURE_TIMEOUT_SECONDS = Config.CAPTURE_TIMEOUT_SECONDS
CAPTURE_POLL_INTERVAL_SECONDS = Config.CAPTURE_POLL_INTERVAL_SECONDS
SSE_HEARTBEAT_SECONDS = Config.SSE_HEARTBEAT_SECONDS
