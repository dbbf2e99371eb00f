from config.config import *  # noqa: F401,F403
from config.config import Config

SECRET_KEY = "test-secret"

DB_CONFIG = {**Config.db_config(), "database": "council_attendance_test"}

DEBUG = False
TESTING = True

KIOSK_API_KEY = "test-kiosk-key"

AUTO_INIT_DB = False
AUTO_SEED_DB = False
