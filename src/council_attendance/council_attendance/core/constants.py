"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 30

DEFAULT_QR_EXPIRY_SECONDS = 15
QR_EXPIRY_MIN_SECONDS = 5
QR_EXPIRY_MAX_SECONDS = 120
QR_REFRESH_LEAD_SECONDS = 2
QR_NONCE_BYTES = 24
QR_PAYLOAD_PREFIX = "CATT:"

DEFAULT_PUNCHOUT_MIN_MINUTES = 30
PUNCHOUT_MIN_MINUTES_MAX = 240

# Vendor ANSI matcher reports 0-2000; 1200 is the tuned acceptance point.
BIOMETRIC_MATCH_THRESHOLD = 1200
BIOMETRIC_QUALITY_FLOOR = 70

CAPTURE_TIMEOUT_SECONDS = 10.0
CAPTURE_POLL_INTERVAL_SECONDS = 0.2

# One re-read of ledger state after losing a commit race.
MAX_RESOLVE_ATTEMPTS = 2
