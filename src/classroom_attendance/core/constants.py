"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TOKEN_MINUTES = 60
DEFAULT_LATE_AFTER_MINUTES = 15

# secrets.token_urlsafe(32) -> 256 bits of entropy, 43 URL-safe chars
TOKEN_BYTES = 32
TOKEN_LOG_PREFIX = 8

CHECKIN_PATH = "/attendance/scan"

# MySQL deadlock / lock wait timeout
TRANSIENT_DB_ERRNOS = frozenset({1205, 1213})
DB_RETRY_ATTEMPTS = 3
DB_RETRY_BASE_DELAY = 0.05
