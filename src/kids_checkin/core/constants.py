"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

AES_KEY_BYTES = 32
AES_IV_BYTES = 16
MAC_TAG_BYTES = 32

BYPASS_HEADER = "X-Bypass-Encryption"
ENCRYPTED_HEADER = "X-Encrypted"

TOKEN_STORE_KEY = "auth_token"
STAFF_STORE_KEY = "current_staff"

DEFAULT_HEALTH_POLL_SECONDS = 30
DEFAULT_HTTP_TIMEOUT_SECONDS = 10
DEFAULT_JWT_TTL_HOURS = 12
DEFAULT_QR_TOKEN_DAYS = 365
DEFAULT_RECORD_LIMIT = 500
