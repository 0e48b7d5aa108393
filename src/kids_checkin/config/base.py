import os


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "kids_checkin"),
}

# Shared with staff devices; padded/truncated to 32 bytes for AES-256.
TRANSPORT_KEY = os.getenv("TRANSPORT_KEY", "")
# Append an HMAC-SHA256 tag to every envelope. Server and devices must match.
TRANSPORT_MAC = env_flag("TRANSPORT_MAC", "0")

JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_TTL_HOURS = int(os.getenv("JWT_TTL_HOURS", "12"))

QR_SECRET = os.getenv("QR_SECRET", "")
QR_TOKEN_DAYS = int(os.getenv("QR_TOKEN_DAYS", "365"))

# Restrict check-out to sessions opened on the current calendar day.
CHECKOUT_SAME_DAY_ONLY = env_flag("CHECKOUT_SAME_DAY_ONLY", "1")

HEALTH_POLL_SECONDS = int(os.getenv("HEALTH_POLL_SECONDS", "30"))
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
