import os

from .base import *  # noqa: F401,F403
from .base import env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

TRANSPORT_KEY = os.getenv("TRANSPORT_KEY", "dev-transport-key-change-me")
JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret")
QR_SECRET = os.getenv("QR_SECRET", "dev-qr-secret")

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also seed the demo admin on startup
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
