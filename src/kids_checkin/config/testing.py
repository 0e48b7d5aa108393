from .base import *  # noqa: F401,F403

SECRET_KEY = "test-secret"

TRANSPORT_KEY = "test-transport-key"
JWT_SECRET = "test-jwt-secret"
QR_SECRET = "test-qr-secret"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False
