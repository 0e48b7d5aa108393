import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module, default 'development'
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "kids_checkin.config.production"

    if env in {"test", "testing"}:
        return "kids_checkin.config.testing"

    return "kids_checkin.config.development"
