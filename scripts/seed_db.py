from __future__ import annotations

import os

from kids_checkin.database.bootstrap import ensure_demo_admin
from kids_checkin.database.connection import DBConfig, DatabaseConnection
from kids_checkin.main import load_settings


def main() -> None:
    settings = load_settings()
    db_config = dict(settings.DB_CONFIG)
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    email = os.getenv("SEED_ADMIN_EMAIL", "admin@example.org")
    ensure_demo_admin(conn, email=email, password=os.getenv("SEED_ADMIN_PASSWORD", "admin123"))

    print(
        f"OK: Seeded admin {email} -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
