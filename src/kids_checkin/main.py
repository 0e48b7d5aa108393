from __future__ import annotations

import importlib
import logging
from types import ModuleType

from dotenv import load_dotenv
from flask import Flask, jsonify

from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_demo_admin, list_tables
from .database.connection import DBConfig, DatabaseConnection
from .transport.flask_envelope import install_envelope
from .attendance.controller import register as register_attendance
from .families.controller import register as register_families
from .qr.controller import register as register_qr
from .reports.controller import register as register_reports
from .users.controller import register as register_users


def load_settings() -> ModuleType:
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())


def _prepare_database(app: Flask, settings: ModuleType) -> None:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(settings.DB_CONFIG))
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(conn)
        app.logger.info("schema ready (tables=%d)", len(list_tables(conn)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        ensure_demo_admin(conn)
        app.logger.info("demo admin ready")


def create_app(container: Container | None = None, settings: ModuleType | None = None) -> Flask:
    settings = settings or load_settings()
    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if app.config["DEBUG"]:
        logging.basicConfig(level=logging.INFO)
        db = settings.DB_CONFIG
        app.logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings.__name__, db.get("user"), db.get("host"), db.get("port", 3306), db.get("database"),
        )
        if str(getattr(settings, "TRANSPORT_KEY", "")).startswith("dev-"):
            app.logger.warning("using the development TRANSPORT_KEY; set a real key before deploying")

    if container is None:
        _prepare_database(app, settings)
        container = build_container(settings=settings)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok", "success": True})

    install_envelope(app, container.codec, plaintext_endpoints={"health"})

    register_users(app, container)
    register_families(app, container)
    register_qr(app, container)
    register_attendance(app, container)
    register_reports(app, container)

    return app
