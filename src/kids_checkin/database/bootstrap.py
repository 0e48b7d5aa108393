from __future__ import annotations

import logging
import re
from importlib import resources
from pathlib import Path
from typing import Iterable, Optional

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(conn_factory: DatabaseConnection) -> None:
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{conn_factory.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def load_schema_sql(schema_path: Optional[str | Path] = None) -> str:
    """Schema bundled with the package, or an explicit file when given."""
    if schema_path is not None:
        return Path(schema_path).read_text(encoding="utf-8")
    return (resources.files("kids_checkin") / "database" / "schema.sql").read_text(encoding="utf-8")


def apply_schema(conn_factory: DatabaseConnection, *, schema_path: Optional[str | Path] = None) -> None:
    ensure_database_exists(conn_factory)
    sql = _strip_create_db_and_use(load_schema_sql(schema_path))

    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("schema applied from %s", schema_path or "package data")


def ensure_demo_admin(conn_factory: DatabaseConnection, *, email: str = "admin@example.org", password: str = "admin123") -> None:
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT staff_id FROM staff WHERE email=%s", (email,))
        if cur.fetchone():
            return
        cur.execute(
            """
            INSERT INTO staff (staff_id, first_name, last_name, email, password_hash, role, is_active)
            VALUES (UUID(), %s, %s, %s, %s, 'admin', 1)
            """,
            ("Admin", "Demo", email, generate_password_hash(password)),
        )
        conn.commit()
        logger.info("demo admin %s created", email)
    finally:
        conn.close()


def list_tables(conn_factory: DatabaseConnection) -> list[str]:
    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
