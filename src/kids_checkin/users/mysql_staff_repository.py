from __future__ import annotations

import uuid
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Staff
from .repository import StaffRepository

_COLUMNS = "staff_id, first_name, last_name, email, password_hash, role, is_active"


def _to_staff(row: dict) -> Staff:
    return Staff(
        staff_id=row["staff_id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLStaffRepository(StaffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, staff_id: str) -> Optional[Staff]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM staff WHERE staff_id=%s", (staff_id,))
            row = fetchone(cur)
            return _to_staff(row) if row else None

    def get_by_email(self, email: str) -> Optional[Staff]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM staff WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_staff(row) if row else None

    def create_staff(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password_hash: str,
        role: Role,
    ) -> str:
        staff_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO staff(staff_id, first_name, last_name, email, password_hash, role, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                """,
                (staff_id, first_name, last_name, email, password_hash, role.value),
            )
        return staff_id

    def list_all(self) -> Sequence[Staff]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM staff ORDER BY last_name ASC, first_name ASC")
            return [_to_staff(r) for r in fetchall(cur)]
