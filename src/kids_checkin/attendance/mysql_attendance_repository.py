from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, placeholders
from .model import AttendanceQuery, AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    record_id, child_id, parent_id, check_in_time, check_out_time,
    check_in_staff_id, check_out_staff_id, notes, session_date
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=r["record_id"],
        child_id=r["child_id"],
        parent_id=r["parent_id"],
        check_in_time=r["check_in_time"],
        check_in_staff_id=r["check_in_staff_id"],
        date=r["session_date"],
        check_out_time=r.get("check_out_time"),
        check_out_staff_id=r.get("check_out_staff_id"),
        notes=r.get("notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s", (record_id,))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_open_for_child(self, child_id: str) -> Optional[AttendanceRecord]:
        found = self.get_open_for_children([child_id])
        return found[0] if found else None

    def get_open_for_children(self, child_ids: Sequence[str]) -> Sequence[AttendanceRecord]:
        if not child_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE open_child_id IN ({placeholders(len(child_ids))})
                ORDER BY check_in_time ASC
                """,
                tuple(child_ids),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def create_checkins(
        self,
        *,
        entries: Sequence[tuple[str, str]],
        check_in_time: datetime,
        session_date: date,
        staff_id: str,
        notes: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        created: list[AttendanceRecord] = []
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                for child_id, parent_id in entries:
                    record = AttendanceRecord(
                        record_id=str(uuid.uuid4()),
                        child_id=child_id,
                        parent_id=parent_id,
                        check_in_time=check_in_time,
                        check_in_staff_id=staff_id,
                        date=session_date,
                        notes=notes,
                    )
                    cur.execute(
                        """
                        INSERT INTO attendance_records(record_id, child_id, parent_id, check_in_time,
                                                       check_in_staff_id, notes, session_date)
                        VALUES(%s,%s,%s,%s,%s,%s,%s)
                        """,
                        (record.record_id, child_id, parent_id, check_in_time, staff_id, notes, session_date),
                    )
                    created.append(record)
        except mysql.connector.IntegrityError as e:
            # uq_one_open_session: another device opened this child first.
            if is_duplicate_key(e):
                raise ConflictError("Child is already checked in") from e
            raise
        return created

    def close_records(
        self,
        *,
        record_ids: Sequence[str],
        check_out_time: datetime,
        staff_id: str,
        notes: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        if not record_ids:
            return []
        marks = placeholders(len(record_ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT record_id FROM attendance_records
                WHERE record_id IN ({marks}) AND check_out_time IS NULL
                FOR UPDATE
                """,
                tuple(record_ids),
            )
            if len(fetchall(cur)) != len(record_ids):
                raise ConflictError("Some sessions were already checked out")

            cur.execute(
                f"""
                UPDATE attendance_records
                SET check_out_time=%s, check_out_staff_id=%s, notes=COALESCE(%s, notes)
                WHERE record_id IN ({marks}) AND check_out_time IS NULL
                """,
                (check_out_time, staff_id, notes, *record_ids),
            )
            if cur.rowcount != len(record_ids):
                raise ConflictError("Some sessions were already checked out")

            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id IN ({marks})", tuple(record_ids))
            by_id = {r["record_id"]: _to_record(r) for r in fetchall(cur)}
            return [by_id[i] for i in record_ids]

    def find(self, query: AttendanceQuery) -> Sequence[AttendanceRecord]:
        clauses = ["1=1"]
        params: list[object] = []

        if query.start is not None:
            clauses.append("check_in_time >= %s")
            params.append(query.start)
        if query.end is not None:
            clauses.append("check_in_time <= %s")
            params.append(query.end)
        if query.child_id is not None:
            clauses.append("child_id=%s")
            params.append(query.child_id)
        if query.parent_id is not None:
            clauses.append("parent_id=%s")
            params.append(query.parent_id)
        if query.open_only:
            clauses.append("check_out_time IS NULL")

        sql = f"SELECT {_COLUMNS} FROM attendance_records WHERE {' AND '.join(clauses)} ORDER BY check_in_time DESC"
        if query.limit:
            sql += " LIMIT %s"
            params.append(int(query.limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]
