from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import Child, Parent
from .repository import FamilyRepository

_CHILD_COLUMNS = """
    c.child_id, c.first_name, c.last_name, c.date_of_birth, c.allergies,
    c.emergency_contact, c.medical_notes, c.photo_url
"""


class MySQLFamilyRepository(FamilyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _links(self, cur, *, column: str, ids: Sequence[str]) -> dict[str, list[str]]:
        if not ids:
            return {}
        other = "child_id" if column == "parent_id" else "parent_id"
        cur.execute(
            f"""
            SELECT parent_id, child_id
            FROM parent_children
            WHERE {column} IN ({placeholders(len(ids))})
            ORDER BY position ASC
            """,
            tuple(ids),
        )
        out: dict[str, list[str]] = {i: [] for i in ids}
        for r in fetchall(cur):
            out[r[column]].append(r[other])
        return out

    @staticmethod
    def _parent(r: dict, child_ids: Sequence[str]) -> Parent:
        return Parent(
            parent_id=r["parent_id"],
            first_name=r["first_name"],
            last_name=r["last_name"],
            email=r.get("email"),
            phone=r.get("phone"),
            child_ids=tuple(child_ids),
        )

    @staticmethod
    def _child(r: dict, parent_ids: Sequence[str]) -> Child:
        return Child(
            child_id=r["child_id"],
            first_name=r["first_name"],
            last_name=r["last_name"],
            date_of_birth=r.get("date_of_birth"),
            allergies=r.get("allergies"),
            emergency_contact=r.get("emergency_contact"),
            medical_notes=r.get("medical_notes"),
            photo_url=r.get("photo_url") or "",
            parent_ids=tuple(parent_ids),
        )

    def get_parent(self, parent_id: str) -> Optional[Parent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT parent_id, first_name, last_name, email, phone FROM parents WHERE parent_id=%s",
                (parent_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            links = self._links(cur, column="parent_id", ids=[parent_id])
            return self._parent(r, links[parent_id])

    def get_child(self, child_id: str) -> Optional[Child]:
        found = self.get_children([child_id])
        return found[0] if found else None

    def get_children(self, child_ids: Sequence[str]) -> Sequence[Child]:
        if not child_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_CHILD_COLUMNS} FROM children c WHERE c.child_id IN ({placeholders(len(child_ids))})",
                tuple(child_ids),
            )
            rows = {r["child_id"]: r for r in fetchall(cur)}
            links = self._links(cur, column="child_id", ids=list(rows))
            # Keep the caller's order (a parent's link order).
            return [self._child(rows[i], links[i]) for i in child_ids if i in rows]

    def list_parents(self) -> Sequence[Parent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT parent_id, first_name, last_name, email, phone
                FROM parents
                ORDER BY last_name ASC, first_name ASC
                """
            )
            rows = fetchall(cur)
            links = self._links(cur, column="parent_id", ids=[r["parent_id"] for r in rows])
            return [self._parent(r, links[r["parent_id"]]) for r in rows]

    def list_children(self) -> Sequence[Child]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_CHILD_COLUMNS} FROM children c ORDER BY c.last_name ASC, c.first_name ASC")
            rows = fetchall(cur)
            links = self._links(cur, column="child_id", ids=[r["child_id"] for r in rows])
            return [self._child(r, links[r["child_id"]]) for r in rows]

    def create_parent(
        self,
        *,
        first_name: str,
        last_name: str,
        email: Optional[str],
        phone: Optional[str],
    ) -> str:
        parent_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO parents(parent_id, first_name, last_name, email, phone)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (parent_id, first_name, last_name, email, phone),
            )
        return parent_id

    def create_child(
        self,
        *,
        parent_id: str,
        first_name: str,
        last_name: str,
        date_of_birth: Optional[date],
        allergies: Optional[str],
        emergency_contact: Optional[str],
        medical_notes: Optional[str],
        photo_url: str,
    ) -> str:
        child_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO children(child_id, first_name, last_name, date_of_birth,
                                     allergies, emergency_contact, medical_notes, photo_url)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (child_id, first_name, last_name, date_of_birth, allergies, emergency_contact, medical_notes, photo_url),
            )
            self._insert_link(cur, parent_id=parent_id, child_id=child_id)
        return child_id

    @staticmethod
    def _insert_link(cur, *, parent_id: str, child_id: str) -> None:
        cur.execute(
            """
            INSERT IGNORE INTO parent_children(parent_id, child_id, position)
            SELECT %s, %s, COALESCE(MAX(position) + 1, 0) FROM parent_children WHERE parent_id=%s
            """,
            (parent_id, child_id, parent_id),
        )

    def link_child(self, *, parent_id: str, child_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            self._insert_link(cur, parent_id=parent_id, child_id=child_id)
            return cur.rowcount > 0

    def delete_parent(self, parent_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT child_id FROM parent_children WHERE parent_id=%s", (parent_id,))
            child_ids = [r["child_id"] for r in fetchall(cur)]

            cur.execute("DELETE FROM parents WHERE parent_id=%s", (parent_id,))
            deleted = cur.rowcount > 0

            if child_ids:
                cur.execute(
                    f"""
                    DELETE FROM children
                    WHERE child_id IN ({placeholders(len(child_ids))})
                      AND child_id NOT IN (SELECT child_id FROM parent_children)
                    """,
                    tuple(child_ids),
                )
            return deleted
