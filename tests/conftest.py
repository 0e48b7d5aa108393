from __future__ import annotations

import importlib
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

import pytest
from werkzeug.security import generate_password_hash

from kids_checkin.attendance.model import AttendanceQuery, AttendanceRecord
from kids_checkin.client.api import ApiClient
from kids_checkin.client.token_store import MemoryStore, SessionContext
from kids_checkin.client.transport import RawResponse
from kids_checkin.container import build_services
from kids_checkin.core.enums import Role
from kids_checkin.core.exceptions import ConflictError
from kids_checkin.families.model import Child, Parent
from kids_checkin.main import create_app
from kids_checkin.transport.codec import TransportCodec
from kids_checkin.users.model import Staff


class InMemoryFamilies:
    def __init__(self):
        self.parents: dict[str, Parent] = {}
        self.children: dict[str, Child] = {}

    def add_parent(self, parent_id: str, first_name: str = "Pat", last_name: str = "Parent") -> Parent:
        self.parents[parent_id] = Parent(parent_id=parent_id, first_name=first_name, last_name=last_name)
        return self.parents[parent_id]

    def add_child(self, parent_id: str, child_id: str, first_name: str = "Kid", last_name: str = "Parent") -> Child:
        self.children[child_id] = Child(child_id=child_id, first_name=first_name, last_name=last_name)
        self.link_child(parent_id=parent_id, child_id=child_id)
        return self.children[child_id]

    def get_parent(self, parent_id: str) -> Optional[Parent]:
        return self.parents.get(parent_id)

    def get_child(self, child_id: str) -> Optional[Child]:
        return self.children.get(child_id)

    def get_children(self, child_ids: Sequence[str]) -> Sequence[Child]:
        return [self.children[i] for i in child_ids if i in self.children]

    def list_parents(self):
        return list(self.parents.values())

    def list_children(self):
        return list(self.children.values())

    def create_parent(self, *, first_name, last_name, email, phone) -> str:
        parent_id = str(uuid.uuid4())
        self.parents[parent_id] = Parent(parent_id, first_name, last_name, email, phone)
        return parent_id

    def create_child(self, *, parent_id, first_name, last_name, date_of_birth, allergies, emergency_contact, medical_notes, photo_url) -> str:
        child_id = str(uuid.uuid4())
        self.children[child_id] = Child(
            child_id, first_name, last_name, date_of_birth, allergies, emergency_contact, medical_notes, photo_url
        )
        self.link_child(parent_id=parent_id, child_id=child_id)
        return child_id

    def link_child(self, *, parent_id: str, child_id: str) -> bool:
        parent = self.parents[parent_id]
        child = self.children[child_id]
        if child_id in parent.child_ids:
            return False
        self.parents[parent_id] = replace(parent, child_ids=parent.child_ids + (child_id,))
        self.children[child_id] = replace(child, parent_ids=child.parent_ids + (parent_id,))
        return True

    def delete_parent(self, parent_id: str) -> bool:
        parent = self.parents.pop(parent_id, None)
        if not parent:
            return False
        for child_id in parent.child_ids:
            child = self.children[child_id]
            remaining = tuple(p for p in child.parent_ids if p != parent_id)
            if remaining:
                self.children[child_id] = replace(child, parent_ids=remaining)
            else:
                del self.children[child_id]
        return True


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[str, AttendanceRecord] = {}

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        self.records[record.record_id] = record
        return record

    def open_count(self, child_id: str) -> int:
        return sum(1 for r in self.records.values() if r.child_id == child_id and r.is_open)

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        return self.records.get(record_id)

    def get_open_for_child(self, child_id: str) -> Optional[AttendanceRecord]:
        found = self.get_open_for_children([child_id])
        return found[0] if found else None

    def get_open_for_children(self, child_ids: Sequence[str]) -> Sequence[AttendanceRecord]:
        wanted = set(child_ids)
        items = [r for r in self.records.values() if r.child_id in wanted and r.is_open]
        return sorted(items, key=lambda r: r.check_in_time)

    def create_checkins(self, *, entries, check_in_time: datetime, session_date: date, staff_id: str, notes=None):
        # Same guarantee as the unique index: no second open row per child.
        if self.get_open_for_children([c for c, _ in entries]):
            raise ConflictError("Child is already checked in")
        created = []
        for child_id, parent_id in entries:
            created.append(
                self.add(
                    AttendanceRecord(
                        record_id=str(uuid.uuid4()),
                        child_id=child_id,
                        parent_id=parent_id,
                        check_in_time=check_in_time,
                        check_in_staff_id=staff_id,
                        date=session_date,
                        notes=notes,
                    )
                )
            )
        return created

    def close_records(self, *, record_ids, check_out_time: datetime, staff_id: str, notes=None):
        if any(not self.records.get(i) or not self.records[i].is_open for i in record_ids):
            raise ConflictError("Some sessions were already checked out")
        closed = []
        for i in record_ids:
            r = self.records[i]
            self.records[i] = replace(
                r,
                check_out_time=check_out_time,
                check_out_staff_id=staff_id,
                notes=notes if notes is not None else r.notes,
            )
            closed.append(self.records[i])
        return closed

    def find(self, query: AttendanceQuery):
        items = [r for r in self.records.values() if query.matches(r)]
        items.sort(key=lambda r: r.check_in_time, reverse=True)
        return items[: query.limit] if query.limit else items


class InMemoryStaff:
    def __init__(self, staff: Sequence[Staff] = ()):
        self.by_id = {s.staff_id: s for s in staff}

    def get_by_id(self, staff_id: str) -> Optional[Staff]:
        return self.by_id.get(staff_id)

    def get_by_email(self, email: str) -> Optional[Staff]:
        return next((s for s in self.by_id.values() if s.email == email), None)

    def create_staff(self, *, first_name, last_name, email, password_hash, role) -> str:
        staff_id = str(uuid.uuid4())
        self.by_id[staff_id] = Staff(staff_id, first_name, last_name, email, password_hash, role)
        return staff_id

    def list_all(self):
        return list(self.by_id.values())


class FlaskTestTransport:
    """Routes client calls into a Flask test client instead of the network."""

    def __init__(self, app):
        self._client = app.test_client()
        self.calls: list[tuple[str, str, Optional[str], dict]] = []

    def call(self, endpoint, method, body, headers) -> RawResponse:
        self.calls.append((endpoint, method, body, dict(headers)))
        resp = self._client.open(endpoint, method=method, data=body, headers=dict(headers))
        return RawResponse(status=resp.status_code, text=resp.get_data(as_text=True), headers=dict(resp.headers))


@pytest.fixture
def settings():
    return importlib.import_module("kids_checkin.config.testing")


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 1, 9, 0, 0)


@pytest.fixture
def families() -> InMemoryFamilies:
    repo = InMemoryFamilies()
    repo.add_parent("P1", "Ana", "Silva")
    repo.add_child("P1", "c1", "Emma", "Silva")
    repo.add_child("P1", "c2", "Leo", "Silva")
    repo.add_parent("P2", "Bo", "Berg")
    repo.add_child("P2", "emma-1", "Emma", "Berg")
    return repo


@pytest.fixture
def attendance() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def staff_repo() -> InMemoryStaff:
    return InMemoryStaff(
        [
            Staff("s-admin", "Ada", "Admin", "admin@example.org", generate_password_hash("admin123"), Role.ADMIN),
            Staff("s-1", "Sam", "Staff", "sam@example.org", generate_password_hash("staff123"), Role.STAFF),
        ]
    )


@pytest.fixture
def container(settings, staff_repo, families, attendance):
    return build_services(settings=settings, staff_repo=staff_repo, families_repo=families, attendance_repo=attendance)


@pytest.fixture
def app(container, settings):
    return create_app(container=container, settings=settings)


@pytest.fixture
def transport(app) -> FlaskTestTransport:
    return FlaskTestTransport(app)


@pytest.fixture
def api(transport, settings) -> ApiClient:
    return ApiClient(transport, TransportCodec(settings.TRANSPORT_KEY), SessionContext(MemoryStore()))


@pytest.fixture
def staff_api(api) -> ApiClient:
    api.login("sam@example.org", "staff123")
    return api


@pytest.fixture
def admin_api(api) -> ApiClient:
    api.login("admin@example.org", "admin123")
    return api
