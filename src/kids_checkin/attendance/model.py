from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import format_iso, parse_iso_date, parse_iso_datetime
from ..core.enums import CloseScope, SessionState


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one child's session, opened by check-in, closed by check-out."""

    record_id: str
    child_id: str
    parent_id: str
    check_in_time: datetime
    check_in_staff_id: str
    date: date
    check_out_time: Optional[datetime] = None
    check_out_staff_id: Optional[str] = None
    notes: Optional[str] = None

    @property
    def state(self) -> SessionState:
        return SessionState.OPEN if self.check_out_time is None else SessionState.CLOSED

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None

    def duration_hours(self) -> Optional[float]:
        if self.check_out_time is None:
            return None
        return (self.check_out_time - self.check_in_time).total_seconds() / 3600.0

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "childId": self.child_id,
            "parentId": self.parent_id,
            "checkInTime": format_iso(self.check_in_time),
            "checkOutTime": format_iso(self.check_out_time),
            "checkInStaffId": self.check_in_staff_id,
            "checkOutStaffId": self.check_out_staff_id,
            "notes": self.notes,
            "date": self.date.isoformat(),
            "state": self.state.value,
        }


@dataclass(frozen=True)
class CloseSelector:
    """Which open session(s) a check-out targets."""

    scope: CloseScope
    target_id: str

    @classmethod
    def record(cls, record_id: str) -> "CloseSelector":
        return cls(CloseScope.RECORD, record_id)

    @classmethod
    def child(cls, child_id: str) -> "CloseSelector":
        return cls(CloseScope.CHILD, child_id)

    @classmethod
    def parent(cls, parent_id: str) -> "CloseSelector":
        return cls(CloseScope.PARENT, parent_id)


@dataclass(frozen=True)
class AttendanceQuery:
    """Filter for the record log. Bounds are inclusive on check_in_time."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    child_id: Optional[str] = None
    parent_id: Optional[str] = None
    open_only: bool = False
    limit: Optional[int] = None

    def matches(self, r: AttendanceRecord) -> bool:
        if self.start is not None and r.check_in_time < self.start:
            return False
        if self.end is not None and r.check_in_time > self.end:
            return False
        if self.child_id is not None and r.child_id != self.child_id:
            return False
        if self.parent_id is not None and r.parent_id != self.parent_id:
            return False
        if self.open_only and not r.is_open:
            return False
        return True


def record_from_dict(data: dict) -> AttendanceRecord:
    """Inverse of ``AttendanceRecord.to_dict`` (used by the client)."""
    check_out = data.get("checkOutTime")
    return AttendanceRecord(
        record_id=data["id"],
        child_id=data["childId"],
        parent_id=data["parentId"],
        check_in_time=parse_iso_datetime(data["checkInTime"]),
        check_in_staff_id=data["checkInStaffId"],
        date=parse_iso_date(data["date"]),
        check_out_time=parse_iso_datetime(check_out) if check_out else None,
        check_out_staff_id=data.get("checkOutStaffId"),
        notes=data.get("notes"),
    )
