from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceQuery, AttendanceRecord


class AttendanceRepository(Protocol):
    """Authoritative attendance log.

    Implementations must guarantee at most one open record per child:
    ``create_checkins`` raises ConflictError instead of writing a second one.
    """

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_child(self, child_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_children(self, child_ids: Sequence[str]) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create_checkins(
        self,
        *,
        entries: Sequence[tuple[str, str]],
        check_in_time: datetime,
        session_date: date,
        staff_id: str,
        notes: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        """Open one session per (child_id, parent_id) entry, all or nothing."""

        raise NotImplementedError

    def close_records(
        self,
        *,
        record_ids: Sequence[str],
        check_out_time: datetime,
        staff_id: str,
        notes: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        """Close every listed record in one transaction.

        Raises ConflictError (and writes nothing) if any record is no longer open.
        """

        raise NotImplementedError

    def find(self, query: AttendanceQuery) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
