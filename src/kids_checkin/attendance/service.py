from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import day_bounds, now_local
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_RECORD_LIMIT
from ..core.enums import CloseScope
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..families.model import Child
from ..families.repository import FamilyRepository
from .factory import CheckoutPolicyFactory
from .model import AttendanceQuery, AttendanceRecord, CloseSelector
from .policies.base import CheckoutWindowPolicy
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Session engine: opens (check-in) and closes (check-out) attendance records.

    Invariants held here and by the repository:

    * a child has at most one open record;
    * a record is closed exactly once and check-out never precedes check-in;
    * a bulk operation writes every record or none.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        families: FamilyRepository,
        *,
        checkout_policy: CheckoutWindowPolicy | None = None,
    ):
        self._attendance = attendance
        self._families = families
        self._policy = checkout_policy or CheckoutPolicyFactory().create()

    def _get_child(self, child_id: str) -> Child:
        child = self._families.get_child(child_id)
        if not child:
            raise NotFoundError("Child not found")
        return child

    @staticmethod
    def _owning_parent(child: Child, parent_id: Optional[str]) -> str:
        if parent_id:
            if parent_id not in child.parent_ids:
                raise ValidationError("Child is not linked to this parent")
            return parent_id
        if not child.parent_ids:
            raise ValidationError("Child has no parent on file")
        return child.parent_ids[0]

    def check_in(
        self,
        child_id: str,
        *,
        staff_id: str,
        parent_id: Optional[str] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        return self.check_in_many([child_id], staff_id=staff_id, parent_id=parent_id, notes=notes, now=now)[0]

    def check_in_many(
        self,
        child_ids: Sequence[str],
        *,
        staff_id: str,
        parent_id: Optional[str] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> list[AttendanceRecord]:
        now = now or now_local()
        staff_id = require_non_empty(staff_id, "Staff")
        if not child_ids:
            raise ValidationError("Select at least one child")

        entries: list[tuple[str, str]] = []
        for child_id in dict.fromkeys(child_ids):
            child = self._get_child(child_id)
            entries.append((child.child_id, self._owning_parent(child, parent_id)))

        open_records = self._attendance.get_open_for_children([c for c, _ in entries])
        if any(self._policy.allows(r, now=now) for r in open_records):
            raise ConflictError("Child is already checked in")
        if open_records:
            self._close_stale(open_records, staff_id=staff_id)

        records = list(
            self._attendance.create_checkins(
                entries=entries,
                check_in_time=now,
                session_date=now.date(),
                staff_id=staff_id,
                notes=notes,
            )
        )
        for r in records:
            logger.info("check-in record=%s child=%s staff=%s", r.record_id, r.child_id, staff_id)
        return records

    def _close_stale(self, records: Sequence[AttendanceRecord], *, staff_id: str) -> None:
        """Close sessions left open past their checkout window at the end of their own day."""
        by_day: dict = {}
        for r in records:
            by_day.setdefault(r.date, []).append(r.record_id)
        for day, record_ids in sorted(by_day.items()):
            end_of_day = day_bounds(day)[1].replace(microsecond=0)
            self._attendance.close_records(record_ids=record_ids, check_out_time=end_of_day, staff_id=staff_id)
            logger.warning("auto-closed %d stale session(s) from %s", len(record_ids), day.isoformat())

    def _select_open(self, selector: CloseSelector, *, now: datetime) -> list[AttendanceRecord]:
        # An explicit record or child target reaches any open session; the
        # window only narrows what a family-wide close picks up.
        if selector.scope == CloseScope.RECORD:
            record = self._attendance.get_by_id(selector.target_id)
            return [record] if record and record.is_open else []
        if selector.scope == CloseScope.CHILD:
            record = self._attendance.get_open_for_child(selector.target_id)
            return [record] if record else []
        return list(self.list_open_for(selector.target_id, now=now))

    def check_out(
        self,
        selector: CloseSelector,
        *,
        staff_id: str,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord | list[AttendanceRecord]:
        """Close the session(s) matched by ``selector``.

        Record and child selectors return one record; a parent selector returns
        the list of every session closed for that family.
        """

        now = now or now_local()
        staff_id = require_non_empty(staff_id, "Staff")

        records = self._select_open(selector, now=now)
        if not records:
            raise NotFoundError("No open session to check out")
        if any(now < r.check_in_time for r in records):
            raise ValidationError("Check-out time is before check-in time")

        try:
            closed = list(
                self._attendance.close_records(
                    record_ids=[r.record_id for r in records],
                    check_out_time=now,
                    staff_id=staff_id,
                    notes=notes,
                )
            )
        except ConflictError as e:
            if selector.scope == CloseScope.PARENT:
                raise
            # Another device closed it between our read and the update.
            raise NotFoundError("No open session to check out") from e
        for r in closed:
            logger.info("check-out record=%s child=%s staff=%s", r.record_id, r.child_id, staff_id)

        if selector.scope == CloseScope.PARENT:
            return closed
        return closed[0]

    def check_out_many(
        self,
        child_ids: Sequence[str],
        *,
        staff_id: str,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> list[AttendanceRecord]:
        now = now or now_local()
        staff_id = require_non_empty(staff_id, "Staff")
        if not child_ids:
            raise ValidationError("Select at least one child")

        records: list[AttendanceRecord] = []
        for child_id in dict.fromkeys(child_ids):
            found = self._select_open(CloseSelector.child(child_id), now=now)
            if not found:
                raise NotFoundError("No open session to check out")
            records.extend(found)

        return list(
            self._attendance.close_records(
                record_ids=[r.record_id for r in records],
                check_out_time=now,
                staff_id=staff_id,
                notes=notes,
            )
        )

    def list_open_for(self, parent_id: str, *, now: datetime | None = None) -> list[AttendanceRecord]:
        now = now or now_local()
        parent = self._families.get_parent(parent_id)
        if not parent:
            raise NotFoundError("Parent not found")

        open_records = self._attendance.get_open_for_children(parent.child_ids)
        return [r for r in open_records if self._policy.allows(r, now=now)]

    def get_record(self, record_id: str) -> AttendanceRecord:
        record = self._attendance.get_by_id(record_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def list_records(self, query: AttendanceQuery | None = None) -> list[AttendanceRecord]:
        query = query or AttendanceQuery(limit=DEFAULT_RECORD_LIMIT)
        return list(self._attendance.find(query))
