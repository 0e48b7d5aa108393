from __future__ import annotations

import logging
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..core.exceptions import ConflictError, NotFoundError
from ..families.model import FamilyView
from .api import ApiClient

logger = logging.getLogger(__name__)


class CheckinDesk:
    """One staff device's check-in/check-out flow for the family just scanned.

    Keeps a local mirror of the family's open sessions so obviously conflicting
    actions are refused before they reach the network. The server remains the
    authority and its answer always replaces the mirror.
    """

    def __init__(self, api: ApiClient):
        self._api = api
        self.family: Optional[FamilyView] = None
        self._open_by_child: dict[str, AttendanceRecord] = {}

    @property
    def open_sessions(self) -> list[AttendanceRecord]:
        return list(self._open_by_child.values())

    def scan(self, raw: str) -> FamilyView:
        family = self._api.scan(raw)
        self.family = family
        self.refresh()
        return family

    def cancel(self) -> None:
        """Abandon the current scan; nothing has been sent that needs undoing."""
        self.family = None
        self._open_by_child.clear()

    def refresh(self) -> list[AttendanceRecord]:
        if not self.family:
            return []
        records = self._api.list_open_for(self.family.parent.parent_id)
        self._open_by_child = {r.child_id: r for r in records}
        return records

    def checkable_in(self) -> list:
        if not self.family:
            return []
        return [c for c in self.family.children if c.child_id not in self._open_by_child]

    def check_in(self, child_id: str, notes: Optional[str] = None) -> AttendanceRecord:
        if child_id in self._open_by_child:
            raise ConflictError("Child is already checked in")
        parent_id = self.family.parent.parent_id if self.family else None
        try:
            record = self._api.check_in(child_id, notes, parent_id=parent_id)
        except ConflictError:
            # Another device got there first; resync the mirror.
            self.refresh()
            raise
        self._open_by_child[record.child_id] = record
        return record

    def check_out(self, record_id: str, notes: Optional[str] = None) -> AttendanceRecord:
        if self.family and record_id not in {r.record_id for r in self._open_by_child.values()}:
            raise NotFoundError("No open session to check out")
        try:
            record = self._api.check_out(record_id, notes)
        except NotFoundError:
            self.refresh()
            raise
        self._open_by_child.pop(record.child_id, None)
        return record

    def check_out_all(self, notes: Optional[str] = None) -> list[AttendanceRecord]:
        if not self.family:
            raise NotFoundError("Scan a family first")
        if not self._open_by_child:
            raise NotFoundError("No open session to check out")
        try:
            closed = self._api.check_out_family(self.family.parent.parent_id, notes)
        except (ConflictError, NotFoundError):
            self.refresh()
            raise
        for r in closed:
            self._open_by_child.pop(r.child_id, None)
        logger.info("closed %d session(s) for family %s", len(closed), self.family.parent.parent_id)
        return closed
