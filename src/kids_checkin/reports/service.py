from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..attendance.model import AttendanceQuery, AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import day_bounds, format_iso, now_local
from ..families.repository import FamilyRepository
from .calculator.base import DurationCalculator
from .calculator.standard_calculator import StandardDurationCalculator

EXPORT_FIELDS = [
    "date",
    "record_id",
    "child_id",
    "child_name",
    "parent_id",
    "parent_name",
    "check_in",
    "check_out",
    "duration_hours",
    "status",
    "check_in_staff_id",
    "check_out_staff_id",
    "notes",
]


@dataclass(frozen=True)
class ReportFilter:
    """Inclusive date range on check-in time plus exact entity matches."""

    start: Optional[date] = None
    end: Optional[date] = None
    child_id: Optional[str] = None
    parent_id: Optional[str] = None

    def to_query(self) -> AttendanceQuery:
        return AttendanceQuery(
            start=day_bounds(self.start)[0] if self.start else None,
            end=day_bounds(self.end)[1] if self.end else None,
            child_id=self.child_id,
            parent_id=self.parent_id,
        )


@dataclass(frozen=True)
class ReportSummary:
    total_sessions: int
    completed_sessions: int
    open_sessions: int
    average_duration_hours: float

    def to_dict(self) -> dict:
        return {
            "totalSessions": self.total_sessions,
            "completedSessions": self.completed_sessions,
            "openSessions": self.open_sessions,
            "avgDuration": round(self.average_duration_hours, 1),
        }


@dataclass(frozen=True)
class TodayOverview:
    checked_in: int
    completed: int
    total_children: int
    attendance_rate: int

    def to_dict(self) -> dict:
        return {
            "checkedIn": self.checked_in,
            "completed": self.completed,
            "totalChildren": self.total_children,
            "attendanceRate": self.attendance_rate,
        }


@dataclass(frozen=True)
class ReportRow:
    record: AttendanceRecord
    child_name: str
    parent_name: str
    duration_hours: Optional[float]

    def to_dict(self) -> dict:
        data = self.record.to_dict()
        data.update(
            {
                "childName": self.child_name,
                "parentName": self.parent_name,
                "durationHours": None if self.duration_hours is None else round(self.duration_hours, 2),
            }
        )
        return data

    def to_export_row(self) -> dict:
        r = self.record
        return {
            "date": r.date.isoformat(),
            "record_id": r.record_id,
            "child_id": r.child_id,
            "child_name": self.child_name,
            "parent_id": r.parent_id,
            "parent_name": self.parent_name,
            "check_in": format_iso(r.check_in_time),
            "check_out": format_iso(r.check_out_time) or "",
            "duration_hours": "" if self.duration_hours is None else f"{self.duration_hours:.2f}",
            "status": r.state.value,
            "check_in_staff_id": r.check_in_staff_id,
            "check_out_staff_id": r.check_out_staff_id or "",
            "notes": r.notes or "",
        }


class ReportService:
    """Read-only projections over the attendance log. Never mutates records."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        families: FamilyRepository,
        *,
        calculator: Optional[DurationCalculator] = None,
    ):
        self._attendance = attendance
        self._families = families
        self._calculator = calculator or StandardDurationCalculator()

    def records(self, flt: ReportFilter) -> list[AttendanceRecord]:
        return list(self._attendance.find(flt.to_query()))

    def summarize(self, records: Iterable[AttendanceRecord]) -> ReportSummary:
        total = 0
        durations: list[float] = []
        for r in records:
            total += 1
            hours = self._calculator.session_hours(r)
            # Open sessions count toward the total but never toward the mean.
            if hours is not None:
                durations.append(hours)

        avg = sum(durations) / len(durations) if durations else 0.0
        return ReportSummary(
            total_sessions=total,
            completed_sessions=len(durations),
            open_sessions=total - len(durations),
            average_duration_hours=avg,
        )

    def enrich(self, records: Sequence[AttendanceRecord]) -> list[ReportRow]:
        children = {c.child_id: c for c in self._families.list_children()}
        parents = {p.parent_id: p for p in self._families.list_parents()}

        rows: list[ReportRow] = []
        for r in records:
            child = children.get(r.child_id)
            parent = parents.get(r.parent_id)
            if not child or not parent:
                continue
            rows.append(
                ReportRow(
                    record=r,
                    child_name=child.display_name,
                    parent_name=parent.display_name,
                    duration_hours=self._calculator.session_hours(r),
                )
            )
        return rows

    def build(self, flt: ReportFilter) -> tuple[list[ReportRow], ReportSummary]:
        records = self.records(flt)
        return self.enrich(records), self.summarize(records)

    def session_report(self, day: date) -> list[ReportRow]:
        return self.enrich(self.records(ReportFilter(start=day, end=day)))

    def today_overview(self, *, now: datetime | None = None) -> TodayOverview:
        now = now or now_local()
        todays = self.records(ReportFilter(start=now.date(), end=now.date()))
        total_children = len(self._families.list_children())
        checked_in = sum(1 for r in todays if r.is_open)
        rate = round(len(todays) / total_children * 100) if total_children else 0
        return TodayOverview(
            checked_in=checked_in,
            completed=len(todays) - checked_in,
            total_children=total_children,
            attendance_rate=rate,
        )

    @staticmethod
    def export_csv(rows: Iterable[ReportRow]) -> str:
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=EXPORT_FIELDS, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writeheader()
        for row in rows:
            writer.writerow(row.to_export_row())
        return out.getvalue()
