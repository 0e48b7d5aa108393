import csv
import io
from datetime import date, datetime

import pytest

from kids_checkin.attendance.model import AttendanceRecord
from kids_checkin.reports.service import EXPORT_FIELDS, ReportFilter, ReportService


def _session(record_id, child_id, parent_id, start, end=None, notes=None):
    return AttendanceRecord(
        record_id=record_id,
        child_id=child_id,
        parent_id=parent_id,
        check_in_time=start,
        check_in_staff_id="s-1",
        date=start.date(),
        check_out_time=end,
        check_out_staff_id="s-1" if end else None,
        notes=notes,
    )


@pytest.fixture
def reports(attendance, families):
    attendance.add(_session("r1", "c1", "P1", datetime(2026, 3, 1, 8), datetime(2026, 3, 1, 9)))
    attendance.add(_session("r2", "c2", "P1", datetime(2026, 3, 1, 8), datetime(2026, 3, 1, 11)))
    attendance.add(_session("r3", "emma-1", "P2", datetime(2026, 3, 1, 10)))
    return ReportService(attendance, families)


def test_average_ignores_open_sessions(reports):
    summary = reports.summarize(reports.records(ReportFilter()))

    assert summary.total_sessions == 3
    assert summary.completed_sessions == 2
    assert summary.open_sessions == 1
    assert summary.average_duration_hours == pytest.approx(2.0)
    assert summary.to_dict()["avgDuration"] == 2.0


def test_summary_of_nothing(reports):
    summary = reports.summarize([])

    assert summary.total_sessions == 0
    assert summary.average_duration_hours == 0.0


def test_date_range_is_inclusive(reports, attendance):
    attendance.add(_session("late", "c1", "P1", datetime(2026, 3, 2, 23, 59, 59), datetime(2026, 3, 3, 0, 30)))
    attendance.add(_session("after", "c1", "P1", datetime(2026, 3, 3, 0, 0)))

    found = reports.records(ReportFilter(start=date(2026, 3, 2), end=date(2026, 3, 2)))

    assert [r.record_id for r in found] == ["late"]


def test_filter_by_child_and_parent(reports):
    assert {r.record_id for r in reports.records(ReportFilter(child_id="c2"))} == {"r2"}
    assert {r.record_id for r in reports.records(ReportFilter(parent_id="P1"))} == {"r1", "r2"}


def test_enrich_drops_rows_for_deleted_families(reports, families):
    families.delete_parent("P2")

    rows = reports.enrich(reports.records(ReportFilter()))

    assert {row.record.record_id for row in rows} == {"r1", "r2"}
    assert {row.child_name for row in rows} == {"Emma Silva", "Leo Silva"}


def test_export_quotes_every_field(reports, attendance):
    attendance.add(
        _session("r4", "c1", "P1", datetime(2026, 3, 2, 8), datetime(2026, 3, 2, 9), notes='said "bye", left early')
    )
    rows, _ = reports.build(ReportFilter(start=date(2026, 3, 2)))

    text = reports.export_csv(rows)
    lines = text.splitlines()

    assert lines[0] == ",".join(f'"{f}"' for f in EXPORT_FIELDS)
    assert lines[1].startswith('"') and lines[1].endswith('"')
    assert lines[1].count('","') == len(EXPORT_FIELDS) - 1
    parsed = list(csv.DictReader(io.StringIO(text)))
    assert parsed[0]["notes"] == 'said "bye", left early'
    assert parsed[0]["duration_hours"] == "1.00"
    assert parsed[0]["status"] == "CLOSED"


def test_export_leaves_open_session_times_blank(reports):
    rows, _ = reports.build(ReportFilter(child_id="emma-1"))

    parsed = list(csv.DictReader(io.StringIO(reports.export_csv(rows))))

    assert parsed[0]["check_out"] == ""
    assert parsed[0]["duration_hours"] == ""


def test_today_overview(reports, families):
    overview = reports.today_overview(now=datetime(2026, 3, 1, 12))

    assert overview.checked_in == 1
    assert overview.completed == 2
    assert overview.total_children == len(families.children)
    assert overview.attendance_rate == 100


def test_session_report_for_one_day(reports):
    rows = reports.session_report(date(2026, 3, 1))

    assert len(rows) == 3
    assert rows[0].to_dict()["parentName"] in {"Ana Silva", "Bo Berg"}


def test_reports_do_not_mutate_records(reports, attendance):
    before = dict(attendance.records)

    reports.build(ReportFilter())
    reports.export_csv(reports.session_report(date(2026, 3, 1)))

    assert attendance.records == before


def test_one_closed_one_open_averages_the_closed_one(attendance, families):
    attendance.add(_session("a", "c1", "P1", datetime(2026, 4, 1, 8), datetime(2026, 4, 1, 10)))
    attendance.add(_session("b", "c2", "P1", datetime(2026, 4, 1, 9)))
    svc = ReportService(attendance, families)

    summary = svc.summarize(svc.records(ReportFilter(start=date(2026, 4, 1))))

    assert summary.average_duration_hours == 2.0
