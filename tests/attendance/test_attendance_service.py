from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from kids_checkin.attendance.factory import CheckoutPolicyFactory
from kids_checkin.attendance.model import AttendanceRecord, CloseSelector
from kids_checkin.attendance.service import AttendanceService
from kids_checkin.core.enums import SessionState
from kids_checkin.core.exceptions import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def svc(attendance, families):
    return AttendanceService(attendance, families)


def test_check_in_opens_session(svc, fixed_now):
    rec = svc.check_in("emma-1", staff_id="s-1", notes="peanut allergy", now=fixed_now)

    assert rec.check_out_time is None
    assert rec.state == SessionState.OPEN
    assert rec.check_in_time == fixed_now
    assert rec.date == fixed_now.date()
    assert rec.check_in_staff_id == "s-1"
    assert rec.parent_id == "P2"
    assert rec.notes == "peanut allergy"


def test_second_check_in_for_same_child_conflicts(svc, attendance, fixed_now):
    svc.check_in("emma-1", staff_id="s-1", now=fixed_now)

    with pytest.raises(ConflictError):
        svc.check_in("emma-1", staff_id="s-2", now=fixed_now + timedelta(minutes=1))

    assert attendance.open_count("emma-1") == 1


def test_check_in_unknown_child(svc, fixed_now):
    with pytest.raises(NotFoundError):
        svc.check_in("ghost", staff_id="s-1", now=fixed_now)


def test_check_in_with_unlinked_parent_is_rejected(svc, fixed_now):
    with pytest.raises(ValidationError):
        svc.check_in("emma-1", staff_id="s-1", parent_id="P1", now=fixed_now)


def test_bulk_check_in_is_all_or_nothing(svc, attendance, fixed_now):
    svc.check_in("c2", staff_id="s-1", now=fixed_now)

    with pytest.raises(ConflictError):
        svc.check_in_many(["c1", "c2"], staff_id="s-1", now=fixed_now)

    assert attendance.open_count("c1") == 0


def test_check_out_by_record(svc, fixed_now):
    rec = svc.check_in("c1", staff_id="s-1", notes="in", now=fixed_now)
    later = fixed_now + timedelta(hours=2)

    closed = svc.check_out(CloseSelector.record(rec.record_id), staff_id="s-2", now=later)

    assert closed.check_out_time == later
    assert closed.check_out_staff_id == "s-2"
    assert closed.check_in_time == fixed_now
    assert closed.notes == "in"
    assert closed.state == SessionState.CLOSED


def test_check_out_notes_replace_check_in_notes(svc, fixed_now):
    svc.check_in("c1", staff_id="s-1", notes="in", now=fixed_now)

    closed = svc.check_out(CloseSelector.child("c1"), staff_id="s-1", notes="picked up by grandma", now=fixed_now)

    assert closed.notes == "picked up by grandma"


def test_double_close_is_not_found(svc, fixed_now):
    rec = svc.check_in("c1", staff_id="s-1", now=fixed_now)
    svc.check_out(CloseSelector.record(rec.record_id), staff_id="s-1", now=fixed_now + timedelta(hours=1))

    with pytest.raises(NotFoundError):
        svc.check_out(CloseSelector.record(rec.record_id), staff_id="s-1", now=fixed_now + timedelta(hours=2))


def test_close_child_without_open_session(svc, fixed_now):
    with pytest.raises(NotFoundError):
        svc.check_out(CloseSelector.child("c1"), staff_id="s-1", now=fixed_now)


def test_close_all_for_parent(svc, fixed_now):
    svc.check_in("c1", staff_id="s-1", now=fixed_now)
    svc.check_in("c2", staff_id="s-1", now=fixed_now)
    svc.check_in("emma-1", staff_id="s-1", now=fixed_now)

    closed = svc.check_out(CloseSelector.parent("P1"), staff_id="s-1", now=fixed_now + timedelta(hours=1))

    assert sorted(r.child_id for r in closed) == ["c1", "c2"]
    assert all(r.check_out_time is not None for r in closed)
    assert svc.list_open_for("P1", now=fixed_now) == []
    assert [r.child_id for r in svc.list_open_for("P2", now=fixed_now)] == ["emma-1"]


def test_close_all_for_parent_rolls_back_on_partial_failure(attendance, families, fixed_now):
    svc = AttendanceService(attendance, families)
    first = svc.check_in("c1", staff_id="s-1", now=fixed_now)
    second = svc.check_in("c2", staff_id="s-1", now=fixed_now)

    class StaleReads:
        """Still reports c2 as open after another device closed it."""

        def __getattr__(self, name):
            return getattr(attendance, name)

        def get_open_for_children(self, child_ids):
            return [first, second]

    attendance.close_records(record_ids=[second.record_id], check_out_time=fixed_now, staff_id="s-2")
    stale = AttendanceService(StaleReads(), families)

    with pytest.raises(ConflictError):
        stale.check_out(CloseSelector.parent("P1"), staff_id="s-1", now=fixed_now + timedelta(hours=1))

    assert attendance.get_by_id(first.record_id).is_open


def test_close_parent_with_nothing_open(svc, fixed_now):
    with pytest.raises(NotFoundError):
        svc.check_out(CloseSelector.parent("P1"), staff_id="s-1", now=fixed_now)


def _overnight_session(attendance, fixed_now, record_id="old", child_id="c1"):
    yesterday = fixed_now - timedelta(days=1)
    return attendance.add(
        AttendanceRecord(
            record_id=record_id,
            child_id=child_id,
            parent_id="P1",
            check_in_time=yesterday,
            check_in_staff_id="s-1",
            date=yesterday.date(),
        )
    )


def test_same_day_policy_hides_yesterdays_sessions_from_family_view(attendance, families, fixed_now):
    _overnight_session(attendance, fixed_now)
    same_day = AttendanceService(attendance, families, checkout_policy=CheckoutPolicyFactory(True).create())
    any_day = AttendanceService(attendance, families, checkout_policy=CheckoutPolicyFactory(False).create())

    assert same_day.list_open_for("P1", now=fixed_now) == []
    with pytest.raises(NotFoundError):
        same_day.check_out(CloseSelector.parent("P1"), staff_id="s-1", now=fixed_now)

    assert [r.record_id for r in any_day.list_open_for("P1", now=fixed_now)] == ["old"]


def test_overnight_session_can_still_be_closed_by_record_or_child(svc, attendance, fixed_now):
    _overnight_session(attendance, fixed_now, record_id="old", child_id="c1")
    _overnight_session(attendance, fixed_now, record_id="old-2", child_id="c2")

    by_record = svc.check_out(CloseSelector.record("old"), staff_id="s-1", now=fixed_now)
    by_child = svc.check_out(CloseSelector.child("c2"), staff_id="s-1", now=fixed_now)

    assert by_record.check_out_time == fixed_now
    assert by_child.record_id == "old-2"
    assert attendance.open_count("c1") == attendance.open_count("c2") == 0


def test_check_in_closes_overnight_session_first(svc, attendance, fixed_now):
    old = _overnight_session(attendance, fixed_now)

    fresh = svc.check_in("c1", staff_id="s-2", now=fixed_now)

    stale = attendance.get_by_id(old.record_id)
    assert stale.check_out_time == datetime.combine(old.date, datetime.max.time()).replace(microsecond=0)
    assert stale.check_out_staff_id == "s-2"
    assert fresh.is_open
    assert attendance.open_count("c1") == 1
    assert [r.record_id for r in svc.list_open_for("P1", now=fixed_now)] == [fresh.record_id]


def test_any_day_policy_keeps_overnight_session_open(attendance, families, fixed_now):
    _overnight_session(attendance, fixed_now)
    any_day = AttendanceService(attendance, families, checkout_policy=CheckoutPolicyFactory(False).create())

    with pytest.raises(ConflictError):
        any_day.check_in("c1", staff_id="s-1", now=fixed_now)

    assert any_day.check_out(CloseSelector.record("old"), staff_id="s-1", now=fixed_now).check_out_time == fixed_now


def test_close_lost_to_another_device_is_not_found(attendance, families, fixed_now):
    class ClosedMeanwhile:
        """Another staff member closes the record right before our update."""

        def __getattr__(self, name):
            return getattr(attendance, name)

        def close_records(self, **kwargs):
            attendance.close_records(
                record_ids=kwargs["record_ids"], check_out_time=kwargs["check_out_time"], staff_id="s-2"
            )
            return attendance.close_records(**kwargs)

    record = AttendanceService(attendance, families).check_in("c1", staff_id="s-1", now=fixed_now)
    racing = AttendanceService(ClosedMeanwhile(), families)
    later = fixed_now + timedelta(hours=1)

    with pytest.raises(NotFoundError):
        racing.check_out(CloseSelector.record(record.record_id), staff_id="s-1", now=later)
    assert attendance.get_by_id(record.record_id).check_out_staff_id == "s-2"


def test_concurrent_check_ins_yield_one_session(attendance, families, fixed_now):
    class BlindRead:
        """Read side misses a check-in that another device just committed."""

        def __getattr__(self, name):
            return getattr(attendance, name)

        def get_open_for_children(self, child_ids):
            return []

    first = AttendanceService(attendance, families)
    second = AttendanceService(BlindRead(), families)

    winner = first.check_in("c1", staff_id="s-1", now=fixed_now)
    with pytest.raises(ConflictError):
        second.check_in("c1", staff_id="s-2", now=fixed_now)

    assert attendance.open_count("c1") == 1
    assert attendance.get_open_for_child("c1").record_id == winner.record_id


def test_check_out_before_check_in_is_rejected(svc, fixed_now):
    rec = svc.check_in("c1", staff_id="s-1", now=fixed_now)

    with pytest.raises(ValidationError):
        svc.check_out(CloseSelector.record(rec.record_id), staff_id="s-1", now=fixed_now - timedelta(minutes=5))


def test_at_most_one_open_session_per_child_across_cycles(svc, attendance, fixed_now):
    t = fixed_now
    for _ in range(3):
        svc.check_in("c1", staff_id="s-1", now=t)
        assert attendance.open_count("c1") == 1
        t += timedelta(hours=1)
        svc.check_out(CloseSelector.child("c1"), staff_id="s-1", now=t)
        assert attendance.open_count("c1") == 0

    assert len(svc.list_records()) == 3


def test_bulk_check_out(svc, fixed_now):
    svc.check_in_many(["c1", "c2"], staff_id="s-1", now=fixed_now)

    closed = svc.check_out_many(["c1", "c2"], staff_id="s-1", now=fixed_now + timedelta(hours=1))

    assert len(closed) == 2
    with pytest.raises(NotFoundError):
        svc.check_out_many(["c1"], staff_id="s-1", now=fixed_now + timedelta(hours=2))


def test_list_open_for_unknown_parent(svc):
    with pytest.raises(NotFoundError):
        svc.list_open_for("nobody", now=datetime(2026, 3, 1))


def test_get_record(svc, fixed_now):
    rec = svc.check_in("c1", staff_id="s-1", now=fixed_now)

    assert svc.get_record(rec.record_id).date == date(2026, 3, 1)
    with pytest.raises(NotFoundError):
        svc.get_record("missing")
