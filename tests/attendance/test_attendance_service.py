from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from timekeeping.attendance.model import AttendanceRecord
from timekeeping.core.enums import AttendanceStatus, ErrorCode
from timekeeping.core.exceptions import (
    ConcurrentUpdateError,
    InternalError,
    NotFoundError,
    OptimisticLockError,
    ValidationError,
)

DAY = date(2025, 4, 1)


def at(hour: int, minute: int = 0, second: int = 0, day: date = DAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, second)


def test_clock_in_records_lateness_and_hides_clock_out_fields(attendance_service, attendance_repo):
    result = attendance_service.clock_in(1, now=at(9, 10, 42))

    assert result.success
    view = result.data
    assert view.clock_in_time == at(9, 10)
    assert view.late_minutes == 10
    assert view.status is AttendanceStatus.LATE
    assert view.clock_out_time is None
    assert view.early_leave_minutes is None
    assert view.overtime_minutes is None
    assert view.night_shift_minutes is None

    stored = attendance_repo.get_for_employee_and_date(1, DAY)
    assert stored.break_minutes is None


def test_clock_in_on_time_keeps_normal_status(attendance_service):
    view = attendance_service.clock_in(1, now=at(8, 55)).data

    assert view.late_minutes == 0
    assert view.status is AttendanceStatus.NORMAL


def test_clock_in_twice_returns_existing_record(attendance_service, attendance_repo):
    first = attendance_service.clock_in(1, now=at(8, 50)).data
    second = attendance_service.clock_in(1, now=at(10, 0)).data

    assert second.clock_in_time == first.clock_in_time == at(8, 50)
    assert attendance_repo.save_calls == 1


def test_clock_in_unknown_employee(attendance_service):
    with pytest.raises(NotFoundError) as exc:
        attendance_service.clock_in(99, now=at(9))
    assert exc.value.code is ErrorCode.EMPLOYEE_NOT_FOUND


def test_clock_in_retired_employee(attendance_service):
    with pytest.raises(ValidationError) as exc:
        attendance_service.clock_in(3, now=at(9))
    assert exc.value.code is ErrorCode.RETIRED_EMPLOYEE


def test_clock_in_lost_race_returns_stored_record(attendance_service, attendance_repo, monkeypatch):
    def racing_save(record):
        attendance_repo.add_raw(replace(record, clock_in_time=at(8, 55), late_minutes=0, created_at=at(8, 55)))
        raise OptimisticLockError("duplicate attendance record")

    monkeypatch.setattr(attendance_repo, "save", racing_save)

    view = attendance_service.clock_in(1, now=at(9, 5)).data

    assert view.clock_in_time == at(8, 55)


def test_clock_out_without_clock_in_is_a_no_op(attendance_service, attendance_repo):
    result = attendance_service.clock_out(1, now=at(18))

    assert result.success
    assert result.data is None
    assert attendance_repo.save_calls == 0


def test_clock_out_computes_metrics(attendance_service):
    attendance_service.clock_in(1, now=at(9, 10))
    view = attendance_service.clock_out(1, now=at(18, 0, 15)).data

    assert view.clock_out_time == at(18)
    assert view.break_minutes == 60
    assert view.working_minutes == 470
    assert view.late_minutes == 10
    assert view.early_leave_minutes == 0
    assert view.overtime_minutes == 0
    assert view.night_shift_minutes == 0
    assert view.status is AttendanceStatus.LATE


def test_clock_out_twice_is_idempotent(attendance_service, attendance_repo):
    attendance_service.clock_in(1, now=at(9))
    first = attendance_service.clock_out(1, now=at(19)).data
    stored = attendance_repo.get_for_employee_and_date(1, DAY)

    second = attendance_service.clock_out(1, now=at(21)).data

    assert second == first
    assert attendance_repo.get_for_employee_and_date(1, DAY) == stored


def test_clock_in_after_clock_out_reports_working_minutes(attendance_service):
    attendance_service.clock_in(1, now=at(9))
    attendance_service.clock_out(1, now=at(18))

    view = attendance_service.clock_in(1, now=at(19)).data

    assert view.clock_out_time == at(18)
    assert view.working_minutes == 480


def test_clock_out_retries_version_conflicts(attendance_service, attendance_repo, sleeps):
    attendance_service.clock_in(1, now=at(9))
    attendance_repo.conflicts = 2

    result = attendance_service.clock_out(1, now=at(18))

    assert result.success
    assert result.data.clock_out_time == at(18)
    assert sleeps == [0.1, 0.2]


def test_clock_out_gives_up_after_three_conflicts(attendance_service, attendance_repo, sleeps):
    attendance_service.clock_in(1, now=at(9))
    attendance_repo.conflicts = 3

    with pytest.raises(ConcurrentUpdateError) as exc:
        attendance_service.clock_out(1, now=at(18))

    assert exc.value.code is ErrorCode.CONCURRENT_UPDATE_ERROR
    assert sleeps == [0.1, 0.2]
    assert attendance_repo.get_for_employee_and_date(1, DAY).clock_out_time is None


def test_clock_out_unexpected_failures_become_internal_error(attendance_service, attendance_repo):
    attendance_service.clock_in(1, now=at(9))
    attendance_repo.errors = [RuntimeError("db down")] * 3

    with pytest.raises(InternalError) as exc:
        attendance_service.clock_out(1, now=at(18))

    assert exc.value.code is ErrorCode.INTERNAL_ERROR


def test_clock_out_recovers_from_transient_failure(attendance_service, attendance_repo, sleeps):
    attendance_service.clock_in(1, now=at(9))
    attendance_repo.errors = [RuntimeError("connection reset")]

    assert attendance_service.clock_out(1, now=at(18)).data.clock_out_time == at(18)
    assert sleeps == [0.1]


def test_clock_out_domain_errors_are_not_retried(attendance_service, sleeps):
    with pytest.raises(ValidationError):
        attendance_service.clock_out(3, now=at(18))
    assert sleeps == []


def _seed(attendance_repo, created: datetime) -> AttendanceRecord:
    return attendance_repo.add_raw(
        AttendanceRecord(
            attendance_id=None,
            employee_id=1,
            attendance_date=DAY,
            clock_in_time=created,
            created_at=created,
        )
    )


def test_clock_out_repairs_duplicates_and_tolerates_delete_failures(attendance_service, attendance_repo):
    oldest = _seed(attendance_repo, at(8, 0))
    middle = _seed(attendance_repo, at(8, 30))
    newest = _seed(attendance_repo, at(8, 45))
    attendance_repo.failing_deletes.add(oldest.attendance_id)

    view = attendance_service.clock_out(1, now=at(18)).data

    assert view.attendance_id == newest.attendance_id
    assert view.clock_in_time == at(8, 45)
    assert middle.attendance_id not in attendance_repo.records
    assert oldest.attendance_id in attendance_repo.records


def test_repair_duplicates_keeps_most_recent(attendance_service, attendance_repo):
    _seed(attendance_repo, at(8, 0))
    newest = _seed(attendance_repo, at(9, 0))

    assert attendance_service.repair_duplicates(1, DAY) == 1
    assert list(attendance_repo.records) == [newest.attendance_id]
    assert attendance_service.repair_duplicates(1, DAY) == 0


def test_today_without_record(attendance_service):
    result = attendance_service.today(1, now=at(12))

    assert result.success
    assert result.data is None


def test_today_runs_repair(attendance_service, attendance_repo):
    _seed(attendance_repo, at(8, 0))
    newest = _seed(attendance_repo, at(8, 5))

    view = attendance_service.today(1, now=at(12)).data

    assert view.attendance_id == newest.attendance_id
    assert view.overtime_minutes is None
    assert len(attendance_repo.records) == 1


def test_clock_in_removes_duplicates_before_reading(attendance_service, attendance_repo):
    _seed(attendance_repo, at(8, 0))
    newest = _seed(attendance_repo, at(8, 20))

    view = attendance_service.clock_in(1, now=at(9, 30)).data

    assert view.attendance_id == newest.attendance_id
    assert view.clock_in_time == at(8, 20)
    assert list(attendance_repo.records) == [newest.attendance_id]
    assert attendance_repo.save_calls == 0


def test_history_empty_window_is_successful(attendance_service):
    result = attendance_service.history(1, date(2025, 1, 1), date(2025, 1, 31))

    assert result.success
    assert result.data == []


def test_history_newest_first_and_month_filter(attendance_service):
    for day in (date(2025, 4, 1), date(2025, 4, 3), date(2025, 4, 2), date(2025, 5, 1)):
        attendance_service.clock_in(1, now=at(9, day=day))
        attendance_service.clock_out(1, now=at(18, day=day))

    views = attendance_service.history(1, year=2025, month=4).data

    assert [v.attendance_date for v in views] == [date(2025, 4, 3), date(2025, 4, 2), date(2025, 4, 1)]
    assert all(v.working_minutes == 480 for v in views)


def test_history_default_window(attendance_service):
    attendance_service.clock_in(1, now=at(9, day=date(2025, 3, 1)))
    attendance_service.clock_in(1, now=at(9, day=date(2025, 4, 20)))

    views = attendance_service.history(1, today=date(2025, 4, 25)).data

    assert [v.attendance_date for v in views] == [date(2025, 4, 20)]


def test_history_rejects_inverted_range(attendance_service):
    with pytest.raises(ValidationError) as exc:
        attendance_service.history(1, date(2025, 4, 10), date(2025, 4, 1))
    assert exc.value.code is ErrorCode.INVALID_DATE_RANGE


def test_history_requires_active_employee(attendance_service):
    with pytest.raises(ValidationError) as exc:
        attendance_service.history(3, date(2025, 4, 1), date(2025, 4, 2))
    assert exc.value.code is ErrorCode.RETIRED_EMPLOYEE


def test_view_keeps_stored_night_minutes_when_recomputation_finds_none(attendance_service, attendance_repo):
    stored = attendance_repo.add_raw(
        AttendanceRecord(
            attendance_id=None,
            employee_id=1,
            attendance_date=DAY,
            clock_in_time=at(9),
            clock_out_time=at(18),
            night_shift_minutes=30,
            created_at=at(9),
        )
    )

    assert attendance_service.to_view(stored).night_shift_minutes == 30


def test_monthly_summary(attendance_service):
    attendance_service.clock_in(1, now=at(9, 15, day=date(2025, 4, 1)))
    attendance_service.clock_out(1, now=at(18, day=date(2025, 4, 1)))
    attendance_service.clock_in(1, now=at(9, day=date(2025, 4, 2)))
    attendance_service.clock_out(1, now=at(20, day=date(2025, 4, 2)))
    attendance_service.clock_in(1, now=at(9, day=date(2025, 4, 3)))

    summary = attendance_service.monthly_summary(1, 2025, 4).data

    assert summary.days_worked == 2
    assert summary.working_minutes == 465 + 600
    assert summary.overtime_minutes == 120
    assert summary.late_minutes == 15
    assert summary.early_leave_minutes == 0


def test_monthly_summary_rejects_bad_month(attendance_service):
    with pytest.raises(ValidationError):
        attendance_service.monthly_summary(1, 2025, 13)
