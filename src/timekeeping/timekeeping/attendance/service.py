from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import month_range, now_local, truncate_to_minute
from ..common.results import ServiceResult
from ..common.retry import run_with_retry
from ..core.constants import (
    DEFAULT_CLOCK_OUT_BACKOFF_MS,
    DEFAULT_CLOCK_OUT_MAX_ATTEMPTS,
    DEFAULT_HISTORY_DAYS,
    DEFAULT_TIMEZONE,
)
from ..core.enums import AttendanceStatus, ErrorCode
from ..core.exceptions import OptimisticLockError, ValidationError
from ..employees.repository import EmployeeRepository
from ..employees.service import require_active_employee
from .model import AttendanceRecord, AttendanceView, MonthlySummary
from .repository import AttendanceRepository
from .time_accounting import TimeAccountingEngine

logger = logging.getLogger(__name__)


class AttendanceService:
    """Clock-in/clock-out coordinator: one record per employee and day.

    Per day the record moves NONE -> CLOCKED_IN -> CLOCKED_OUT; repeated clock
    calls return the current state instead of failing.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        *,
        engine: Optional[TimeAccountingEngine] = None,
        timezone: str = DEFAULT_TIMEZONE,
        max_attempts: int = DEFAULT_CLOCK_OUT_MAX_ATTEMPTS,
        backoff_ms: int = DEFAULT_CLOCK_OUT_BACKOFF_MS,
        history_days: int = DEFAULT_HISTORY_DAYS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._attendance = attendance
        self._employees = employees
        self._engine = engine or TimeAccountingEngine()
        self._timezone = timezone
        self._max_attempts = int(max_attempts)
        self._backoff_ms = int(backoff_ms)
        self._history_days = int(history_days)
        self._sleep = sleep

    def _now(self, now: Optional[datetime]) -> datetime:
        return truncate_to_minute(now or now_local(self._timezone))

    def clock_in(self, employee_id: int, *, now: Optional[datetime] = None) -> ServiceResult:
        now = self._now(now)
        today = now.date()
        require_active_employee(self._employees, employee_id)

        self.repair_duplicates(int(employee_id), today)
        existing = self._attendance.get_for_employee_and_date(int(employee_id), today)
        if existing and existing.clocked_in:
            return ServiceResult.ok("Clock-in completed", self.to_view(existing))

        late = self._engine.lateness(now)
        record = existing or AttendanceRecord(attendance_id=None, employee_id=int(employee_id), attendance_date=today)
        record = replace(
            record,
            clock_in_time=now,
            late_minutes=late,
            status=AttendanceStatus.LATE if late > 0 else record.status,
            created_at=record.created_at or now,
        )

        try:
            saved = self._attendance.save(record)
        except OptimisticLockError:
            # Another worker clocked in first for the same day.
            current = self._attendance.get_for_employee_and_date(int(employee_id), today)
            if not current:
                raise
            logger.info("Concurrent clock-in for employee %s on %s; returning stored record", employee_id, today)
            return ServiceResult.ok("Clock-in completed", self.to_view(current))

        logger.info("Employee %s clocked in at %s (late=%d)", employee_id, now, late)
        return ServiceResult.ok("Clock-in completed", self.to_view(saved))

    def clock_out(self, employee_id: int, *, now: Optional[datetime] = None) -> ServiceResult:
        now = self._now(now)
        return run_with_retry(
            lambda: self._clock_out_once(int(employee_id), now),
            max_attempts=self._max_attempts,
            backoff_ms=self._backoff_ms,
            label=f"clock-out employee={employee_id}",
            sleep=self._sleep,
        )

    def _clock_out_once(self, employee_id: int, now: datetime) -> ServiceResult:
        today = now.date()
        require_active_employee(self._employees, employee_id)
        self.repair_duplicates(employee_id, today)

        record = self._attendance.get_for_employee_and_date(employee_id, today)
        if not record or not record.clocked_in:
            return ServiceResult.ok("")

        if record.clock_out_time is not None:
            return ServiceResult.ok("Clock-out completed", self.to_view(record))

        record = self._engine.recompute_metrics(replace(record, clock_out_time=now))
        saved = self._attendance.save(record)
        logger.info(
            "Employee %s clocked out at %s (status=%s, overtime=%d, night=%d)",
            employee_id,
            now,
            saved.status.value,
            saved.overtime_minutes,
            saved.night_shift_minutes,
        )
        return ServiceResult.ok("Clock-out completed", self.to_view(saved))

    def repair_duplicates(self, employee_id: int, attendance_date: date) -> int:
        """Keep only the most recently created record for the day.

        Individual delete failures are logged and skipped.
        """

        try:
            records = list(self._attendance.find_duplicates(int(employee_id), attendance_date))
        except Exception:
            logger.warning("Duplicate lookup failed for employee %s on %s", employee_id, attendance_date, exc_info=True)
            return 0

        removed = 0
        for stale in records[1:]:
            try:
                if self._attendance.delete(stale.attendance_id):
                    removed += 1
                    logger.info(
                        "Removed duplicate attendance record %s (employee %s, %s)",
                        stale.attendance_id,
                        employee_id,
                        attendance_date,
                    )
            except Exception:
                logger.warning("Failed to delete duplicate attendance record %s", stale.attendance_id, exc_info=True)
        return removed

    def history(
        self,
        employee_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        *,
        year: Optional[int] = None,
        month: Optional[int] = None,
        today: Optional[date] = None,
    ) -> ServiceResult:
        require_active_employee(self._employees, employee_id)

        if year is not None and month is not None:
            start, end = month_range(int(year), int(month))
        else:
            end = end or today or self._now(None).date()
            start = start or end - timedelta(days=self._history_days)
        if end < start:
            raise ValidationError("End date must not be before start date", ErrorCode.INVALID_DATE_RANGE)

        records = sorted(
            self._attendance.list_in_range(int(employee_id), start, end),
            key=lambda r: r.attendance_date,
            reverse=True,
        )
        return ServiceResult.ok("Attendance history loaded", [self.to_view(r) for r in records])

    def today(self, employee_id: int, *, now: Optional[datetime] = None) -> ServiceResult:
        today = self._now(now).date()
        require_active_employee(self._employees, employee_id)
        self.repair_duplicates(int(employee_id), today)

        record = self._attendance.get_for_employee_and_date(int(employee_id), today)
        if not record:
            return ServiceResult.ok("No attendance record for today", None)
        return ServiceResult.ok("Today's attendance loaded", self.to_view(record))

    def monthly_summary(self, employee_id: int, year: int, month: int) -> ServiceResult:
        require_active_employee(self._employees, employee_id)
        start, end = month_range(int(year), int(month))
        views = [self.to_view(r) for r in self._attendance.list_in_range(int(employee_id), start, end)]
        done = [v for v in views if v.clock_out_time is not None]

        summary = MonthlySummary(
            employee_id=int(employee_id),
            year=int(year),
            month=int(month),
            days_worked=len(done),
            working_minutes=sum(v.working_minutes or 0 for v in done),
            overtime_minutes=sum(v.overtime_minutes or 0 for v in done),
            night_shift_minutes=sum(v.night_shift_minutes or 0 for v in done),
            late_minutes=sum(v.late_minutes or 0 for v in views),
            early_leave_minutes=sum(v.early_leave_minutes or 0 for v in done),
        )
        return ServiceResult.ok("Monthly summary loaded", summary)

    def to_view(self, record: AttendanceRecord) -> AttendanceView:
        if not record.clocked_out:
            return AttendanceView(
                attendance_id=record.attendance_id,
                attendance_date=record.attendance_date,
                clock_in_time=record.clock_in_time,
                clock_out_time=None,
                late_minutes=record.late_minutes or 0,
                early_leave_minutes=None,
                overtime_minutes=None,
                night_shift_minutes=None,
                break_minutes=None,
                working_minutes=None,
                status=record.status,
                fixed=record.fixed,
            )

        stored_night = record.night_shift_minutes or 0
        night = self._engine.night_shift_minutes(record.clock_in_time, record.clock_out_time)
        if stored_night > 0 and night == 0:
            night = stored_night

        return AttendanceView(
            attendance_id=record.attendance_id,
            attendance_date=record.attendance_date,
            clock_in_time=record.clock_in_time,
            clock_out_time=record.clock_out_time,
            late_minutes=record.late_minutes or 0,
            early_leave_minutes=record.early_leave_minutes or 0,
            overtime_minutes=record.overtime_minutes or 0,
            night_shift_minutes=night,
            break_minutes=self._engine.resolve_break(record.clock_in_time, record.clock_out_time, record.break_minutes),
            working_minutes=self._engine.working_minutes(
                record.clock_in_time, record.clock_out_time, record.break_minutes
            ),
            status=record.status,
            fixed=record.fixed,
        )
