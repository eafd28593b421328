from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import minutes_between, truncate_to_minute
from ..core.constants import (
    NIGHT_START_TIME,
    NIGHT_WINDOW_HOURS,
    STANDARD_END_TIME,
    STANDARD_START_TIME,
    STANDARD_WORKING_MINUTES,
)
from ..core.enums import AttendanceStatus
from .calculator.base import BreakPolicy
from .calculator.statutory_policy import StatutoryBreakPolicy
from .model import AttendanceRecord


def derive_status(*, late: int, early_leave: int, overtime: int, night_shift: int) -> AttendanceStatus:
    if late > 0 and early_leave > 0:
        return AttendanceStatus.LATE_AND_EARLY_LEAVE
    if late > 0:
        return AttendanceStatus.LATE
    if early_leave > 0:
        return AttendanceStatus.EARLY_LEAVE
    if night_shift > 0:
        return AttendanceStatus.NIGHT_SHIFT
    if overtime > 0:
        return AttendanceStatus.OVERTIME
    return AttendanceStatus.NORMAL


class TimeAccountingEngine:
    """Derives lateness, early leave, break, working, overtime and night minutes.

    Pure computation over minute-truncated instants; holds no mutable state and
    is safe to share between request workers.
    """

    def __init__(self, break_policy: Optional[BreakPolicy] = None):
        self._break_policy = break_policy or StatutoryBreakPolicy()

    @staticmethod
    def _elapsed(clock_in: Optional[datetime], clock_out: Optional[datetime]) -> int:
        if clock_in is None or clock_out is None:
            return 0
        return max(0, minutes_between(truncate_to_minute(clock_in), truncate_to_minute(clock_out)))

    def lateness(self, clock_in: datetime) -> int:
        clock_in = truncate_to_minute(clock_in)
        start = datetime.combine(clock_in.date(), STANDARD_START_TIME)
        return max(0, minutes_between(start, clock_in))

    def early_leave(self, clock_out: datetime) -> int:
        clock_out = truncate_to_minute(clock_out)
        end = datetime.combine(clock_out.date(), STANDARD_END_TIME)
        return max(0, minutes_between(clock_out, end))

    def resolve_break(
        self,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        requested_break: Optional[int] = None,
    ) -> int:
        if clock_in is None or clock_out is None:
            return 0 if requested_break is None else max(0, int(requested_break))

        elapsed = self._elapsed(clock_in, clock_out)
        if elapsed <= 0:
            return 0

        if requested_break is None:
            minutes = self._break_policy.required_break_minutes(elapsed)
        else:
            minutes = int(requested_break)
        return min(max(0, minutes), elapsed)

    def working_minutes(
        self,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        break_minutes: Optional[int] = None,
    ) -> int:
        elapsed = self._elapsed(clock_in, clock_out)
        if elapsed <= 0:
            return 0
        return max(0, elapsed - self.resolve_break(clock_in, clock_out, break_minutes))

    @staticmethod
    def overtime_minutes(working_minutes: int) -> int:
        return max(0, working_minutes - STANDARD_WORKING_MINUTES)

    def night_shift_minutes(self, clock_in: Optional[datetime], clock_out: Optional[datetime]) -> int:
        if clock_in is None or clock_out is None:
            return 0
        clock_in = truncate_to_minute(clock_in)
        clock_out = truncate_to_minute(clock_out)
        if clock_out <= clock_in:
            return 0

        # A night window opens at 22:00 and closes 7h later, so the window
        # that started the day before clock-in can still overlap.
        total = 0
        current = clock_in.date() - timedelta(days=1)
        while current <= clock_out.date():
            night_start = datetime.combine(current, NIGHT_START_TIME)
            night_end = night_start + timedelta(hours=NIGHT_WINDOW_HOURS)
            overlap_start = max(clock_in, night_start)
            overlap_end = min(clock_out, night_end)
            if overlap_end > overlap_start:
                total += minutes_between(overlap_start, overlap_end)
            current += timedelta(days=1)
        return total

    @staticmethod
    def normalize(record: AttendanceRecord) -> AttendanceRecord:
        return replace(
            record,
            break_minutes=record.break_minutes or 0,
            late_minutes=record.late_minutes or 0,
            early_leave_minutes=record.early_leave_minutes or 0,
            overtime_minutes=record.overtime_minutes or 0,
            night_shift_minutes=record.night_shift_minutes or 0,
        )

    def recompute_metrics(self, record: AttendanceRecord) -> AttendanceRecord:
        """Apply the clock-out rules to a record and return the updated copy."""

        clock_in, clock_out = record.clock_in_time, record.clock_out_time
        if clock_in is None or clock_out is None:
            return self.normalize(record)

        break_minutes = self.resolve_break(clock_in, clock_out, record.break_minutes)
        late = self.lateness(clock_in)
        early = self.early_leave(clock_out)
        working = self.working_minutes(clock_in, clock_out, break_minutes)

        if working >= STANDARD_WORKING_MINUTES:
            late = early = 0
        else:
            shortage = STANDARD_WORKING_MINUTES - max(0, working)
            late = min(late, shortage)
            if late + early < shortage:
                early += shortage - (late + early)

        overtime = self.overtime_minutes(working)
        night = self.night_shift_minutes(clock_in, clock_out)

        return self.normalize(
            replace(
                record,
                break_minutes=break_minutes,
                late_minutes=late,
                early_leave_minutes=early,
                overtime_minutes=overtime,
                night_shift_minutes=night,
                status=derive_status(late=late, early_leave=early, overtime=overtime, night_shift=night),
            )
        )
