from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per employee and calendar date.

    break_minutes stays None until clock-out unless an override was set;
    version is bumped by the repository on every successful save.
    """

    attendance_id: Optional[int]
    employee_id: int
    attendance_date: date
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    break_minutes: Optional[int] = None
    late_minutes: Optional[int] = 0
    early_leave_minutes: Optional[int] = 0
    overtime_minutes: Optional[int] = 0
    night_shift_minutes: Optional[int] = 0
    status: AttendanceStatus = AttendanceStatus.NORMAL
    fixed: bool = False
    version: int = 0
    created_at: Optional[datetime] = None

    @property
    def clocked_in(self) -> bool:
        return self.clock_in_time is not None

    @property
    def clocked_out(self) -> bool:
        return self.clock_in_time is not None and self.clock_out_time is not None


@dataclass(frozen=True)
class AttendanceView:
    """Read-model returned by clock operations and history queries.

    Clock-out dependent fields are None while the employee is still clocked in.
    """

    attendance_id: Optional[int]
    attendance_date: date
    clock_in_time: Optional[datetime]
    clock_out_time: Optional[datetime]
    late_minutes: Optional[int]
    early_leave_minutes: Optional[int]
    overtime_minutes: Optional[int]
    night_shift_minutes: Optional[int]
    break_minutes: Optional[int]
    working_minutes: Optional[int]
    status: AttendanceStatus
    fixed: bool


@dataclass(frozen=True)
class MonthlySummary:
    employee_id: int
    year: int
    month: int
    days_worked: int
    working_minutes: int
    overtime_minutes: int
    night_shift_minutes: int
    late_minutes: int
    early_leave_minutes: int
