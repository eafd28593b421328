from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored with each daily record."""

    NORMAL = "NORMAL"
    LATE = "LATE"
    EARLY_LEAVE = "EARLY_LEAVE"
    LATE_AND_EARLY_LEAVE = "LATE_AND_EARLY_LEAVE"
    OVERTIME = "OVERTIME"
    NIGHT_SHIFT = "NIGHT_SHIFT"


class LeaveType(str, Enum):
    PAID_LEAVE = "PAID_LEAVE"
    SUMMER = "SUMMER"
    WINTER = "WINTER"
    SPECIAL = "SPECIAL"

    @property
    def is_grant_based(self) -> bool:
        """Entitlement comes from dated grants rather than the base+adjustment formula."""
        return self in GRANT_BASED_LEAVE_TYPES


GRANT_BASED_LEAVE_TYPES = frozenset({LeaveType.SUMMER, LeaveType.WINTER, LeaveType.SPECIAL})


class LeaveTimeUnit(str, Enum):
    FULL_DAY = "FULL_DAY"
    HALF_AM = "HALF_AM"
    HALF_PM = "HALF_PM"

    @property
    def is_half_day(self) -> bool:
        return self in (LeaveTimeUnit.HALF_AM, LeaveTimeUnit.HALF_PM)


class LeaveStatus(str, Enum):
    """States of the leave approval workflow."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class AdjustmentStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class ErrorCode(str, Enum):
    """Stable error codes surfaced to callers."""

    EMPLOYEE_NOT_FOUND = "EMPLOYEE_NOT_FOUND"
    RETIRED_EMPLOYEE = "RETIRED_EMPLOYEE"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    DUPLICATE_REQUEST = "DUPLICATE_REQUEST"
    VACATION_NOT_FOUND = "VACATION_NOT_FOUND"
    VACATION_NOT_CANCELLABLE = "VACATION_NOT_CANCELLABLE"
    INVALID_STATUS_CHANGE = "INVALID_STATUS_CHANGE"
    CONCURRENT_UPDATE_ERROR = "CONCURRENT_UPDATE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
