from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import LeaveStatus, LeaveTimeUnit, LeaveType


@dataclass(frozen=True)
class LeaveBalance:
    """Running entitlement for one employee and leave type.

    Invariant: remaining_days == max(0, total_days - used_days).
    """

    employee_id: int
    leave_type: LeaveType
    total_days: Decimal
    used_days: Decimal
    remaining_days: Decimal
    balance_id: Optional[int] = None
    version: int = 0


@dataclass(frozen=True)
class LeaveGrant:
    grant_id: Optional[int]
    employee_id: int
    leave_type: LeaveType
    granted_days: Decimal
    granted_at: Optional[date]
    expires_at: Optional[date]
    granted_by: Optional[int] = None

    def is_expired(self, today: date) -> bool:
        return self.expires_at is not None and self.expires_at < today


@dataclass(frozen=True)
class LeaveRequest:
    request_id: Optional[int]
    employee_id: int
    leave_type: LeaveType
    time_unit: LeaveTimeUnit
    start_date: date
    end_date: date
    days: Decimal
    status: LeaveStatus = LeaveStatus.PENDING
    reason: Optional[str] = None
    approver_id: Optional[int] = None
    rejection_comment: Optional[str] = None
    created_at: Optional[datetime] = None
    version: int = 0

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and start <= self.end_date


@dataclass(frozen=True)
class Approval:
    """Append-only approval history entry."""

    subject_type: str
    subject_id: int
    status: LeaveStatus
    actor_id: Optional[int]
    comment: Optional[str]
    created_at: datetime
    approval_id: Optional[int] = None
