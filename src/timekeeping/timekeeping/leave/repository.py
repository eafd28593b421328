from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import Approval, LeaveBalance, LeaveGrant, LeaveRequest


class LeaveBalanceRepository(Protocol):
    def get(self, employee_id: int, leave_type: LeaveType) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[LeaveBalance]:
        raise NotImplementedError

    def save(self, balance: LeaveBalance) -> LeaveBalance:
        """Insert (balance_id is None) or update guarded by balance.version.

        Raises OptimisticLockError when the stored version differs.
        """

        raise NotImplementedError


class LeaveGrantRepository(Protocol):
    def add(self, grant: LeaveGrant) -> LeaveGrant:
        raise NotImplementedError

    def list_active(self, employee_id: int, today: date, leave_type: Optional[LeaveType] = None) -> Sequence[LeaveGrant]:
        """Grants not expired as of today (expires_at is NULL or >= today)."""

        raise NotImplementedError


class LeaveRequestRepository(Protocol):
    def get(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def save(self, request: LeaveRequest) -> LeaveRequest:
        """Insert (request_id is None) or update guarded by request.version.

        Raises OptimisticLockError when the stored version differs.
        """

        raise NotImplementedError

    def has_overlapping(self, employee_id: int, start_date: date, end_date: date) -> bool:
        """True if a PENDING or APPROVED request overlaps [start_date, end_date]."""

        raise NotImplementedError

    def list_pending_on_date(self, employee_id: int, leave_type: LeaveType, on_date: date) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_by_status(self, status: LeaveStatus) -> Sequence[LeaveRequest]:
        raise NotImplementedError


class ApprovalRepository(Protocol):
    def append(self, approval: Approval) -> Approval:
        raise NotImplementedError

    def list_for_subject(self, subject_type: str, subject_id: int) -> Sequence[Approval]:
        raise NotImplementedError
