from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from ..adjustments.repository import AdjustmentRequestRepository
from ..common.datetime_utils import now_local
from ..common.results import ServiceResult
from ..common.validators import is_blank, to_days
from ..core.constants import (
    APPROVAL_SUBJECT_LEAVE_REQUEST,
    DEFAULT_TIMEZONE,
    EMPLOYEE_CANCELLATION_COMMENT,
    HALF_DAY,
)
from ..core.enums import ErrorCode, LeaveStatus, LeaveTimeUnit, LeaveType
from ..core.exceptions import ConcurrentUpdateError, NotFoundError, OptimisticLockError, ValidationError
from ..employees.repository import EmployeeRepository
from ..employees.service import require_active_employee
from .ledger import LeaveBalanceLedger
from .model import Approval, LeaveRequest
from .repository import ApprovalRepository, LeaveRequestRepository

logger = logging.getLogger(__name__)


class LeaveRequestService:
    """Leave request workflow.

    PENDING is the only initial state. APPROVED, REJECTED and CANCELLED are
    terminal, except that APPROVED may still be cancelled (balance restored).
    The acting employee is always passed in by the caller.
    """

    def __init__(
        self,
        requests: LeaveRequestRepository,
        approvals: ApprovalRepository,
        employees: EmployeeRepository,
        ledger: LeaveBalanceLedger,
        adjustments: AdjustmentRequestRepository,
        *,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self._requests = requests
        self._approvals = approvals
        self._employees = employees
        self._ledger = ledger
        self._adjustments = adjustments
        self._timezone = timezone

    def _now(self) -> datetime:
        return now_local(self._timezone)

    # ---- creation ----

    def create_leave_request(
        self,
        employee_id: int,
        leave_type: Optional[LeaveType],
        time_unit: Optional[LeaveTimeUnit],
        start_date: Optional[date],
        end_date: Optional[date],
        reason: Optional[str],
        *,
        today: Optional[date] = None,
    ) -> ServiceResult:
        employee = require_active_employee(self._employees, employee_id)

        self._validate_inputs(leave_type, time_unit, start_date, end_date, reason)
        requested_days = self.requested_days(start_date, end_date, time_unit)

        self._validate_no_overlaps(employee.employee_id, start_date, end_date, leave_type, time_unit)
        self._ensure_sufficient_balance(employee.employee_id, leave_type, requested_days, today=today)

        self._cancel_adjustments(employee.employee_id, start_date, end_date)

        saved = self._requests.save(
            LeaveRequest(
                request_id=None,
                employee_id=employee.employee_id,
                leave_type=leave_type,
                time_unit=time_unit,
                start_date=start_date,
                end_date=end_date,
                days=requested_days,
                status=LeaveStatus.PENDING,
                reason=(reason or "").strip() or None,
                created_at=self._now(),
            )
        )
        logger.info(
            "Leave request %s created: employee=%s type=%s %s..%s (%s days)",
            saved.request_id,
            employee.employee_id,
            leave_type.value,
            start_date,
            end_date,
            requested_days,
        )
        return ServiceResult.ok("Leave request submitted", saved)

    @staticmethod
    def _validate_inputs(leave_type, time_unit, start_date, end_date, reason) -> None:
        if leave_type is None:
            raise ValidationError("Leave type is required", ErrorCode.INVALID_REQUEST)
        if time_unit is None:
            raise ValidationError("Time unit is required", ErrorCode.INVALID_REQUEST)
        if start_date is None or end_date is None:
            raise ValidationError("Both start and end dates are required", ErrorCode.INVALID_DATE_RANGE)
        if end_date < start_date:
            raise ValidationError("End date must not be before start date", ErrorCode.INVALID_DATE_RANGE)
        if leave_type is not LeaveType.PAID_LEAVE and time_unit is not LeaveTimeUnit.FULL_DAY:
            raise ValidationError("Half-day leave is only available for paid leave", ErrorCode.INVALID_REQUEST)
        if time_unit.is_half_day and start_date != end_date:
            raise ValidationError("Half-day leave must be a single day", ErrorCode.INVALID_DATE_RANGE)
        if leave_type is LeaveType.PAID_LEAVE and is_blank(reason):
            raise ValidationError("A reason is required for paid leave", ErrorCode.INVALID_REQUEST)

    @staticmethod
    def requested_days(start_date: date, end_date: date, time_unit: LeaveTimeUnit) -> Decimal:
        if time_unit.is_half_day:
            return to_days(HALF_DAY)
        days = (end_date - start_date).days + 1
        if days <= 0:
            raise ValidationError("Invalid leave period", ErrorCode.INVALID_DATE_RANGE)
        return to_days(days)

    def _validate_no_overlaps(self, employee_id, start_date, end_date, leave_type, time_unit) -> None:
        if self._requests.has_overlapping(employee_id, start_date, end_date):
            raise ValidationError("Another request already covers this period", ErrorCode.DUPLICATE_REQUEST)

        if leave_type is LeaveType.PAID_LEAVE and time_unit.is_half_day:
            pending = [
                r
                for r in self._requests.list_pending_on_date(employee_id, leave_type, start_date)
                if r.time_unit.is_half_day
            ]
            if pending:
                raise ValidationError("A half-day request is already pending for this date", ErrorCode.DUPLICATE_REQUEST)

    def _cancel_adjustments(self, employee_id: int, start_date: date, end_date: date) -> None:
        for adjustment in self._adjustments.find_active_in_period(employee_id, start_date, end_date):
            self._adjustments.cancel(adjustment.request_id, employee_id)
            logger.info(
                "Cancelled time adjustment %s (%s) superseded by leave for employee %s",
                adjustment.request_id,
                adjustment.work_date,
                employee_id,
            )

    def _ensure_sufficient_balance(self, employee_id, leave_type, requested_days, *, today=None) -> None:
        today = today or self._now().date()
        balance = self._ledger.refresh(employee_id, leave_type, today=today)
        if balance.remaining_days < requested_days:
            raise ValidationError("Insufficient leave balance", ErrorCode.INVALID_REQUEST)

        if leave_type.is_grant_based and not self._ledger.active_grants(employee_id, leave_type, today=today):
            raise ValidationError("No valid grant for this leave type", ErrorCode.INVALID_REQUEST)

    # ---- decisions ----

    def update_status(
        self,
        request_id: int,
        new_status: LeaveStatus,
        approver_id: Optional[int],
        comment: Optional[str] = None,
    ) -> ServiceResult:
        request = self._requests.get(int(request_id))
        if not request:
            raise NotFoundError("Leave request not found", ErrorCode.VACATION_NOT_FOUND)
        if request.status is new_status:
            raise ValidationError("The request already has this status", ErrorCode.INVALID_STATUS_CHANGE)

        if new_status is LeaveStatus.APPROVED:
            updated, undo = self._approve(request, approver_id)
        elif new_status is LeaveStatus.REJECTED:
            updated, undo = self._reject(request, approver_id, comment), None
        elif new_status is LeaveStatus.CANCELLED:
            updated, undo = self._cancel_by_admin(request, approver_id)
        else:
            raise ValidationError("Invalid target status", ErrorCode.INVALID_STATUS_CHANGE)

        saved = self._save_transition(updated, undo)
        self._record_history(saved, new_status, approver_id, comment)
        logger.info("Leave request %s: %s -> %s by %s", saved.request_id, request.status.value, new_status.value, approver_id)
        return ServiceResult.ok(f"Leave request {new_status.value.lower()}", saved)

    def _approve(self, request: LeaveRequest, approver_id: Optional[int]) -> tuple[LeaveRequest, Callable[[], object]]:
        if request.status is not LeaveStatus.PENDING:
            raise ValidationError("Only pending requests can be approved", ErrorCode.INVALID_STATUS_CHANGE)

        employee = self._employees.get_by_id(request.employee_id)
        if not employee:
            raise NotFoundError("Employee not found", ErrorCode.EMPLOYEE_NOT_FOUND)
        balance = self._ledger.ensure(employee, request.leave_type)
        consumed = self._ledger.consume(balance, request.days)
        return (
            replace(request, status=LeaveStatus.APPROVED, approver_id=approver_id, rejection_comment=None),
            lambda: self._ledger.restore(consumed, request.days),
        )

    @staticmethod
    def _reject(request: LeaveRequest, approver_id: Optional[int], comment: Optional[str]) -> LeaveRequest:
        if is_blank(comment):
            raise ValidationError("A rejection comment is required", ErrorCode.INVALID_REQUEST)
        if request.status is not LeaveStatus.PENDING:
            raise ValidationError("Only pending requests can be rejected", ErrorCode.INVALID_STATUS_CHANGE)
        return replace(request, status=LeaveStatus.REJECTED, approver_id=approver_id, rejection_comment=comment.strip())

    def _cancel_by_admin(self, request: LeaveRequest, approver_id: Optional[int]):
        undo = self._restore_balance(request) if request.status is LeaveStatus.APPROVED else None
        return replace(request, status=LeaveStatus.CANCELLED, approver_id=approver_id, rejection_comment=None), undo

    def cancel_request(self, request_id: int, employee_id: int) -> ServiceResult:
        """Self-service cancellation by the requesting employee."""

        request = self._requests.get(int(request_id))
        if not request or request.employee_id != int(employee_id):
            raise NotFoundError("Leave request not found", ErrorCode.VACATION_NOT_FOUND)
        if request.status in (LeaveStatus.REJECTED, LeaveStatus.CANCELLED):
            raise ValidationError("This request can no longer be cancelled", ErrorCode.VACATION_NOT_CANCELLABLE)

        undo = self._restore_balance(request) if request.status is LeaveStatus.APPROVED else None

        saved = self._save_transition(
            replace(request, status=LeaveStatus.CANCELLED, approver_id=None, rejection_comment=None),
            undo,
        )
        self._record_history(saved, LeaveStatus.CANCELLED, int(employee_id), EMPLOYEE_CANCELLATION_COMMENT)
        logger.info("Leave request %s cancelled by employee %s", saved.request_id, employee_id)
        return ServiceResult.ok("Leave request cancelled", saved)

    def _save_transition(self, request: LeaveRequest, undo: Optional[Callable[[], object]]) -> LeaveRequest:
        """Persist a status change; if it cannot be stored, revert the balance change made for it."""

        try:
            return self._requests.save(request)
        except OptimisticLockError as e:
            self._revert(request, undo)
            raise ConcurrentUpdateError(
                "The leave request was updated by another operation. Please reload it.",
                ErrorCode.CONCURRENT_UPDATE_ERROR,
            ) from e
        except Exception:
            self._revert(request, undo)
            raise

    @staticmethod
    def _revert(request: LeaveRequest, undo: Optional[Callable[[], object]]) -> None:
        if undo is None:
            return
        logger.warning("Saving leave request %s failed; reverting its balance change", request.request_id)
        undo()

    def _restore_balance(self, request: LeaveRequest) -> Optional[Callable[[], object]]:
        balance = self._ledger.balance_of(request.employee_id, request.leave_type)
        if balance is None:
            logger.warning("No %s balance to restore for employee %s", request.leave_type.value, request.employee_id)
            return None
        restored = self._ledger.restore(balance, request.days)
        used_before = balance.used_days
        return lambda: self._ledger.consume(restored, used_before - restored.used_days)

    def _record_history(self, request: LeaveRequest, status: LeaveStatus, actor_id, comment) -> None:
        self._approvals.append(
            Approval(
                subject_type=APPROVAL_SUBJECT_LEAVE_REQUEST,
                subject_id=int(request.request_id),
                status=status,
                actor_id=actor_id,
                comment=comment,
                created_at=self._now(),
            )
        )

    # ---- queries ----

    def list_for_employee(self, employee_id: int) -> ServiceResult:
        rows = sorted(
            self._requests.list_for_employee(int(employee_id)),
            key=lambda r: (r.created_at or datetime.min, r.request_id or 0),
            reverse=True,
        )
        return ServiceResult.ok("Leave requests loaded", rows)

    def list_pending(self) -> ServiceResult:
        return ServiceResult.ok("Pending leave requests loaded", list(self._requests.list_by_status(LeaveStatus.PENDING)))
