from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.retry import run_with_retry
from ..common.validators import to_days
from ..core.constants import DEFAULT_TIMEZONE
from ..core.enums import ErrorCode, LeaveType
from ..core.exceptions import InsufficientBalanceError, NotFoundError, OptimisticLockError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .model import LeaveBalance, LeaveGrant
from .repository import LeaveBalanceRepository, LeaveGrantRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class EntitlementSource(str, Enum):
    FORMULA = "FORMULA"  # employee base days + cumulative adjustment
    GRANTS = "GRANTS"  # sum of non-expired grants


ENTITLEMENT_SOURCES: dict[LeaveType, EntitlementSource] = {
    LeaveType.PAID_LEAVE: EntitlementSource.FORMULA,
    LeaveType.SUMMER: EntitlementSource.GRANTS,
    LeaveType.WINTER: EntitlementSource.GRANTS,
    LeaveType.SPECIAL: EntitlementSource.GRANTS,
}

_unmapped = set(LeaveType) - set(ENTITLEMENT_SOURCES)
if _unmapped:
    raise RuntimeError(f"Leave types without an entitlement rule: {sorted(t.value for t in _unmapped)}")


def with_totals(balance: LeaveBalance, *, total: Optional[Decimal] = None, used: Optional[Decimal] = None) -> LeaveBalance:
    """Return a copy with new total/used and remaining recomputed."""

    total = to_days(balance.total_days if total is None else total)
    used = to_days(balance.used_days if used is None else used)
    return replace(balance, total_days=total, used_days=used, remaining_days=max(ZERO, to_days(total - used)))


class LeaveBalanceLedger:
    """Per (employee, leave type) entitlement: total, used and remaining days."""

    def __init__(
        self,
        balances: LeaveBalanceRepository,
        grants: LeaveGrantRepository,
        employees: EmployeeRepository,
        *,
        timezone: str = DEFAULT_TIMEZONE,
        max_attempts: int = 3,
        backoff_ms: int = 100,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._balances = balances
        self._grants = grants
        self._employees = employees
        self._timezone = timezone
        self._max_attempts = int(max_attempts)
        self._backoff_ms = int(backoff_ms)
        self._sleep = sleep

    def _today(self, today: Optional[date]) -> date:
        return today or now_local(self._timezone).date()

    def _employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found", ErrorCode.EMPLOYEE_NOT_FOUND)
        return employee

    def _mutate(self, balance: LeaveBalance, change: Callable[[LeaveBalance], LeaveBalance], label: str) -> LeaveBalance:
        """Apply change and save; on a version conflict re-read and apply again."""

        state = {"current": balance}

        def attempt() -> LeaveBalance:
            current = state["current"]
            try:
                return self._balances.save(change(current))
            except OptimisticLockError:
                state["current"] = self._balances.get(current.employee_id, current.leave_type) or current
                raise

        return run_with_retry(
            attempt,
            max_attempts=self._max_attempts,
            backoff_ms=self._backoff_ms,
            label=label,
            sleep=self._sleep,
        )

    def ensure(self, employee: Employee, leave_type: LeaveType) -> LeaveBalance:
        existing = self._balances.get(employee.employee_id, leave_type)
        if existing:
            return existing

        if ENTITLEMENT_SOURCES[leave_type] is EntitlementSource.FORMULA:
            total = to_days(employee.paid_leave_entitlement)
        else:
            total = ZERO
        balance = LeaveBalance(
            employee_id=employee.employee_id,
            leave_type=leave_type,
            total_days=total,
            used_days=ZERO,
            remaining_days=max(ZERO, total),
        )
        try:
            saved = self._balances.save(balance)
        except OptimisticLockError:
            # Created concurrently by another worker.
            saved = self._balances.get(employee.employee_id, leave_type)
            if saved is None:
                raise
        logger.debug("Initialized %s balance for employee %s: total=%s", leave_type.value, employee.employee_id, total)
        return saved

    def entitlement_total(self, employee: Employee, leave_type: LeaveType, today: date) -> Decimal:
        if ENTITLEMENT_SOURCES[leave_type] is EntitlementSource.FORMULA:
            return to_days(employee.paid_leave_entitlement)
        grants = self._grants.list_active(employee.employee_id, today, leave_type)
        return to_days(sum((g.granted_days for g in grants if not g.is_expired(today)), ZERO))

    def refresh(self, employee_id: int, leave_type: LeaveType, *, today: Optional[date] = None) -> LeaveBalance:
        """Recompute total from the entitlement source; drops expired grants."""

        today = self._today(today)
        employee = self._employee(employee_id)
        balance = self.ensure(employee, leave_type)
        total = self.entitlement_total(employee, leave_type, today)
        if with_totals(balance, total=total) == balance:
            return balance

        refreshed = self._mutate(
            balance,
            lambda b: with_totals(b, total=total),
            label=f"refresh {leave_type.value} employee={employee_id}",
        )
        logger.debug("Refreshed %s balance for employee %s: total=%s", leave_type.value, employee_id, total)
        return refreshed

    def consume(self, balance: LeaveBalance, amount) -> LeaveBalance:
        amount = to_days(amount)

        def change(current: LeaveBalance) -> LeaveBalance:
            if current.remaining_days < amount:
                raise InsufficientBalanceError("Insufficient leave balance", ErrorCode.INVALID_REQUEST)
            return with_totals(current, used=current.used_days + amount)

        consumed = self._mutate(balance, change, label=f"consume {balance.leave_type.value} employee={balance.employee_id}")
        logger.debug("Consumed %s %s days for employee %s", amount, balance.leave_type.value, balance.employee_id)
        return consumed

    def restore(self, balance: LeaveBalance, amount) -> LeaveBalance:
        amount = to_days(amount)
        restored = self._mutate(
            balance,
            lambda current: with_totals(current, used=max(ZERO, current.used_days - amount)),
            label=f"restore {balance.leave_type.value} employee={balance.employee_id}",
        )
        logger.debug("Restored %s %s days for employee %s", amount, balance.leave_type.value, balance.employee_id)
        return restored

    def apply_grant(
        self,
        employee_id: int,
        leave_type: LeaveType,
        days,
        granted_at: Optional[date],
        expires_at: Optional[date],
        granted_by: Optional[int],
    ) -> LeaveGrant:
        if days is None or to_days(days) <= ZERO:
            raise ValidationError("Granted days must be greater than zero", ErrorCode.INVALID_REQUEST)
        if leave_type.is_grant_based and (granted_at is None or expires_at is None):
            raise ValidationError("Grant start and expiry dates are required", ErrorCode.INVALID_REQUEST)
        if granted_at and expires_at and expires_at < granted_at:
            raise ValidationError("Expiry date must not be before the grant date", ErrorCode.INVALID_DATE_RANGE)

        days = to_days(days)
        employee = self._employee(employee_id)
        grant = self._grants.add(
            LeaveGrant(
                grant_id=None,
                employee_id=employee.employee_id,
                leave_type=leave_type,
                granted_days=days,
                granted_at=granted_at,
                expires_at=expires_at,
                granted_by=granted_by,
            )
        )

        balance = self.ensure(employee, leave_type)
        self._mutate(
            balance,
            lambda current: with_totals(current, total=current.total_days + days),
            label=f"grant {leave_type.value} employee={employee_id}",
        )
        logger.info("Granted %s %s days to employee %s (by %s)", days, leave_type.value, employee_id, granted_by)
        return grant

    def apply_grant_to_all(
        self,
        leave_type: LeaveType,
        days,
        granted_at: Optional[date],
        expires_at: Optional[date],
        granted_by: Optional[int],
    ) -> int:
        employee_ids = list(self._employees.list_active_ids())
        if not employee_ids:
            raise ValidationError("No employees to grant leave to", ErrorCode.INVALID_REQUEST)
        for employee_id in employee_ids:
            self.apply_grant(employee_id, leave_type, days, granted_at, expires_at, granted_by)
        return len(employee_ids)

    def adjust_paid_leave(self, employee_id: int, delta_days: int) -> LeaveBalance:
        if not delta_days:
            raise ValidationError("Adjustment days must be non-zero", ErrorCode.INVALID_REQUEST)
        employee = self._employee(employee_id)
        adjustment = employee.paid_leave_adjustment + int(delta_days)
        self._employees.set_paid_leave_adjustment(employee.employee_id, adjustment)
        logger.info("Paid leave adjustment for employee %s is now %d", employee_id, adjustment)
        return self.refresh(employee.employee_id, LeaveType.PAID_LEAVE)

    def remaining_summary(self, employee_id: int) -> dict[LeaveType, Decimal]:
        employee = self._employee(employee_id)
        return {leave_type: self.ensure(employee, leave_type).remaining_days for leave_type in LeaveType}

    def balance_of(self, employee_id: int, leave_type: LeaveType) -> Optional[LeaveBalance]:
        return self._balances.get(int(employee_id), leave_type)

    def balances(self, employee_id: int) -> Sequence[LeaveBalance]:
        return self._balances.list_for_employee(int(employee_id))

    def active_grants(
        self,
        employee_id: int,
        leave_type: Optional[LeaveType] = None,
        *,
        today: Optional[date] = None,
    ) -> Sequence[LeaveGrant]:
        return self._grants.list_active(int(employee_id), self._today(today), leave_type)
