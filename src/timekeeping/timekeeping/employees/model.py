from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import DEFAULT_PAID_LEAVE_BASE_DAYS


@dataclass(frozen=True)
class Employee:
    """Domain entity: Employee.

    Note: Plain data object (no DB access code).
    """

    employee_id: int
    full_name: str
    is_active: bool = True
    paid_leave_base_days: int = DEFAULT_PAID_LEAVE_BASE_DAYS
    paid_leave_adjustment: int = 0

    @property
    def retired(self) -> bool:
        return not self.is_active

    @property
    def paid_leave_entitlement(self) -> int:
        # A large negative adjustment never yields a negative total.
        return max(0, self.paid_leave_base_days + self.paid_leave_adjustment)
