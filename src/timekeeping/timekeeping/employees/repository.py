from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Repository interface for Employee.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def list_active_ids(self) -> Sequence[int]:
        raise NotImplementedError

    def set_paid_leave_adjustment(self, employee_id: int, adjustment: int) -> bool:
        raise NotImplementedError
