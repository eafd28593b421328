from __future__ import annotations

from ..core.enums import ErrorCode
from ..core.exceptions import NotFoundError, ValidationError
from .model import Employee
from .repository import EmployeeRepository


def require_active_employee(employees: EmployeeRepository, employee_id: int) -> Employee:
    """Look up an employee who may still record time and request leave."""

    employee = employees.get_by_id(int(employee_id))
    if not employee:
        raise NotFoundError("Employee not found", ErrorCode.EMPLOYEE_NOT_FOUND)
    if employee.retired:
        raise ValidationError("Employee has retired", ErrorCode.RETIRED_EMPLOYEE)
    return employee
