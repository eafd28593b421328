from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_employee(r: dict) -> Employee:
        return Employee(
            employee_id=int(r["employee_id"]),
            full_name=r["full_name"],
            is_active=bool(r["is_active"]),
            paid_leave_base_days=int(r["paid_leave_base_days"]),
            paid_leave_adjustment=int(r["paid_leave_adjustment"]),
        )

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, full_name, is_active, paid_leave_base_days, paid_leave_adjustment
                FROM employees
                WHERE employee_id=%s
                """,
                (int(employee_id),),
            )
            r = fetchone(cur)
            return self._to_employee(r) if r else None

    def list_active_ids(self) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT employee_id FROM employees WHERE is_active=1 ORDER BY employee_id")
            return [int(r["employee_id"]) for r in fetchall(cur)]

    def set_paid_leave_adjustment(self, employee_id: int, adjustment: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET paid_leave_adjustment=%s WHERE employee_id=%s",
                (int(adjustment), int(employee_id)),
            )
            return cur.rowcount > 0
