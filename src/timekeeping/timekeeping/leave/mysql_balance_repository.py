from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ..core.enums import LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, execute_versioned_insert, fetchall, fetchone, require_row_updated
from .model import LeaveBalance
from .repository import LeaveBalanceRepository


class MySQLLeaveBalanceRepository(LeaveBalanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_balance(r: dict) -> LeaveBalance:
        return LeaveBalance(
            balance_id=int(r["balance_id"]),
            employee_id=int(r["employee_id"]),
            leave_type=LeaveType(r["leave_type"]),
            total_days=as_decimal(r["total_days"]),
            used_days=as_decimal(r["used_days"]),
            remaining_days=as_decimal(r["remaining_days"]),
            version=int(r["version"]),
        )

    def get(self, employee_id: int, leave_type: LeaveType) -> Optional[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT balance_id, employee_id, leave_type, total_days, used_days, remaining_days, version
                FROM leave_balances
                WHERE employee_id=%s AND leave_type=%s
                """,
                (int(employee_id), leave_type.value),
            )
            r = fetchone(cur)
            return self._to_balance(r) if r else None

    def list_for_employee(self, employee_id: int) -> Sequence[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT balance_id, employee_id, leave_type, total_days, used_days, remaining_days, version
                FROM leave_balances
                WHERE employee_id=%s
                ORDER BY leave_type
                """,
                (int(employee_id),),
            )
            return [self._to_balance(r) for r in fetchall(cur)]

    def save(self, balance: LeaveBalance) -> LeaveBalance:
        with db_cursor(self._conn_factory) as (_, cur):
            if balance.balance_id is None:
                new_id = execute_versioned_insert(
                    cur,
                    """
                    INSERT INTO leave_balances(employee_id, leave_type, total_days, used_days, remaining_days, version)
                    VALUES(%s,%s,%s,%s,%s,0)
                    """,
                    (
                        int(balance.employee_id),
                        balance.leave_type.value,
                        balance.total_days,
                        balance.used_days,
                        balance.remaining_days,
                    ),
                )
                return replace(balance, balance_id=new_id, version=0)

            cur.execute(
                """
                UPDATE leave_balances
                SET total_days=%s, used_days=%s, remaining_days=%s, version=version+1
                WHERE balance_id=%s AND version=%s
                """,
                (
                    balance.total_days,
                    balance.used_days,
                    balance.remaining_days,
                    int(balance.balance_id),
                    int(balance.version),
                ),
            )
            require_row_updated(cur, f"Leave balance {balance.balance_id}")
            return replace(balance, version=balance.version + 1)
