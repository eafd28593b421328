from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional, Sequence

from ..core.enums import LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall
from .model import LeaveGrant
from .repository import LeaveGrantRepository


class MySQLLeaveGrantRepository(LeaveGrantRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, grant: LeaveGrant) -> LeaveGrant:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_grants(employee_id, leave_type, granted_days, granted_at, expires_at, granted_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(grant.employee_id),
                    grant.leave_type.value,
                    grant.granted_days,
                    grant.granted_at,
                    grant.expires_at,
                    grant.granted_by,
                ),
            )
            return replace(grant, grant_id=int(cur.lastrowid))

    def list_active(self, employee_id: int, today: date, leave_type: Optional[LeaveType] = None) -> Sequence[LeaveGrant]:
        sql = """
            SELECT grant_id, employee_id, leave_type, granted_days, granted_at, expires_at, granted_by
            FROM leave_grants
            WHERE employee_id=%s AND (expires_at IS NULL OR expires_at >= %s)
        """
        params: list = [int(employee_id), today]
        if leave_type is not None:
            sql += " AND leave_type=%s"
            params.append(leave_type.value)
        sql += " ORDER BY expires_at IS NULL, expires_at, grant_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                LeaveGrant(
                    grant_id=int(r["grant_id"]),
                    employee_id=int(r["employee_id"]),
                    leave_type=LeaveType(r["leave_type"]),
                    granted_days=as_decimal(r["granted_days"]),
                    granted_at=r.get("granted_at"),
                    expires_at=r.get("expires_at"),
                    granted_by=r.get("granted_by"),
                )
                for r in fetchall(cur)
            ]
