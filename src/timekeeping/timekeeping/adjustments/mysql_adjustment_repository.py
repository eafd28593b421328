from __future__ import annotations

from datetime import date
from typing import Sequence

from ..core.enums import AdjustmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, normalize_mysql_time
from .model import TimesheetAdjustmentRequest
from .repository import AdjustmentRequestRepository


class MySQLAdjustmentRequestRepository(AdjustmentRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_active_in_period(self, employee_id: int, start_date: date, end_date: date) -> Sequence[TimesheetAdjustmentRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id, employee_id, work_date,
                       requested_clock_in, requested_clock_out, requested_note,
                       status, created_at, decided_by, decided_at
                FROM timesheet_adjustment_requests
                WHERE employee_id=%s
                  AND work_date BETWEEN %s AND %s
                  AND status IN (%s, %s)
                ORDER BY work_date
                """,
                (
                    int(employee_id),
                    start_date,
                    end_date,
                    AdjustmentStatus.PENDING.value,
                    AdjustmentStatus.APPROVED.value,
                ),
            )
            return [
                TimesheetAdjustmentRequest(
                    request_id=int(r["request_id"]),
                    employee_id=int(r["employee_id"]),
                    work_date=r["work_date"],
                    requested_clock_in=normalize_mysql_time(r.get("requested_clock_in")),
                    requested_clock_out=normalize_mysql_time(r.get("requested_clock_out")),
                    requested_note=r.get("requested_note"),
                    status=AdjustmentStatus(r["status"]),
                    created_at=r["created_at"],
                    decided_by=r.get("decided_by"),
                    decided_at=r.get("decided_at"),
                )
                for r in fetchall(cur)
            ]

    def cancel(self, request_id: int, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE timesheet_adjustment_requests
                SET status=%s
                WHERE request_id=%s AND employee_id=%s AND status IN (%s, %s)
                """,
                (
                    AdjustmentStatus.CANCELLED.value,
                    int(request_id),
                    int(employee_id),
                    AdjustmentStatus.PENDING.value,
                    AdjustmentStatus.APPROVED.value,
                ),
            )
            return cur.rowcount > 0
