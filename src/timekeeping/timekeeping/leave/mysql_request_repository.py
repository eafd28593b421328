from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional, Sequence

from ..core.enums import LeaveStatus, LeaveTimeUnit, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, require_row_updated
from .model import LeaveRequest
from .repository import LeaveRequestRepository

_COLUMNS = """
    request_id, employee_id, leave_type, time_unit, start_date, end_date, days,
    status, reason, approver_id, rejection_comment, created_at, version
"""


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_request(r: dict) -> LeaveRequest:
        return LeaveRequest(
            request_id=int(r["request_id"]),
            employee_id=int(r["employee_id"]),
            leave_type=LeaveType(r["leave_type"]),
            time_unit=LeaveTimeUnit(r["time_unit"]),
            start_date=r["start_date"],
            end_date=r["end_date"],
            days=as_decimal(r["days"]),
            status=LeaveStatus(r["status"]),
            reason=r.get("reason"),
            approver_id=r.get("approver_id"),
            rejection_comment=r.get("rejection_comment"),
            created_at=r.get("created_at"),
            version=int(r["version"]),
        )

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return self._to_request(r) if r else None

    def save(self, request: LeaveRequest) -> LeaveRequest:
        with db_cursor(self._conn_factory) as (_, cur):
            if request.request_id is None:
                cur.execute(
                    """
                    INSERT INTO leave_requests(
                        employee_id, leave_type, time_unit, start_date, end_date, days,
                        status, reason, approver_id, rejection_comment, created_at, version
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,COALESCE(%s, CURRENT_TIMESTAMP),0)
                    """,
                    (
                        int(request.employee_id),
                        request.leave_type.value,
                        request.time_unit.value,
                        request.start_date,
                        request.end_date,
                        request.days,
                        request.status.value,
                        request.reason,
                        request.approver_id,
                        request.rejection_comment,
                        request.created_at,
                    ),
                )
                return replace(request, request_id=int(cur.lastrowid), version=0)

            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approver_id=%s, rejection_comment=%s, version=version+1
                WHERE request_id=%s AND version=%s
                """,
                (
                    request.status.value,
                    request.approver_id,
                    request.rejection_comment,
                    int(request.request_id),
                    int(request.version),
                ),
            )
            require_row_updated(cur, f"Leave request {request.request_id}")
            return replace(request, version=request.version + 1)

    def has_overlapping(self, employee_id: int, start_date: date, end_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt
                FROM leave_requests
                WHERE employee_id=%s
                  AND status IN (%s, %s)
                  AND start_date <= %s AND end_date >= %s
                """,
                (
                    int(employee_id),
                    LeaveStatus.PENDING.value,
                    LeaveStatus.APPROVED.value,
                    end_date,
                    start_date,
                ),
            )
            r = fetchone(cur)
            return bool(r and int(r["cnt"]) > 0)

    def list_pending_on_date(self, employee_id: int, leave_type: LeaveType, on_date: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE employee_id=%s AND leave_type=%s AND status=%s
                  AND start_date <= %s AND end_date >= %s
                """,
                (int(employee_id), leave_type.value, LeaveStatus.PENDING.value, on_date, on_date),
            )
            return [self._to_request(r) for r in fetchall(cur)]

    def list_for_employee(self, employee_id: int) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE employee_id=%s ORDER BY created_at DESC, request_id DESC",
                (int(employee_id),),
            )
            return [self._to_request(r) for r in fetchall(cur)]

    def list_by_status(self, status: LeaveStatus) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE status=%s ORDER BY created_at DESC, request_id DESC",
                (status.value,),
            )
            return [self._to_request(r) for r in fetchall(cur)]
