from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, execute_versioned_insert, fetchall, fetchone, require_row_updated
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, attendance_date, clock_in_time, clock_out_time,
    break_minutes, late_minutes, early_leave_minutes, overtime_minutes, night_shift_minutes,
    status, fixed_flag, version, created_at
"""


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_record(r: dict) -> AttendanceRecord:
        return AttendanceRecord(
            attendance_id=int(r["attendance_id"]),
            employee_id=int(r["employee_id"]),
            attendance_date=r["attendance_date"],
            clock_in_time=r.get("clock_in_time"),
            clock_out_time=r.get("clock_out_time"),
            break_minutes=r.get("break_minutes"),
            late_minutes=r.get("late_minutes"),
            early_leave_minutes=r.get("early_leave_minutes"),
            overtime_minutes=r.get("overtime_minutes"),
            night_shift_minutes=r.get("night_shift_minutes"),
            status=AttendanceStatus(r["status"]),
            fixed=bool(r.get("fixed_flag")),
            version=int(r["version"]),
            created_at=r.get("created_at"),
        )

    def get_for_employee_and_date(self, employee_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND attendance_date=%s
                ORDER BY created_at DESC, attendance_id DESC
                LIMIT 1
                """,
                (int(employee_id), attendance_date),
            )
            r = fetchone(cur)
            return self._to_record(r) if r else None

    def find_duplicates(self, employee_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND attendance_date=%s
                ORDER BY created_at DESC, attendance_id DESC
                """,
                (int(employee_id), attendance_date),
            )
            return [self._to_record(r) for r in fetchall(cur)]

    def list_in_range(self, employee_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND attendance_date BETWEEN %s AND %s
                ORDER BY attendance_date DESC
                """,
                (int(employee_id), start_date, end_date),
            )
            return [self._to_record(r) for r in fetchall(cur)]

    def save(self, record: AttendanceRecord) -> AttendanceRecord:
        params = (
            record.clock_in_time,
            record.clock_out_time,
            record.break_minutes,
            record.late_minutes,
            record.early_leave_minutes,
            record.overtime_minutes,
            record.night_shift_minutes,
            record.status.value,
            int(record.fixed),
        )
        with db_cursor(self._conn_factory) as (_, cur):
            if record.attendance_id is None:
                new_id = execute_versioned_insert(
                    cur,
                    """
                    INSERT INTO attendance_records(
                        employee_id, attendance_date, clock_in_time, clock_out_time,
                        break_minutes, late_minutes, early_leave_minutes, overtime_minutes, night_shift_minutes,
                        status, fixed_flag, version, created_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0,COALESCE(%s, CURRENT_TIMESTAMP))
                    """,
                    (int(record.employee_id), record.attendance_date) + params + (record.created_at,),
                )
                return replace(record, attendance_id=new_id, version=0)

            cur.execute(
                """
                UPDATE attendance_records
                SET clock_in_time=%s, clock_out_time=%s,
                    break_minutes=%s, late_minutes=%s, early_leave_minutes=%s,
                    overtime_minutes=%s, night_shift_minutes=%s,
                    status=%s, fixed_flag=%s, version=version+1
                WHERE attendance_id=%s AND version=%s
                """,
                params + (int(record.attendance_id), int(record.version)),
            )
            require_row_updated(cur, f"Attendance record {record.attendance_id}")
            return replace(record, version=record.version + 1)

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0
