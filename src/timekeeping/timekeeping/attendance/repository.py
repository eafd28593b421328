from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_employee_and_date(self, employee_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        """Most recently created record for the day, if any."""

        raise NotImplementedError

    def find_duplicates(self, employee_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        """All records for the day, most recently created first."""

        raise NotImplementedError

    def list_in_range(self, employee_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        """Records with start_date <= date <= end_date, newest date first."""

        raise NotImplementedError

    def save(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert (attendance_id is None) or update guarded by record.version.

        Raises OptimisticLockError when the stored version differs.
        """

        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError
