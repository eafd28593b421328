from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import TimesheetAdjustmentRequest


class AdjustmentRequestRepository(Protocol):
    """Time-adjustment requests, as far as leave requests need them."""

    def find_active_in_period(self, employee_id: int, start_date: date, end_date: date) -> Sequence[TimesheetAdjustmentRequest]:
        """PENDING or APPROVED adjustments with start_date <= work_date <= end_date."""

        raise NotImplementedError

    def cancel(self, request_id: int, employee_id: int) -> bool:
        raise NotImplementedError
