from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AdjustmentStatus


@dataclass(frozen=True)
class TimesheetAdjustmentRequest:
    request_id: int
    employee_id: int
    work_date: date
    requested_clock_in: Optional[time]
    requested_clock_out: Optional[time]
    requested_note: Optional[str]
    status: AdjustmentStatus
    created_at: datetime
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
