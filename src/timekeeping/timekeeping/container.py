from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Optional

from .adjustments.mysql_adjustment_repository import MySQLAdjustmentRequestRepository
from .attendance.calculator.statutory_policy import StatutoryBreakPolicy
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .attendance.time_accounting import TimeAccountingEngine
from .core.constants import (
    DEFAULT_CLOCK_OUT_BACKOFF_MS,
    DEFAULT_CLOCK_OUT_MAX_ATTEMPTS,
    DEFAULT_HISTORY_DAYS,
    DEFAULT_TIMEZONE,
)
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .leave.ledger import LeaveBalanceLedger
from .leave.mysql_approval_repository import MySQLApprovalRepository
from .leave.mysql_balance_repository import MySQLLeaveBalanceRepository
from .leave.mysql_grant_repository import MySQLLeaveGrantRepository
from .leave.mysql_request_repository import MySQLLeaveRequestRepository
from .leave.service import LeaveRequestService


@dataclass(frozen=True)
class Container:
    attendance_service: AttendanceService
    leave_ledger: LeaveBalanceLedger
    leave_request_service: LeaveRequestService
    conn: Optional[DatabaseConnection] = None


def build_services(
    *,
    employees,
    attendance,
    balances,
    grants,
    leave_requests,
    approvals,
    adjustments,
    settings: Optional[ModuleType] = None,
    conn: Optional[DatabaseConnection] = None,
    sleep=None,
) -> Container:
    """Wire services over any repository implementations (MySQL or in-memory)."""

    timezone = getattr(settings, "TIMEZONE", DEFAULT_TIMEZONE)
    max_attempts = int(getattr(settings, "CLOCK_OUT_MAX_ATTEMPTS", DEFAULT_CLOCK_OUT_MAX_ATTEMPTS))
    backoff_ms = int(getattr(settings, "CLOCK_OUT_BACKOFF_MS", DEFAULT_CLOCK_OUT_BACKOFF_MS))
    retry_kwargs = {"sleep": sleep} if sleep is not None else {}

    attendance_service = AttendanceService(
        attendance,
        employees,
        engine=TimeAccountingEngine(StatutoryBreakPolicy()),
        timezone=timezone,
        max_attempts=max_attempts,
        backoff_ms=backoff_ms,
        history_days=int(getattr(settings, "HISTORY_DEFAULT_DAYS", DEFAULT_HISTORY_DAYS)),
        **retry_kwargs,
    )
    leave_ledger = LeaveBalanceLedger(
        balances,
        grants,
        employees,
        timezone=timezone,
        max_attempts=max_attempts,
        backoff_ms=backoff_ms,
        **retry_kwargs,
    )
    leave_request_service = LeaveRequestService(
        leave_requests,
        approvals,
        employees,
        leave_ledger,
        adjustments,
        timezone=timezone,
    )

    return Container(
        attendance_service=attendance_service,
        leave_ledger=leave_ledger,
        leave_request_service=leave_request_service,
        conn=conn,
    )


def build_container(*, db_config: dict, settings: Optional[ModuleType] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return build_services(
        employees=MySQLEmployeeRepository(conn),
        attendance=MySQLAttendanceRepository(conn),
        balances=MySQLLeaveBalanceRepository(conn),
        grants=MySQLLeaveGrantRepository(conn),
        leave_requests=MySQLLeaveRequestRepository(conn),
        approvals=MySQLApprovalRepository(conn),
        adjustments=MySQLAdjustmentRequestRepository(conn),
        settings=settings,
        conn=conn,
    )
