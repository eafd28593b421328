from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional

import pytest

from timekeeping.adjustments.model import TimesheetAdjustmentRequest
from timekeeping.container import build_services
from timekeeping.core.enums import AdjustmentStatus, LeaveStatus, LeaveType
from timekeeping.core.exceptions import OptimisticLockError
from timekeeping.employees.model import Employee
from timekeeping.leave.model import Approval, LeaveBalance, LeaveGrant, LeaveRequest


class InMemoryEmployees:
    def __init__(self, *employees: Employee):
        self.by_id = {e.employee_id: e for e in employees}

    def add(self, employee: Employee) -> Employee:
        self.by_id[employee.employee_id] = employee
        return employee

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self.by_id.get(employee_id)

    def list_active_ids(self):
        return sorted(e.employee_id for e in self.by_id.values() if e.is_active)

    def set_paid_leave_adjustment(self, employee_id: int, adjustment: int) -> bool:
        employee = self.by_id.get(employee_id)
        if not employee:
            return False
        self.by_id[employee_id] = replace(employee, paid_leave_adjustment=adjustment)
        return True


class InMemoryAttendance:
    """Versioned attendance store.

    conflicts: number of upcoming saves that fail with OptimisticLockError.
    errors: exceptions raised (in order) by upcoming saves.
    """

    def __init__(self):
        self.records: dict[int, object] = {}
        self._id = 0
        self.conflicts = 0
        self.errors: list[Exception] = []
        self.failing_deletes: set[int] = set()
        self.save_calls = 0

    def add_raw(self, record):
        # Bypasses the unique check so tests can seed duplicate rows.
        self._id += 1
        stored = replace(record, attendance_id=self._id)
        self.records[self._id] = stored
        return stored

    def _for_day(self, employee_id: int, attendance_date: date):
        rows = [r for r in self.records.values() if r.employee_id == employee_id and r.attendance_date == attendance_date]
        return sorted(rows, key=lambda r: (r.created_at, r.attendance_id), reverse=True)

    def get_for_employee_and_date(self, employee_id: int, attendance_date: date):
        rows = self._for_day(employee_id, attendance_date)
        return rows[0] if rows else None

    def find_duplicates(self, employee_id: int, attendance_date: date):
        return self._for_day(employee_id, attendance_date)

    def list_in_range(self, employee_id: int, start_date: date, end_date: date):
        rows = [
            r
            for r in self.records.values()
            if r.employee_id == employee_id and start_date <= r.attendance_date <= end_date
        ]
        return sorted(rows, key=lambda r: r.attendance_date, reverse=True)

    def save(self, record):
        self.save_calls += 1
        if self.errors:
            raise self.errors.pop(0)
        if self.conflicts > 0:
            self.conflicts -= 1
            raise OptimisticLockError("attendance version conflict")

        if record.attendance_id is None:
            if self._for_day(record.employee_id, record.attendance_date):
                raise OptimisticLockError("duplicate attendance record")
            return self.add_raw(replace(record, version=0))

        stored = self.records.get(record.attendance_id)
        if stored is None or stored.version != record.version:
            raise OptimisticLockError("attendance version conflict")
        saved = replace(record, version=record.version + 1)
        self.records[record.attendance_id] = saved
        return saved

    def delete(self, attendance_id: int) -> bool:
        if attendance_id in self.failing_deletes:
            raise RuntimeError("delete failed")
        return self.records.pop(attendance_id, None) is not None


class InMemoryBalances:
    def __init__(self):
        self.by_key: dict[tuple[int, LeaveType], LeaveBalance] = {}
        self._id = 0
        self.conflicts = 0

    def get(self, employee_id: int, leave_type: LeaveType) -> Optional[LeaveBalance]:
        return self.by_key.get((employee_id, leave_type))

    def list_for_employee(self, employee_id: int):
        return [b for (emp, _), b in sorted(self.by_key.items(), key=lambda kv: kv[0][1].value) if emp == employee_id]

    def save(self, balance: LeaveBalance) -> LeaveBalance:
        if self.conflicts > 0:
            self.conflicts -= 1
            stored = self.by_key.get((balance.employee_id, balance.leave_type))
            if stored is not None:
                # Simulate another writer bumping the version.
                self.by_key[(balance.employee_id, balance.leave_type)] = replace(stored, version=stored.version + 1)
            raise OptimisticLockError("balance version conflict")

        key = (balance.employee_id, balance.leave_type)
        stored = self.by_key.get(key)
        if balance.balance_id is None:
            if stored is not None:
                raise OptimisticLockError("duplicate balance")
            self._id += 1
            saved = replace(balance, balance_id=self._id, version=0)
        else:
            if stored is None or stored.version != balance.version:
                raise OptimisticLockError("balance version conflict")
            saved = replace(balance, version=balance.version + 1)
        self.by_key[key] = saved
        return saved


class InMemoryGrants:
    def __init__(self):
        self.grants: list[LeaveGrant] = []

    def add(self, grant: LeaveGrant) -> LeaveGrant:
        saved = replace(grant, grant_id=len(self.grants) + 1)
        self.grants.append(saved)
        return saved

    def list_active(self, employee_id: int, today: date, leave_type: Optional[LeaveType] = None):
        return [
            g
            for g in self.grants
            if g.employee_id == employee_id
            and (leave_type is None or g.leave_type == leave_type)
            and (g.expires_at is None or g.expires_at >= today)
        ]


class InMemoryLeaveRequests:
    def __init__(self):
        self.by_id: dict[int, LeaveRequest] = {}
        # Exceptions raised by the next saves, one per save.
        self.failures: list[Exception] = []

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        return self.by_id.get(request_id)

    def save(self, request: LeaveRequest) -> LeaveRequest:
        if self.failures:
            raise self.failures.pop(0)
        if request.request_id is None:
            request = replace(request, request_id=len(self.by_id) + 1, version=0)
        else:
            stored = self.by_id.get(request.request_id)
            if stored is None or stored.version != request.version:
                raise OptimisticLockError("leave request version conflict")
            request = replace(request, version=request.version + 1)
        self.by_id[request.request_id] = request
        return request

    def has_overlapping(self, employee_id: int, start_date: date, end_date: date) -> bool:
        return any(
            r.employee_id == employee_id
            and r.status in (LeaveStatus.PENDING, LeaveStatus.APPROVED)
            and r.overlaps(start_date, end_date)
            for r in self.by_id.values()
        )

    def list_pending_on_date(self, employee_id: int, leave_type: LeaveType, on_date: date):
        return [
            r
            for r in self.by_id.values()
            if r.employee_id == employee_id
            and r.leave_type == leave_type
            and r.status is LeaveStatus.PENDING
            and r.overlaps(on_date, on_date)
        ]

    def list_for_employee(self, employee_id: int):
        return [r for r in self.by_id.values() if r.employee_id == employee_id]

    def list_by_status(self, status: LeaveStatus):
        return [r for r in self.by_id.values() if r.status is status]


class InMemoryApprovals:
    def __init__(self):
        self.entries: list[Approval] = []

    def append(self, approval: Approval) -> Approval:
        saved = replace(approval, approval_id=len(self.entries) + 1)
        self.entries.append(saved)
        return saved

    def list_for_subject(self, subject_type: str, subject_id: int):
        return [a for a in self.entries if a.subject_type == subject_type and a.subject_id == subject_id]


class InMemoryAdjustments:
    def __init__(self, *requests: TimesheetAdjustmentRequest):
        self.by_id = {r.request_id: r for r in requests}

    def find_active_in_period(self, employee_id: int, start_date: date, end_date: date):
        return [
            r
            for r in self.by_id.values()
            if r.employee_id == employee_id
            and start_date <= r.work_date <= end_date
            and r.status in (AdjustmentStatus.PENDING, AdjustmentStatus.APPROVED)
        ]

    def cancel(self, request_id: int, employee_id: int) -> bool:
        current = self.by_id.get(request_id)
        if not current or current.employee_id != employee_id:
            return False
        self.by_id[request_id] = replace(current, status=AdjustmentStatus.CANCELLED)
        return True


@pytest.fixture
def employees():
    return InMemoryEmployees(
        Employee(employee_id=1, full_name="Aiko Tanaka"),
        Employee(employee_id=2, full_name="Kenji Sato", paid_leave_base_days=12, paid_leave_adjustment=-2),
        Employee(employee_id=3, full_name="Retired Person", is_active=False),
    )


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def balances():
    return InMemoryBalances()


@pytest.fixture
def grants():
    return InMemoryGrants()


@pytest.fixture
def leave_requests():
    return InMemoryLeaveRequests()


@pytest.fixture
def approvals():
    return InMemoryApprovals()


@pytest.fixture
def adjustments():
    return InMemoryAdjustments()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def container(employees, attendance_repo, balances, grants, leave_requests, approvals, adjustments, sleeps):
    return build_services(
        employees=employees,
        attendance=attendance_repo,
        balances=balances,
        grants=grants,
        leave_requests=leave_requests,
        approvals=approvals,
        adjustments=adjustments,
        sleep=sleeps.append,
    )


@pytest.fixture
def attendance_service(container):
    return container.attendance_service


@pytest.fixture
def ledger(container):
    return container.leave_ledger


@pytest.fixture
def workflow(container):
    return container.leave_request_service
