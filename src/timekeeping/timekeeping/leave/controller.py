from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Type, TypeVar

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.responses import admin_required, current_employee_id, json_endpoint, login_required
from ..common.results import ServiceResult
from ..core.enums import ErrorCode, LeaveStatus, LeaveTimeUnit, LeaveType
from ..core.exceptions import ValidationError
from ..container import Container

E = TypeVar("E", bound=Enum)


def _body() -> dict:
    return request.get_json(silent=True) or {}


def _enum(data: dict, name: str, enum_cls: Type[E]) -> Optional[E]:
    value = data.get(name)
    if value in (None, ""):
        return None
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError as e:
        raise ValidationError(f"Unknown value for '{name}': {value}", ErrorCode.INVALID_REQUEST) from e


def _date(data: dict, name: str):
    value = data.get(name)
    if value in (None, ""):
        return None
    try:
        return parse_iso_date(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid date for '{name}' (expected YYYY-MM-DD)", ErrorCode.INVALID_DATE_RANGE) from e


def _decimal(data: dict, name: str) -> Optional[Decimal]:
    value = data.get(name)
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid number for '{name}'", ErrorCode.INVALID_REQUEST) from e


def _int(data: dict, name: str) -> Optional[int]:
    value = data.get(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid value for '{name}'", ErrorCode.INVALID_REQUEST) from e


def register(app: Flask, container: Container) -> None:
    workflow = container.leave_request_service
    ledger = container.leave_ledger

    # ---- employee endpoints ----

    @app.route("/api/leave/requests", methods=["POST"], endpoint="leave_create_request")
    @login_required
    @json_endpoint
    def create_request():
        data = _body()
        return workflow.create_leave_request(
            current_employee_id(),
            _enum(data, "leave_type", LeaveType),
            _enum(data, "time_unit", LeaveTimeUnit),
            _date(data, "start_date"),
            _date(data, "end_date"),
            data.get("reason"),
        )

    @app.route("/api/leave/requests", methods=["GET"], endpoint="leave_my_requests")
    @login_required
    @json_endpoint
    def my_requests():
        return workflow.list_for_employee(current_employee_id())

    @app.route("/api/leave/requests/<int:request_id>/cancel", methods=["POST"], endpoint="leave_cancel_request")
    @login_required
    @json_endpoint
    def cancel_request(request_id: int):
        return workflow.cancel_request(request_id, current_employee_id())

    @app.route("/api/leave/balances", methods=["GET"], endpoint="leave_balances")
    @login_required
    @json_endpoint
    def balances():
        employee_id = current_employee_id()
        return ServiceResult.ok(
            "Leave balances loaded",
            {
                "remaining": ledger.remaining_summary(employee_id),
                "grants": list(ledger.active_grants(employee_id)),
            },
        )

    # ---- admin endpoints ----

    @app.route("/api/admin/leave/requests/pending", methods=["GET"], endpoint="admin_leave_pending")
    @admin_required
    @json_endpoint
    def pending_requests():
        return workflow.list_pending()

    @app.route("/api/admin/leave/requests/<int:request_id>/decision", methods=["POST"], endpoint="admin_leave_decision")
    @admin_required
    @json_endpoint
    def decide(request_id: int):
        data = _body()
        status = _enum(data, "status", LeaveStatus)
        if status is None:
            raise ValidationError("Target status is required", ErrorCode.INVALID_STATUS_CHANGE)
        return workflow.update_status(request_id, status, current_employee_id(), data.get("comment"))

    @app.route("/api/admin/leave/grants", methods=["POST"], endpoint="admin_leave_grant")
    @admin_required
    @json_endpoint
    def grant():
        data = _body()
        leave_type = _enum(data, "leave_type", LeaveType)
        if leave_type is None:
            raise ValidationError("Leave type is required", ErrorCode.INVALID_REQUEST)
        args = (leave_type, _decimal(data, "days"), _date(data, "granted_at"), _date(data, "expires_at"))

        employee_id = _int(data, "employee_id")
        if employee_id is None:
            count = ledger.apply_grant_to_all(*args, granted_by=current_employee_id())
            return ServiceResult.ok(f"Leave granted to {count} employees", {"count": count})
        saved = ledger.apply_grant(employee_id, *args, granted_by=current_employee_id())
        return ServiceResult.ok("Leave granted", saved)

    @app.route("/api/admin/leave/balances/adjust", methods=["POST"], endpoint="admin_leave_adjust")
    @admin_required
    @json_endpoint
    def adjust():
        data = _body()
        employee_id = _int(data, "employee_id")
        if employee_id is None:
            raise ValidationError("Employee is required", ErrorCode.INVALID_REQUEST)
        balance = ledger.adjust_paid_leave(employee_id, _int(data, "delta_days") or 0)
        return ServiceResult.ok("Paid leave adjusted", balance)
