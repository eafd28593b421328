from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.responses import current_employee_id, json_endpoint, login_required
from ..core.enums import ErrorCode
from ..core.exceptions import ValidationError
from ..container import Container


def _optional_date(name: str):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date for '{name}' (expected YYYY-MM-DD)", ErrorCode.INVALID_DATE_RANGE) from e


def _optional_int(name: str):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ValidationError(f"Invalid value for '{name}'", ErrorCode.INVALID_REQUEST) from e


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="attendance_clock_in")
    @login_required
    @json_endpoint
    def clock_in():
        return service.clock_in(current_employee_id())

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="attendance_clock_out")
    @login_required
    @json_endpoint
    def clock_out():
        return service.clock_out(current_employee_id())

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    @json_endpoint
    def today():
        return service.today(current_employee_id())

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    @json_endpoint
    def history():
        return service.history(
            current_employee_id(),
            _optional_date("start"),
            _optional_date("end"),
            year=_optional_int("year"),
            month=_optional_int("month"),
        )

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="attendance_summary")
    @login_required
    @json_endpoint
    def summary():
        year, month = _optional_int("year"), _optional_int("month")
        if year is None or month is None:
            raise ValidationError("Both year and month are required", ErrorCode.INVALID_REQUEST)
        return service.monthly_summary(current_employee_id(), year, month)
