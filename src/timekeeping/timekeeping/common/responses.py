from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, session

from ..core.enums import ErrorCode
from ..core.exceptions import DomainError, InternalError
from .results import ServiceResult

logger = logging.getLogger(__name__)

ADMIN_ROLE = "ADMIN"

_STATUS_BY_CODE = {
    ErrorCode.EMPLOYEE_NOT_FOUND: 404,
    ErrorCode.VACATION_NOT_FOUND: 404,
    ErrorCode.CONCURRENT_UPDATE_ERROR: 409,
    ErrorCode.INTERNAL_ERROR: 500,
}


def result_response(result: ServiceResult, status: int = 200):
    return jsonify(result.to_dict()), status


def error_response(error: DomainError):
    return result_response(ServiceResult.fail(error), _STATUS_BY_CODE.get(error.code, 400))


def json_endpoint(view):
    """Run a view returning a ServiceResult and map failures to the result shape."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return result_response(view(*args, **kwargs))
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error in %s", view.__name__)
            return error_response(InternalError("Internal error"))

    return wrapper


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "employee_id" not in session:
            return jsonify({"success": False, "message": "Login required", "data": None}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "employee_id" not in session:
            return jsonify({"success": False, "message": "Login required", "data": None}), 401
        if session.get("role") != ADMIN_ROLE:
            return jsonify({"success": False, "message": "Forbidden", "data": None}), 403
        return view(*args, **kwargs)

    return wrapper


def current_employee_id() -> int:
    return int(session["employee_id"])
