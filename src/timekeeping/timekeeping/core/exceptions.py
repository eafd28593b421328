from __future__ import annotations

from .enums import ErrorCode


class DomainError(Exception):
    """Base exception for business rule violations."""

    default_code = ErrorCode.INVALID_REQUEST

    def __init__(self, message: str, code: ErrorCode | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when an employee or leave request does not exist."""

    default_code = ErrorCode.EMPLOYEE_NOT_FOUND


class ConcurrentUpdateError(DomainError):
    """Raised when a write kept losing optimistic-lock races."""

    default_code = ErrorCode.CONCURRENT_UPDATE_ERROR


class InternalError(DomainError):
    default_code = ErrorCode.INTERNAL_ERROR


class OptimisticLockError(Exception):
    """Raised by versioned repositories when the stored version has moved on."""


class InsufficientBalanceError(ValidationError):
    """Raised when a leave balance cannot cover the requested days."""
