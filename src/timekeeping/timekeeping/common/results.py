from __future__ import annotations

from dataclasses import asdict, dataclass, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from ..core.enums import ErrorCode
from ..core.exceptions import DomainError


@dataclass(frozen=True)
class ServiceResult:
    """Uniform result shape returned to callers of the public operations."""

    success: bool
    message: str
    data: Any = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, message: str = "", data: Any = None) -> "ServiceResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: DomainError) -> "ServiceResult":
        return cls(success=False, message=error.message, error_code=error.code)

    def to_dict(self) -> dict:
        body = {"success": self.success, "message": self.message, "data": _plain(self.data)}
        if self.error_code is not None:
            body["errorCode"] = self.error_code.value
        return body


def _plain(value: Any) -> Any:
    # JSON-friendly conversion for dataclasses, enums, decimals and dates.
    if value is None:
        return None
    if is_dataclass(value) and not isinstance(value, type):
        return _plain(asdict(value))
    if isinstance(value, dict):
        return {(k.value if isinstance(k, Enum) else k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%dT%H:%M")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    return value
