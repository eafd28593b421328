from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..core.constants import DAYS_SCALE


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def to_days(value) -> Decimal:
    """Normalize a day count to a 2-decimal Decimal (never float arithmetic)."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(DAYS_SCALE)
