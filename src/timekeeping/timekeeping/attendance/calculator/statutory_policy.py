from __future__ import annotations

from ...core.constants import BREAK_TIERS
from .base import BreakPolicy


class StatutoryBreakPolicy(BreakPolicy):
    """Statutory rule: under 6h no break, 6h to under 8h 45 min, 8h or more 60 min."""

    def __init__(self, tiers=BREAK_TIERS):
        self._tiers = tuple(sorted(tiers, reverse=True))

    def required_break_minutes(self, elapsed_minutes: int) -> int:
        for threshold, minutes in self._tiers:
            if elapsed_minutes >= threshold:
                return minutes
        return 0
