from __future__ import annotations

from abc import ABC, abstractmethod


class BreakPolicy(ABC):
    """Break policy interface (Strategy Pattern for break deduction)."""

    @abstractmethod
    def required_break_minutes(self, elapsed_minutes: int) -> int:
        raise NotImplementedError
