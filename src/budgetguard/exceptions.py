"""budgetguard exception hierarchy."""

from __future__ import annotations

from typing import Any

from .types import BudgetReason, BudgetSnapshot


class BudgetGuardError(Exception):
    """Base class for all budgetguard errors."""


class BudgetConfigError(BudgetGuardError):
    """Raised when budget limits fail validation at creation time."""


class BudgetExhausted(BudgetGuardError):
    """
    Raised by every enforcement point when a run's budget is exhausted.

    Carries the reason code, a point-in-time snapshot of all counters and
    limits, and the run's execution_id (if one was supplied in the limits).
    """

    def __init__(
        self,
        reason: BudgetReason,
        snapshot: BudgetSnapshot,
        execution_id: str | None = None,
    ) -> None:
        self.reason = reason
        self.snapshot = snapshot
        self.execution_id = execution_id
        super().__init__(f"Budget exceeded: {reason}")


def is_budget_exhausted(exc: Any) -> bool:
    """Return True if `exc` is a BudgetExhausted signal rather than an arbitrary error."""
    return isinstance(exc, BudgetExhausted)
