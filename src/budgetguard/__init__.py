"""
budgetguard: hard ceilings for agent loops that call generative APIs.

Public API surface (v1):

    Budget:       create_budget, Budget, BudgetLimits, BudgetSnapshot
    Guards:       guarded_response, Budget.record_tool_call
    Decorators:   @guarded, @tool
    Adapters:     litellm_responses
    Types:        BudgetReason, TokenAccountingMode
    Utilities:    configure
    Errors:       BudgetGuardError, BudgetConfigError, BudgetExhausted, is_budget_exhausted
    Trace:        TraceRecord, all_records, clear_traces
"""

from __future__ import annotations

from .types import BudgetLimits, BudgetReason, BudgetSnapshot, TokenAccountingMode
from .exceptions import (
    BudgetGuardError,
    BudgetConfigError,
    BudgetExhausted,
    is_budget_exhausted,
)
from .budget import Budget, create_budget
from .guard import guarded_response
from .decorators import guarded, tool
from .adapters import litellm_responses
from .trace import TraceRecord, all_records, clear as clear_traces
from ._config import configure
from . import exporters


__all__ = [
    # Budget
    "create_budget",
    "Budget",
    "BudgetLimits",
    "BudgetSnapshot",
    # Guards
    "guarded_response",
    # Decorators
    "guarded",
    "tool",
    # Adapters
    "litellm_responses",
    # Types
    "BudgetReason",
    "TokenAccountingMode",
    # Configuration
    "configure",
    # Trace
    "TraceRecord",
    "all_records",
    "clear_traces",
    # Errors
    "BudgetGuardError",
    "BudgetConfigError",
    "BudgetExhausted",
    "is_budget_exhausted",
    # Exporters
    "exporters",
]
