"""Public type definitions: BudgetLimits, BudgetSnapshot and the reason/mode literals."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

BudgetReason = Literal[
    "TIMEOUT",
    "STEP_LIMIT",
    "TOOL_LIMIT",
    "TOKEN_LIMIT",
    "USAGE_UNAVAILABLE",
]

TokenAccountingMode = Literal["fail-open", "fail-closed"]


class BudgetLimits(BaseModel):
    """
    Caller-supplied ceilings for a single run. Immutable once created.

    `token_accounting_mode` governs what happens when a response fails to
    report usable token usage. Left as None, the process-wide default from
    `configure()` is resolved when the budget is created.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_steps: int = Field(gt=0)
    max_tool_calls: int = Field(gt=0)
    timeout_ms: float = Field(gt=0)       # wall-clock ceiling from budget creation
    max_output_tokens: int = Field(gt=0)  # per-call cap
    max_tokens: int = Field(ge=0)         # cumulative cap across the run
    token_accounting_mode: TokenAccountingMode | None = None
    execution_id: str | None = None


@dataclass(frozen=True)
class BudgetSnapshot:
    """
    Read-only view of a budget's consumption against its limits.

    Built fresh on demand; embedded in every BudgetExhausted. `overshoot` is
    only set on the snapshot frozen at the moment a token limit is breached.
    """

    steps_used: int
    max_steps: int
    tool_calls_used: int
    max_tool_calls: int
    tokens_used: int
    max_tokens: int
    elapsed_ms: float
    timeout_ms: float
    token_accounting_reliable: bool
    overshoot: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)
