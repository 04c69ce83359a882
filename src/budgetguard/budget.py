"""Budget state machine: opaque per-run handle plus its private internals."""

from __future__ import annotations

import time
import weakref
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError

from ._config import get_config
from .exceptions import BudgetConfigError, BudgetExhausted, BudgetGuardError
from .trace import TraceRecord, record
from .types import BudgetLimits, BudgetReason, BudgetSnapshot, TokenAccountingMode

Clock = Callable[[], float]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------

@dataclass
class _BudgetState:
    steps_used: int = 0
    tool_calls_used: int = 0
    tokens_used: int = 0
    start_time: float = 0.0
    terminated_reason: BudgetReason | None = None
    terminated_snapshot: BudgetSnapshot | None = None
    token_accounting_reliable: bool = True


@dataclass
class _BudgetInternals:
    limits: BudgetLimits
    state: _BudgetState
    now: Clock
    mode: TokenAccountingMode  # resolved once at creation

    def elapsed_ms(self) -> float:
        return self.now() - self.state.start_time


# Keyed by handle identity; entries disappear with the handle.
_internals: weakref.WeakKeyDictionary[Budget, _BudgetInternals] = weakref.WeakKeyDictionary()


def get_internals(budget: Any) -> _BudgetInternals:
    """Return the private internals for a handle created by create_budget."""
    try:
        return _internals[budget]
    except (KeyError, TypeError):
        raise BudgetGuardError("Invalid budget") from None


def create_snapshot(internals: _BudgetInternals, overshoot: int | None = None) -> BudgetSnapshot:
    """Build a fresh snapshot of current consumption against limits."""
    limits, state = internals.limits, internals.state
    return BudgetSnapshot(
        steps_used=state.steps_used,
        max_steps=limits.max_steps,
        tool_calls_used=state.tool_calls_used,
        max_tool_calls=limits.max_tool_calls,
        tokens_used=state.tokens_used,
        max_tokens=limits.max_tokens,
        elapsed_ms=internals.elapsed_ms(),
        timeout_ms=limits.timeout_ms,
        token_accounting_reliable=state.token_accounting_reliable,
        overshoot=overshoot,
    )


def exhausted(
    internals: _BudgetInternals,
    reason: BudgetReason,
    snapshot: BudgetSnapshot | None = None,
) -> BudgetExhausted:
    """Build (and trace) the exhaustion signal for `reason`. The caller raises it."""
    if snapshot is None:
        snapshot = create_snapshot(internals)
    execution_id = internals.limits.execution_id
    record(TraceRecord(
        event="exhausted",
        snapshot=snapshot,
        execution_id=execution_id,
        reason=reason,
    ))
    return BudgetExhausted(reason, snapshot, execution_id)


def check_preflight(
    internals: _BudgetInternals,
    used: int,
    limit: int,
    limit_reason: BudgetReason,
) -> None:
    """
    Pre-flight checks shared by both guards, in fixed precedence:
    timeout, then the guard's own counter limit, then a latched termination.
    """
    limits, state = internals.limits, internals.state

    if internals.elapsed_ms() >= limits.timeout_ms:
        raise exhausted(internals, "TIMEOUT")

    if used + 1 > limit:
        raise exhausted(internals, limit_reason)

    if state.terminated_reason is not None:
        raise exhausted(internals, state.terminated_reason, state.terminated_snapshot)


# ---------------------------------------------------------------------------
# Public handle
# ---------------------------------------------------------------------------

class Budget:
    """
    Opaque per-run budget handle returned by create_budget().

    Holds no inspectable state. Counters change only through
    record_tool_call() and guarded_response(). Not safe to share across
    concurrent runs.
    """

    __slots__ = ("__weakref__",)

    def record_tool_call(self) -> None:
        """
        Consume one tool-call unit, or raise BudgetExhausted.

        Precedence: TIMEOUT > TOOL_LIMIT > latched reason. The counter is only
        incremented when every check passes.
        """
        internals = get_internals(self)
        state = internals.state
        check_preflight(
            internals, state.tool_calls_used, internals.limits.max_tool_calls, "TOOL_LIMIT"
        )
        state.tool_calls_used += 1
        record(TraceRecord(
            event="tool_call",
            snapshot=create_snapshot(internals),
            execution_id=internals.limits.execution_id,
        ))

    def snapshot(self) -> BudgetSnapshot:
        """Return a read-only view of current consumption. Never mutates."""
        return create_snapshot(get_internals(self))

    def __repr__(self) -> str:
        return f"<Budget at {id(self):#x}>"


def create_budget(
    limits: BudgetLimits | Mapping[str, Any],
    clock: Clock | None = None,
) -> Budget:
    """
    Create a fresh budget for one run.

    `limits` may be a BudgetLimits or a mapping of its fields. `clock` is a
    zero-argument callable returning milliseconds; it defaults to a monotonic
    clock and exists so tests can drive elapsed time deterministically.
    """
    if not isinstance(limits, BudgetLimits):
        try:
            limits = BudgetLimits(**limits)
        except ValidationError as exc:
            raise BudgetConfigError(f"Invalid budget limits: {exc}") from exc

    now = clock if clock is not None else _monotonic_ms
    mode = limits.token_accounting_mode or get_config()["default_token_accounting_mode"]

    budget = Budget()
    _internals[budget] = _BudgetInternals(
        limits=limits,
        state=_BudgetState(start_time=now()),
        now=now,
        mode=mode,
    )
    return budget
