"""Guarded call wrapper around a single generative-response API invocation."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Mapping
from typing import Any, Awaitable, Callable

from .budget import check_preflight, create_snapshot, exhausted, get_internals
from .trace import TraceRecord, record

logger = logging.getLogger(__name__)

ApiCall = Callable[[dict[str, Any]], Awaitable[Any]]


# ---------------------------------------------------------------------------
# Usage extraction
# ---------------------------------------------------------------------------

def _field(obj: Any, name: str) -> Any:
    """Read `name` from a mapping key or an attribute, whichever the object has."""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _is_count(value: Any) -> bool:
    """True for a finite, non-negative int or float (bools excluded)."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    return math.isfinite(value) and value >= 0


def extract_usage(response: Any) -> int | float | None:
    """
    Return the token delta reported by `response`, or None if unusable.

    A usable `total_tokens` wins; otherwise `prompt_tokens + completion_tokens`
    when both are usable. Negative, NaN and infinite counts are unusable.
    """
    usage = _field(response, "usage")
    if usage is None:
        return None

    total = _field(usage, "total_tokens")
    if _is_count(total):
        return total

    prompt = _field(usage, "prompt_tokens")
    completion = _field(usage, "completion_tokens")
    if _is_count(prompt) and _is_count(completion):
        return prompt + completion

    return None


def clamp_params(params: Mapping[str, Any], max_output_tokens: int) -> dict[str, Any]:
    """
    Shallow copy of `params` with max_output_tokens capped at the per-call limit.

    A missing, non-numeric, bool or negative request counts as absent.
    """
    requested = params.get("max_output_tokens")
    if not _is_count(requested):
        requested = math.inf
    clamped = dict(params)
    clamped["max_output_tokens"] = min(requested, max_output_tokens)
    return clamped


# ---------------------------------------------------------------------------
# Guarded call
# ---------------------------------------------------------------------------

async def guarded_response(
    budget: Any,
    params: Mapping[str, Any],
    fn: ApiCall,
) -> Any:
    """
    Run one budgeted call to `fn`.

    1. Pre-flight: TIMEOUT > STEP_LIMIT > latched reason
    2. Consume the step (never rolled back, even if `fn` raises)
    3. Clamp max_output_tokens and await `fn`
    4. Extract usage; degrade or fail according to the accounting mode
    5. Add the delta, and latch TOKEN_LIMIT if the total now exceeds max_tokens

    The response is returned unmodified, including on the call that causes
    the token overshoot. Exceptions from `fn` propagate untouched.
    """
    internals = get_internals(budget)
    limits, state = internals.limits, internals.state

    check_preflight(internals, state.steps_used, limits.max_steps, "STEP_LIMIT")
    state.steps_used += 1

    call_params = clamp_params(params, limits.max_output_tokens)
    if call_params["max_output_tokens"] != params.get("max_output_tokens"):
        logger.debug(
            "Clamped max_output_tokens from %r to %r",
            params.get("max_output_tokens"),
            call_params["max_output_tokens"],
        )

    start = time.monotonic()
    response = await fn(call_params)
    duration_ms = int((time.monotonic() - start) * 1000)

    delta = extract_usage(response)
    if delta is None:
        if internals.mode == "fail-closed":
            raise exhausted(internals, "USAGE_UNAVAILABLE")
        if state.token_accounting_reliable:
            logger.warning(
                "Response reported no usable token usage; cumulative token limit "
                "disabled for the rest of run %s",
                limits.execution_id,
            )
        state.token_accounting_reliable = False

    state.tokens_used += delta or 0

    if state.token_accounting_reliable and state.tokens_used > limits.max_tokens:
        overshoot = state.tokens_used - limits.max_tokens
        state.terminated_reason = "TOKEN_LIMIT"
        state.terminated_snapshot = create_snapshot(internals, overshoot)
        logger.warning(
            "Token limit exceeded by %s (%s > %s); run %s is terminated",
            overshoot,
            state.tokens_used,
            limits.max_tokens,
            limits.execution_id,
        )

    record(TraceRecord(
        event="response",
        snapshot=create_snapshot(internals),
        execution_id=limits.execution_id,
        delta_tokens=delta,
        max_output_tokens=call_params["max_output_tokens"],
        duration_ms=duration_ms,
    ))
    return response
