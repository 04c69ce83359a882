"""In-memory trace record store for guard events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ._config import get_config
from .types import BudgetSnapshot


@dataclass
class TraceRecord:
    """
    One record per guard event: a permitted tool call, a completed guarded
    response, or a raised exhaustion signal.

    Always written to the in-memory store regardless of export configuration.
    """

    event: str                          # "tool_call" | "response" | "exhausted"
    snapshot: BudgetSnapshot            # state after the event
    execution_id: str | None = None
    reason: str | None = None           # set for "exhausted"
    delta_tokens: int | None = None     # None when usage was missing
    max_output_tokens: int | None = None  # clamped value sent with the request
    duration_ms: int | None = None      # delegated call latency


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

# Process-global and unbounded; long-running processes should call clear() between runs.
_records: list[TraceRecord] = []


def record(trace: TraceRecord) -> None:
    """Append a trace record to the in-memory store and export it if a tracer is configured."""
    _records.append(trace)
    _export_if_configured(trace)


def all_records() -> list[TraceRecord]:
    """Return a snapshot of all trace records."""
    return list(_records)


def clear() -> None:
    """Clear all in-memory trace records (between runs, and in tests)."""
    _records.clear()


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def span_attributes(trace: TraceRecord) -> dict[str, Any]:
    """Flatten a trace record into span attributes for a tracer callable."""
    attrs: dict[str, Any] = {
        "budgetguard.event": trace.event,
        "budgetguard.execution_id": trace.execution_id,
        "budgetguard.reason": trace.reason,
        "budgetguard.duration_ms": trace.duration_ms,
        "gen_ai.request.max_tokens": trace.max_output_tokens,
        "gen_ai.usage.total_tokens": trace.delta_tokens,
    }
    for key, value in trace.snapshot.as_dict().items():
        attrs[f"budgetguard.{key}"] = value
    return attrs


def _export_if_configured(trace: TraceRecord) -> None:
    """Emit to the configured tracer, if any."""
    tracer = get_config().get("tracer")
    if tracer is None:
        return

    try:
        tracer(span_attributes(trace))
    except Exception:
        pass  # Tracer errors must not affect enforcement
