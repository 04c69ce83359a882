"""Tests for the budget state machine and the tool-call guard."""

from __future__ import annotations

import pytest

from budgetguard import (
    Budget,
    BudgetConfigError,
    BudgetExhausted,
    BudgetGuardError,
    BudgetLimits,
    configure,
    create_budget,
)
from budgetguard.budget import get_internals


def _limits(**overrides) -> dict:
    limits = {
        "max_steps": 3,
        "max_tool_calls": 2,
        "timeout_ms": 60_000,
        "max_output_tokens": 100,
        "max_tokens": 1_000,
    }
    limits.update(overrides)
    return limits


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

class TestCreateBudget:
    def test_accepts_mapping(self):
        budget = create_budget(_limits())
        assert isinstance(budget, Budget)

    def test_accepts_limits_model(self):
        budget = create_budget(BudgetLimits(**_limits()))
        assert budget.snapshot().max_steps == 3

    def test_handle_has_no_inspectable_state(self):
        budget = create_budget(_limits())
        assert not hasattr(budget, "__dict__")
        assert not hasattr(budget, "state")

    def test_zero_max_steps_rejected(self):
        with pytest.raises(BudgetConfigError):
            create_budget(_limits(max_steps=0))

    def test_unknown_field_rejected(self):
        with pytest.raises(BudgetConfigError):
            create_budget(_limits(max_cost=1.0))

    def test_bad_accounting_mode_rejected(self):
        with pytest.raises(BudgetConfigError):
            create_budget(_limits(token_accounting_mode="fail-sometimes"))

    def test_config_error_chains_validation_error(self):
        from pydantic import ValidationError

        with pytest.raises(BudgetConfigError) as exc_info:
            create_budget(_limits(timeout_ms=-1))
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_limits_are_frozen(self):
        limits = BudgetLimits(**_limits())
        with pytest.raises(Exception):
            limits.max_steps = 10

    def test_foreign_object_is_invalid(self):
        with pytest.raises(BudgetGuardError, match="Invalid budget"):
            get_internals(object())

    def test_unhashable_object_is_invalid(self):
        with pytest.raises(BudgetGuardError, match="Invalid budget"):
            get_internals({})

    def test_start_time_taken_from_clock(self, clock):
        budget = create_budget(_limits(), clock=clock)
        clock.advance(250)
        assert budget.snapshot().elapsed_ms == 250

    def test_mode_defaults_to_fail_open(self):
        budget = create_budget(_limits())
        assert get_internals(budget).mode == "fail-open"

    def test_mode_default_comes_from_config(self):
        configure(default_token_accounting_mode="fail-closed")
        budget = create_budget(_limits())
        assert get_internals(budget).mode == "fail-closed"

    def test_explicit_mode_beats_config(self):
        configure(default_token_accounting_mode="fail-closed")
        budget = create_budget(_limits(token_accounting_mode="fail-open"))
        assert get_internals(budget).mode == "fail-open"

    def test_config_change_does_not_affect_existing_budget(self):
        budget = create_budget(_limits())
        configure(default_token_accounting_mode="fail-closed")
        assert get_internals(budget).mode == "fail-open"


# ---------------------------------------------------------------------------
# Tool-call guard
# ---------------------------------------------------------------------------

class TestRecordToolCall:
    @pytest.mark.parametrize("max_tool_calls,attempts", [(1, 3), (2, 2), (5, 3), (4, 10)])
    def test_succeeds_min_of_limit_and_attempts(self, max_tool_calls, attempts):
        budget = create_budget(_limits(max_tool_calls=max_tool_calls))
        successes = 0
        failure = None
        for _ in range(attempts):
            try:
                budget.record_tool_call()
                successes += 1
            except BudgetExhausted as exc:
                failure = exc
                break
        assert successes == min(max_tool_calls, attempts)
        if attempts > max_tool_calls:
            assert failure is not None
            assert failure.reason == "TOOL_LIMIT"

    def test_failure_does_not_increment(self):
        budget = create_budget(_limits(max_tool_calls=1))
        budget.record_tool_call()
        for _ in range(3):
            with pytest.raises(BudgetExhausted):
                budget.record_tool_call()
        assert budget.snapshot().tool_calls_used == 1

    def test_tool_limit_snapshot_carries_counters(self):
        budget = create_budget(_limits(max_tool_calls=1, execution_id="run-7"))
        budget.record_tool_call()
        with pytest.raises(BudgetExhausted) as exc_info:
            budget.record_tool_call()
        exc = exc_info.value
        assert exc.execution_id == "run-7"
        assert exc.snapshot.tool_calls_used == 1
        assert exc.snapshot.max_tool_calls == 1
        assert exc.snapshot.overshoot is None
        assert str(exc) == "Budget exceeded: TOOL_LIMIT"

    def test_timeout_at_exact_boundary(self, clock):
        budget = create_budget(_limits(timeout_ms=1_000), clock=clock)
        clock.advance(999)
        budget.record_tool_call()
        clock.advance(1)
        with pytest.raises(BudgetExhausted) as exc_info:
            budget.record_tool_call()
        assert exc_info.value.reason == "TIMEOUT"
        assert exc_info.value.snapshot.elapsed_ms == 1_000

    def test_timeout_beats_tool_limit(self, clock):
        budget = create_budget(_limits(max_tool_calls=1, timeout_ms=1_000), clock=clock)
        budget.record_tool_call()
        clock.advance(5_000)
        with pytest.raises(BudgetExhausted) as exc_info:
            budget.record_tool_call()
        assert exc_info.value.reason == "TIMEOUT"

    def test_tool_limit_beats_latched_reason(self):
        budget = create_budget(_limits(max_tool_calls=1))
        budget.record_tool_call()
        state = get_internals(budget).state
        state.terminated_reason = "TOKEN_LIMIT"
        with pytest.raises(BudgetExhausted) as exc_info:
            budget.record_tool_call()
        assert exc_info.value.reason == "TOOL_LIMIT"

    def test_no_execution_id_is_none(self):
        budget = create_budget(_limits(max_tool_calls=1))
        budget.record_tool_call()
        with pytest.raises(BudgetExhausted) as exc_info:
            budget.record_tool_call()
        assert exc_info.value.execution_id is None


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

class TestSnapshot:
    def test_snapshot_is_read_only(self):
        budget = create_budget(_limits())
        snap = budget.snapshot()
        with pytest.raises(Exception):
            snap.steps_used = 5

    def test_snapshot_does_not_mutate(self):
        budget = create_budget(_limits())
        budget.snapshot()
        budget.snapshot()
        assert budget.snapshot().tool_calls_used == 0

    def test_snapshot_is_fresh_each_time(self):
        budget = create_budget(_limits())
        before = budget.snapshot()
        budget.record_tool_call()
        after = budget.snapshot()
        assert before.tool_calls_used == 0
        assert after.tool_calls_used == 1

    def test_as_dict_contains_all_fields(self):
        snap = create_budget(_limits()).snapshot()
        assert set(snap.as_dict()) == {
            "steps_used",
            "max_steps",
            "tool_calls_used",
            "max_tool_calls",
            "tokens_used",
            "max_tokens",
            "elapsed_ms",
            "timeout_ms",
            "token_accounting_reliable",
            "overshoot",
        }
