"""
02 — Fail-closed accounting

A provider that sometimes omits usage data. Under fail-open (the default)
the run continues with the token ceiling suspended; under fail-closed the
first usage-less response stops the run with USAGE_UNAVAILABLE.

Run: python examples/02_fail_closed.py
"""

from __future__ import annotations

import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from budgetguard import BudgetExhausted, create_budget, guarded


LIMITS = {
    "max_steps": 4,
    "max_tool_calls": 1,
    "timeout_ms": 5_000,
    "max_output_tokens": 100,
    "max_tokens": 250,
}


async def run(mode: str) -> None:
    budget = create_budget({**LIMITS, "token_accounting_mode": mode})
    turn = 0

    @guarded(budget)
    async def flaky_provider(params):
        nonlocal turn
        turn += 1
        if turn == 2:
            return {"output": "..."}  # no usage reported
        return {"output": "...", "usage": {"prompt_tokens": 60, "completion_tokens": 40}}

    print(f"{mode}:")
    try:
        for _ in range(LIMITS["max_steps"]):
            await flaky_provider({"input": "next"})
            snap = budget.snapshot()
            print(f"  step {snap.steps_used}: tokens={snap.tokens_used} reliable={snap.token_accounting_reliable}")
    except BudgetExhausted as exc:
        print(f"  stopped: {exc.reason}")


async def main():
    await run("fail-open")
    await run("fail-closed")


if __name__ == "__main__":
    asyncio.run(main())
