"""
01 — Bounded agent loop

One budget per run. Every model turn goes through guarded_response(), every
tool call through @tool. The loop ends when the model stops asking for tools
or when the budget raises BudgetExhausted, whichever comes first.

Run: python examples/01_agent_loop.py
"""

from __future__ import annotations

import asyncio
import os
import sys
import uuid

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import litellm
litellm.suppress_debug_info = True

from budgetguard import (
    BudgetExhausted,
    all_records,
    clear_traces,
    create_budget,
    guarded_response,
    litellm_responses,
    tool,
)


async def main():
    clear_traces()

    budget = create_budget({
        "max_steps": 6,
        "max_tool_calls": 4,
        "timeout_ms": 30_000,
        "max_output_tokens": 400,
        "max_tokens": 8_000,
        "execution_id": str(uuid.uuid4()),
    })
    call = litellm_responses("openai/gpt-4.1-mini")

    @tool(budget)
    def word_count(text: str) -> int:
        return len(text.split())

    prompt = "Write one sentence about rivers, then say DONE."
    try:
        while True:
            response = await guarded_response(budget, {"input": prompt}, call)
            text = response.output_text
            print(f"model: {text[:80]}")
            if "DONE" in text:
                break
            prompt = f"That was {word_count(text)} words. Shorter please, then say DONE."
    except BudgetExhausted as exc:
        snap = exc.snapshot
        print(f"\nstopped: {exc.reason}")
        print(f"  steps {snap.steps_used}/{snap.max_steps}  tools {snap.tool_calls_used}/{snap.max_tool_calls}")
        print(f"  tokens {snap.tokens_used}/{snap.max_tokens}  overshoot {snap.overshoot}")

    print("\n" + "-" * 60)
    print("Trace:")
    for rec in all_records():
        s = rec.snapshot
        print(f"  {rec.event:9} steps={s.steps_used} tools={s.tool_calls_used} tokens={s.tokens_used}"
              f"{'  ' + rec.reason if rec.reason else ''}")


if __name__ == "__main__":
    asyncio.run(main())
