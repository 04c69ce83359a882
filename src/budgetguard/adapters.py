"""Ready-made API bindings for guarded_response()."""

from __future__ import annotations

from typing import Any

import litellm

from .guard import ApiCall


def litellm_responses(model: str, **defaults: Any) -> ApiCall:
    """
    Return an async callable that sends clamped params to litellm's
    Responses API.

        call = litellm_responses("openai/gpt-4.1-mini", temperature=0)
        response = await guarded_response(budget, {"input": "hi"}, call)

    Per-call params override `defaults`; `model` is fixed by the binding.
    """

    async def _call(params: dict[str, Any]) -> Any:
        kwargs = {**defaults, **params, "model": model}
        return await litellm.aresponses(**kwargs)

    _call.__qualname__ = f"litellm_responses[{model}]"
    return _call
