"""Global budgetguard configuration."""

from __future__ import annotations

from typing import Any

from .types import TokenAccountingMode


_config: dict[str, Any] = {
    "tracer": None,                                # None = no span export
    "default_token_accounting_mode": "fail-open",  # used when BudgetLimits leaves it unset
}


def configure(
    tracer: Any = None,
    default_token_accounting_mode: TokenAccountingMode | None = None,
) -> None:
    """
    Set global budgetguard configuration.

    Configuration is global and set once at startup. A mode given explicitly
    in BudgetLimits takes precedence over the global default, and the default
    is read once when each budget is created, so changing it never affects a
    run already in progress.
    """
    if tracer is not None:
        _config["tracer"] = tracer
    if default_token_accounting_mode is not None:
        if default_token_accounting_mode not in ("fail-open", "fail-closed"):
            raise ValueError(
                f"Unknown token accounting mode: {default_token_accounting_mode!r}"
            )
        _config["default_token_accounting_mode"] = default_token_accounting_mode


def get_config() -> dict[str, Any]:
    """Return the current configuration dict (mutable reference)."""
    return _config
