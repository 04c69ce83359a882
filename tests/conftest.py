"""Shared fixtures: deterministic clock, trace and config isolation."""

from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

# Use litellm's bundled model cost map instead of fetching it over the network
# at import time (the failed fetch deadlocks litellm's logging under pytest).
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from budgetguard._config import get_config
from budgetguard.trace import clear as clear_traces


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolate_globals():
    config = get_config()
    saved = dict(config)
    clear_traces()
    yield
    config.clear()
    config.update(saved)
    clear_traces()
