"""Tracer factories for budgetguard.configure(tracer=...)."""

from .otlp import otel

__all__ = ["otel"]
