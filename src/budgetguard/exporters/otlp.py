"""
Built-in OTLP emitter.

POSTs HTTP/JSON to any OTLP endpoint. No opentelemetry-sdk dependency required.
Configure via: budgetguard.configure(tracer=budgetguard.exporters.otel(endpoint="..."))
"""

from __future__ import annotations

import json
import secrets
import threading
import time
import uuid
from typing import Any
from urllib.request import Request, urlopen


def otel(
    endpoint: str = "http://localhost:4318/v1/traces",
    service_name: str = "budgetguard",
    timeout_seconds: float = 5.0,
) -> Any:
    """
    Factory that returns a tracer callable compatible with budgetguard.configure(tracer=...).

    The returned callable accepts a dict of span attributes and POSTs them
    as an OTLP HTTP/JSON trace to the configured endpoint.
    """

    def _emit(span_attrs: dict[str, Any]) -> None:
        """
        Fire-and-forget OTLP span emission.

        Runs in a daemon thread so it never blocks the calling coroutine.
        """

        def _post() -> None:
            try:
                body = _build_otlp_body(span_attrs, service_name, time.time_ns())
                req = Request(
                    endpoint,
                    data=json.dumps(body).encode("utf-8"),
                    headers={
                        "Content-Type": "application/json",
                        "Accept": "application/json",
                    },
                    method="POST",
                )
                with urlopen(req, timeout=timeout_seconds) as resp:
                    resp.read()  # drain
            except Exception:
                pass  # tracer failures must not affect enforcement

        threading.Thread(target=_post, daemon=True).start()

    return _emit


def _trace_id(execution_id: str | None) -> str:
    """
    32-hex-char OTLP trace id. UUID execution ids map onto it directly so all
    spans of one run share a trace; anything else gets a random id.
    """
    if execution_id:
        try:
            return uuid.UUID(execution_id).hex
        except ValueError:
            pass
    return secrets.token_hex(16)


def _build_otlp_body(
    span_attrs: dict[str, Any],
    service_name: str,
    now_ns: int,
) -> dict:
    """Build a minimal OTLP HTTP/JSON trace body with a single span."""
    span_name = f"budgetguard.{span_attrs.get('budgetguard.event', 'event')}"

    # Only delegated calls have a duration; other events are instantaneous.
    duration_ms = span_attrs.get("budgetguard.duration_ms")
    if duration_ms is not None:
        start_time_unix_nano = now_ns - int(duration_ms * 1_000_000)
    else:
        start_time_unix_nano = now_ns

    # STATUS_CODE_ERROR for exhaustion, OK otherwise
    status_code = 2 if span_attrs.get("budgetguard.reason") else 1

    return {
        "resourceSpans": [
            {
                "resource": {
                    "attributes": _attrs_to_kv({"service.name": service_name}),
                },
                "scopeSpans": [
                    {
                        "scope": {"name": "budgetguard", "version": "0.1.0"},
                        "spans": [
                            {
                                "traceId": _trace_id(span_attrs.get("budgetguard.execution_id")),
                                "spanId": secrets.token_hex(8),
                                "name": span_name,
                                "kind": 1,  # INTERNAL
                                "startTimeUnixNano": str(start_time_unix_nano),
                                "endTimeUnixNano": str(now_ns),
                                "attributes": _attrs_to_kv(span_attrs),
                                "status": {"code": status_code},
                            }
                        ],
                    }
                ],
            }
        ]
    }


def _attrs_to_kv(attrs: dict[str, Any]) -> list[dict]:
    """Convert a flat dict to OTLP KeyValue list."""
    result = []
    for key, value in attrs.items():
        if value is None:
            continue
        if isinstance(value, bool):
            kv = {"key": key, "value": {"boolValue": value}}
        elif isinstance(value, int):
            kv = {"key": key, "value": {"intValue": str(value)}}
        elif isinstance(value, float):
            kv = {"key": key, "value": {"doubleValue": value}}
        else:
            kv = {"key": key, "value": {"stringValue": str(value)}}
        result.append(kv)
    return result
