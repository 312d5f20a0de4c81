"""
settlement_engines.tracer -- ``@traced_engine`` and SETTLEMENT_ENGINE_TRACE.

Responsibility:
    Wraps the pure settlement calculations (projected payout, progress
    derivation) so each call leaves one structured trace record naming
    the engine, its version, a fingerprint of the inputs that determine
    the result, and the elapsed time.

Architecture position:
    Engines -- support code for the calculation layer.  Emits a log
    record only; the wrapped function stays pure.

Invariants enforced:
    - The fingerprint is the SHA-256 of a canonical JSON document of the
      selected arguments after defaults are applied, so positional,
      keyword and defaulted calls with equal inputs share a fingerprint.
    - Dataclasses (``WorkflowModel``, ``LoadSnapshot``) are expanded
      field by field; enums by value; dates and Decimals as text.

Failure modes:
    - Exceptions from the wrapped engine propagate; no trace is emitted.

Usage:
    @traced_engine("fees.projected_payout", "1.0", fingerprint_fields=("base", "model"))
    def projected_payout(flow_type, base, model): ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import json
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from settlement_kernel.logging_config import get_logger

TRACE_TYPE = "SETTLEMENT_ENGINE_TRACE"

logger = get_logger("engines.tracer")


def _plain(value: Any) -> Any:
    """JSON-ready form of an engine argument."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, Decimal)):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def compute_input_fingerprint(fingerprint_fields: tuple[str, ...], arguments: Mapping[str, Any]) -> str:
    """16-hex-char SHA-256 prefix over the selected arguments (absent ones as null)."""
    document = {name: arguments.get(name) for name in fingerprint_fields}
    canonical = json.dumps(document, default=_plain, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorate a pure engine function so every call emits a trace record."""

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()

            started = time.perf_counter()
            result = func(*bound.args, **bound.kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000

            logger.debug(
                TRACE_TYPE,
                extra={
                    "trace_type": TRACE_TYPE,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": (
                        compute_input_fingerprint(fingerprint_fields, bound.arguments)
                        if fingerprint_fields else ""
                    ),
                    "duration_ms": round(elapsed_ms, 3),
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
