"""
feefine_engines.tracer -- FEEFINE_ENGINE_TRACE records for engine calls.

``@traced_engine`` wraps a pure engine method and, after it returns, logs
one FEEFINE_ENGINE_TRACE record naming the engine, its version, how long
the call took and a fingerprint of the inputs that determine its result.
Two runs over the same ledger log the same fingerprints, which is how a
report row can be tied back to the exact history that produced it.

Fingerprints:
    Selected arguments are bound by name (positional or keyword), rendered
    canonically and hashed with SHA-256, truncated to 16 hex chars.
    Dataclasses render field by field, mappings with sorted keys, enums by
    value; an argument that was not passed renders as "null".

A call that raises logs nothing; the exception propagates unchanged.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any

from feefine_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_MESSAGE = "FEEFINE_ENGINE_TRACE"


def _canonical(value: Any) -> str:
    match value:
        case None:
            return "null"
        case Enum():
            return str(value.value)
        case str():
            return value
        case datetime() | date():
            return value.isoformat()
        case Mapping():
            pairs = sorted((str(k), _canonical(v)) for k, v in value.items())
            return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
        case list() | tuple():
            return "[" + ",".join(_canonical(v) for v in value) + "]"
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
            return f"{type(value).__name__}{_canonical(fields)}"
        case _:
            return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """SHA-256 (16 hex chars) over ``name=value`` for each selected argument."""
    canonical = "|".join(
        f"{name}={_canonical(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[Callable], Callable]:
    """Log FEEFINE_ENGINE_TRACE after each successful call of the wrapped engine."""

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            logger.info(
                TRACE_MESSAGE,
                extra={
                    "trace_type": TRACE_MESSAGE,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fingerprint,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
