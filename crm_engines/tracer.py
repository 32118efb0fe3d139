"""
crm_engines.tracer -- ``@traced_engine`` and CRM_ENGINE_TRACE records.

Every public engine entry point is wrapped so that one log record per call
names the engine, its version, how long it took and a fingerprint of the
keyword inputs that determine the result.  Two calls with equal inputs
(``Decimal("50")`` and ``Decimal("50.00")`` count as equal) share a
fingerprint, which makes recalculations easy to spot in the logs.

Only keyword arguments are fingerprinted; a listed field that was not
passed contributes ``null``.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from crm_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_MESSAGE = "CRM_ENGINE_TRACE"


@functools.singledispatch
def canonical(value: Any) -> str:
    """Stable text form of an engine input."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return canonical({f.name: getattr(value, f.name) for f in dataclasses.fields(value)})
    return str(value)


@canonical.register
def _(value: None) -> str:
    return "null"


@canonical.register
def _(value: bool) -> str:
    return "true" if value else "false"


@canonical.register
def _(value: Decimal) -> str:
    return str(value.normalize())


@canonical.register
def _(value: Enum) -> str:
    return str(value.value)


@canonical.register
def _(value: date) -> str:
    return value.isoformat()


@canonical.register
def _(value: Mapping) -> str:
    return "{" + ",".join(f"{k}:{canonical(v)}" for k, v in sorted(value.items())) + "}"


@canonical.register(list)
@canonical.register(tuple)
def _(value) -> str:
    return "[" + ",".join(canonical(v) for v in value) + "]"


def compute_input_fingerprint(fields: tuple[str, ...], kwargs: dict[str, Any]) -> str:
    """First 16 hex chars of SHA-256 over ``field=value`` pairs in ``fields`` order."""
    text = "|".join(f"{name}={canonical(kwargs.get(name))}" for name in fields)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs)
                if fingerprint_fields else ""
            )
            started = time.perf_counter()
            result = func(*args, **kwargs)
            logger.info(TRACE_MESSAGE, extra={
                "trace_type": TRACE_MESSAGE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "function": func.__qualname__,
            })
            return result

        return wrapper

    return decorator
