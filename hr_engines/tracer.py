"""
hr_engines.tracer -- HR_ENGINE_TRACE records for pure engine calls.

Responsibility:
    ``@traced_engine`` logs one debug record per call of a payroll or
    installment engine: which engine and version ran, a fingerprint of the
    inputs that determine the result, how long it took and whether it
    raised.  Two payslips carrying the same fingerprint were computed from
    the same salary terms, dates and period.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Only emits a log record.  Logs under ``hr_kernel.engines`` so the
    package handler formats it.

Usage:
    @traced_engine("installments", "1.0", fingerprint_fields=("principal", "count"))
    def schedule_installments(*, principal, count, first_due_date):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import logging
import time
from collections.abc import Callable, Mapping
from datetime import date
from enum import Enum
from typing import Any

_logger = logging.getLogger("hr_kernel.engines.tracer")

TRACE_MESSAGE = "HR_ENGINE_TRACE"


def _canonical(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return "{" + ",".join(
            f"{key}:{_canonical(value[key])}" for key in sorted(value)
        ) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonical(item) for item in value) + "]"
    # Decimal, int, UUID, str and PayPeriod all have a stable str().
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> str:
    """First 16 hex chars of the SHA-256 of the named keyword arguments.

    A field the caller did not pass counts as ``null``.
    """
    canonical = "|".join(
        f"{name}={_canonical(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[Callable], Callable]:
    """Wrap a keyword-only engine function with an HR_ENGINE_TRACE record."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            trace: dict[str, Any] = {
                "trace_type": TRACE_MESSAGE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "function": func.__qualname__,
                "input_fingerprint": (
                    compute_input_fingerprint(fingerprint_fields, kwargs)
                    if fingerprint_fields else ""
                ),
            }
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                trace["outcome"] = "error"
                trace["error_type"] = type(exc).__name__
                raise
            else:
                trace["outcome"] = "ok"
                return result
            finally:
                trace["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
                _logger.debug(TRACE_MESSAGE, extra=trace)

        return wrapper

    return decorator
