"""
carcass_engines.tracer -- CARCASS_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps an engine entry point and, after it returns,
    logs which engine ran (name, version, qualified function), how long it
    took, and a fingerprint of the keyword inputs that drive its result.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; never touches the inputs or the result.

Invariants enforced:
    - Equal inputs give equal fingerprints.  Decimals are normalized first,
      so ``Decimal("300")`` typed by a user and ``Decimal("300.000000000")``
      read back from a Numeric(38, 9) column fingerprint identically.
    - Sets and dict keys are sorted; frozen dataclasses (PriceSlots,
      CostRow, ...) are expanded field by field.
    - The fingerprint is the first 16 hex chars of a SHA-256.

Failure modes:
    - A fingerprint field the caller did not pass is recorded as ``null``.
    - Unknown types fall back to ``str(value)``.

Usage:
    @traced_engine("variance", "1.0", fingerprint_fields=("total_initial_usd",))
    def report(self, *, total_initial_usd, total_cuts_usd, total_costs_usd):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable, Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

from carcass_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

FINGERPRINT_LENGTH = 16


def _canonical(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return _canonical(value.value)
    if isinstance(value, Decimal):
        return "0" if value.is_zero() else str(value.normalize())
    if isinstance(value, (bool, int, float, str)):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _canonical(
            {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        )
    if isinstance(value, Mapping):
        pairs = sorted((str(k), _canonical(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
    if isinstance(value, (set, frozenset)):
        return "{" + ",".join(sorted(_canonical(v) for v in value)) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonical(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """Hash of ``field=value`` pairs for the listed keyword arguments."""
    source = "|".join(f"{name}={_canonical(kwargs.get(name))}" for name in fingerprint_fields)
    return hashlib.sha256(source.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Args:
        engine_name: Engine identifier, e.g. ``"valuation"``.
        engine_version: Bumped whenever the engine's arithmetic changes.
        fingerprint_fields: Keyword arguments hashed into
            ``input_fingerprint``.  Engines take keyword-only arguments so
            every listed field is visible here.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 3)

            _logger.info(
                "CARCASS_ENGINE_TRACE",
                extra={
                    "trace_type": "CARCASS_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "input_fingerprint": (
                        compute_input_fingerprint(fingerprint_fields, kwargs)
                        if fingerprint_fields
                        else ""
                    ),
                    "duration_ms": elapsed_ms,
                },
            )
            return result

        return wrapper

    return decorator
