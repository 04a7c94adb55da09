"""
Module: carcass_kernel.logging_config
Responsibility:
    One JSON object per log line for everything under the ``carcass_kernel``
    logger namespace (engines and services log through ``get_logger`` too),
    with the quotation being worked on attached automatically.

Architecture position:
    Kernel > infrastructure.  Imported by every layer; imports nothing from
    the project.

Invariants enforced:
    - Context fields are limited to ``QUOTATION_CONTEXT_FIELDS``.
    - ``LogContext`` values live in contextvars, so concurrent requests
      never see each other's quotation.
    - ``configure_logging`` installs exactly one handler however often it
      is called.
"""

__all__ = [
    "QUOTATION_CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

QUOTATION_CONTEXT_FIELDS = ("quotation_id", "business_id", "actor_id", "trace_id")

_NAMESPACE = "carcass_kernel"

_context: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"carcass_log_{name}", default=None)
    for name in QUOTATION_CONTEXT_FIELDS
}


class LogContext:
    """Quotation-scoped fields stamped onto every record of the current context."""

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Update the given fields; ``None`` values and unknown names are ignored."""
        for name, value in fields.items():
            var = _context.get(name)
            if var is not None and value is not None:
                var.set(value)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return {
            name: value
            for name, var in _context.items()
            if (value := var.get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _context.values():
            var.set(None)

    @classmethod
    def bind(cls, **fields: str | None) -> "_BoundContext":
        """
        Temporarily set fields; the previous values come back on exit.

        Usage::

            with LogContext.bind(quotation_id=qid, business_id=bid):
                logger.info("quotation_saved")
        """
        return _BoundContext(fields)


class _BoundContext:
    def __init__(self, fields: dict[str, str | None]):
        self._fields = fields
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> type[LogContext]:
        for name, value in self._fields.items():
            var = _context.get(name)
            if var is not None and value is not None:
                self._tokens.append((var, var.set(value)))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    """``default`` hook for json.dumps: money, ids, timestamps, id sets."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(str(v) for v in value)
    return str(value)


class StructuredFormatter(logging.Formatter):
    """
    Render a record as ``{"ts", "level", "logger", "message", ...}``.

    Context fields come next, then ``extra`` fields.  For exceptions the
    type, message, ``code`` and public attributes of the exception are
    added with an ``exc_`` prefix, followed by the traceback.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            code = getattr(exc, "code", None)
            if code is not None:
                payload["exc_code"] = code
            for key, value in vars(exc).items():
                if not key.startswith("_"):
                    payload[f"exc_{key}"] = value
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """``get_logger("engines.valuation")`` -> ``carcass_kernel.engines.valuation``."""
    return logging.getLogger(f"{_NAMESPACE}.{name}")


_setup_lock = threading.Lock()
_installed_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Send the carcass_kernel namespace to one JSON handler (first call wins)."""
    global _installed_handler
    with _setup_lock:
        if _installed_handler is not None:
            return
        _installed_handler = handler or logging.StreamHandler(stream or sys.stderr)

    _installed_handler.setFormatter(StructuredFormatter())
    namespace = logging.getLogger(_NAMESPACE)
    namespace.setLevel(level)
    namespace.propagate = False
    namespace.addHandler(_installed_handler)


def reset_logging() -> None:
    """Undo ``configure_logging``.  Tests only."""
    global _installed_handler
    with _setup_lock:
        _installed_handler = None
    namespace = logging.getLogger(_NAMESPACE)
    namespace.handlers.clear()
    namespace.setLevel(logging.WARNING)
    namespace.propagate = True
