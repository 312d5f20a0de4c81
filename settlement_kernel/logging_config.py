"""
Structured JSON logging for settlement operations.

Every record under the ``settlement_kernel`` logger hierarchy is written
as one JSON object per line.  The object carries the record's ``extra``
fields plus whatever settlement context is bound at the time
(``load_id``, ``payment_id``, ``action``, ``actor_id``), so one grep on a
load ID yields the full history of its settlement.

Usage::

    configure_logging(level="DEBUG")
    logger = get_logger("modules.payments.service")

    with LogContext.bind(load_id=load.load_id, action="send_to_invoitix"):
        logger.info("settlement_step_started", extra={"flow_type": "INVOITIX"})
"""

__all__ = [
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

ROOT_LOGGER_NAME = "settlement_kernel"

# ---------------------------------------------------------------------------
# Bound settlement context
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS = ("load_id", "payment_id", "action", "actor_id")

_context: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"settlement_{name}", default=None) for name in _CONTEXT_FIELDS
}


class LogContext:
    """
    Settlement fields attached to every log record in the current context.

    Backed by ``ContextVar`` so bindings never leak between threads or
    asyncio tasks.  Unknown field names are rejected.
    """

    @staticmethod
    def _var(name: str) -> ContextVar[str | None]:
        try:
            return _context[name]
        except KeyError:
            raise ValueError(
                f"Unknown log context field {name!r}; expected one of {_CONTEXT_FIELDS}"
            ) from None

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Bind fields for the rest of the current context; None values are skipped."""
        for name, value in fields.items():
            if value is not None:
                cls._var(name).set(str(value))

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
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """Bind fields for the duration of a ``with`` block, then restore."""
        tokens = [
            (cls._var(name), cls._var(name).set(str(value)))
            for name, value in fields.items()
            if value is not None
        ]
        try:
            yield cls
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))
        return json.dumps(payload, default=_to_json)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
            "traceback": self.formatException(record.exc_info),
        }
        # SettlementError carries a machine-readable code and typed attributes.
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        fields.update(
            (f"exc_{name}", value)
            for name, value in vars(exc).items()
            if not name.startswith("_")
        )
        return fields


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``settlement_kernel.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``settlement_kernel`` logger.

    Only the first call has an effect.  ``level`` accepts a logging
    constant or a level name such as ``"DEBUG"``.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    root.propagate = False

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)


def reset_logging() -> None:
    """Remove the handlers installed by ``configure_logging``. Tests only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
