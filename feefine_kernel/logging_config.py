"""
Structured JSON logging for the fee/fine kernel.

Every record under the ``feefine`` logger namespace is rendered as one JSON
object per line.  Request-scoped fields (correlation id, tenant, account,
operation) travel in a context variable, so worker threads and async tasks
see the fields of the call that spawned them only when the context is
copied into them.

Usage:
    from feefine_kernel.logging_config import LogContext, get_logger

    logger = get_logger("services.refund_check")
    with LogContext.bind(correlation_id=cid, account_id=account_id):
        logger.info("refund_check_completed", extra={"allowed": True})
"""

__all__ = [
    "CONTEXT_FIELDS",
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
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, TextIO

LOGGER_NAMESPACE = "feefine"

CONTEXT_FIELDS = ("correlation_id", "tenant_id", "account_id", "operation")

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar("feefine_log_context", default=_EMPTY)


def _merged(fields: dict[str, str | None]) -> Mapping[str, str]:
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context fields: {sorted(unknown)}")
    current = dict(_context.get())
    current.update({k: v for k, v in fields.items() if v is not None})
    return MappingProxyType(current)


class LogContext:
    """Request-scoped log fields, held in a single context variable."""

    @staticmethod
    def set(**fields: str | None) -> None:
        """Set context fields.  None values leave the current value alone."""
        _context.set(_merged(fields))

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a block, then restore the previous context."""
        token = _context.set(_merged(fields))
        try:
            yield LogContext
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON rendering
# ---------------------------------------------------------------------------

_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    # Money, UUID and enums render through str()
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: fixed keys, then context, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }
        for name, value in vars(record).items():
            if name not in _RESERVED_ATTRS:
                payload.setdefault(name, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` under the feefine namespace."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_setup_lock = threading.Lock()
_installed_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: TextIO | None = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install the JSON handler on the feefine logger.

    Only the first call has an effect until reset_logging() is called.
    ``level`` accepts a logging constant or a level name such as "DEBUG".
    """
    global _installed_handler
    with _setup_lock:
        if _installed_handler is not None:
            return
        _installed_handler = (
            handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        )
        _installed_handler.setFormatter(StructuredFormatter())

        namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
        namespace_logger.setLevel(level.upper() if isinstance(level, str) else level)
        namespace_logger.propagate = False
        namespace_logger.addHandler(_installed_handler)


def reset_logging() -> None:
    """Remove the installed handler and restore defaults. Test helper."""
    global _installed_handler
    with _setup_lock:
        _installed_handler = None
        namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
        namespace_logger.handlers.clear()
        namespace_logger.setLevel(logging.WARNING)
        namespace_logger.propagate = True
