"""Structured logging helpers for configuration file events.

Purpose
    Keep every log record emitted while reading, migrating or writing
    configuration files predictable and machine-readable, without choosing a
    logging backend for the host application.

Contents
    - ``OPERATION_ID``: context variable holding the active operation identifier.
    - ``get_logger``: returns the package logger (silent by default).
    - ``bind_operation_id``: binds or clears the operation identifier.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit
      structured entries through one private emitter.
    - ``make_event``: builds the payload shared by file lifecycle events.

System Integration
    The composition root and adapters log through these helpers; the CLI binds
    one operation identifier per invocation so all records of a command can be
    correlated. Domain value objects never log.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

OPERATION_ID: ContextVar[str | None] = ContextVar("bufconfig_operation_id", default=None)

_LOGGER: Final[logging.Logger] = logging.getLogger("bufconfig")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_operation_id(operation_id: str | None) -> None:
    """Bind or clear the identifier attached to subsequent records.

    Examples
    --------
    >>> bind_operation_id('migrate-1')
    >>> OPERATION_ID.get()
    'migrate-1'
    >>> bind_operation_id(None)
    >>> OPERATION_ID.get() is None
    True
    """

    OPERATION_ID.set(operation_id)


def log_debug(message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    _emit(logging.ERROR, message, fields)


def make_event(
    file_name: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the payload for a configuration file event.

    Inputs
        file_name: Base name of the configuration file (``buf.yaml``).
        path: Bucket path of the file, if known.
        payload: Extra diagnostic fields.

    Examples
    --------
    >>> make_event('buf.lock', 'proto/buf.lock', {'deps': 2})
    {'file_name': 'buf.lock', 'path': 'proto/buf.lock', 'deps': 2}
    """

    event: dict[str, Any] = {"file_name": file_name, "path": path}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send one record through the package logger with contextual metadata."""

    context = {"operation_id": OPERATION_ID.get()}
    context.update(fields)
    _LOGGER.log(level, message, extra={"context": context})
