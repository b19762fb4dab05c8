"""Structured logging configuration.

This module provides structured JSON logging with:
- Chain and nota ids attached to every record emitted inside a LogContext
- Consistent log formatting for library and application loggers
"""
from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Optional

chain_id_var: ContextVar[Optional[int]] = ContextVar("chain_id", default=None)
nota_id_var: ContextVar[Optional[str]] = ContextVar("nota_id", default=None)
operation_var: ContextVar[Optional[str]] = ContextVar("operation", default=None)

_CONTEXT_FIELDS = ("chain_id", "nota_id", "operation")

_RESERVED_ATTRS = frozenset((
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "taskName",
    "exc_info",
    "exc_text",
    "stack_info",
    *_CONTEXT_FIELDS,
))


class NotaContextFilter(logging.Filter):
    """Logging filter that adds the active chain and nota to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.chain_id = chain_id_var.get()
        record.nota_id = nota_id_var.get()
        record.operation = operation_var.get()
        return True


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure logging for an application using the client.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging (True) or simple format (False)
        log_file: Optional file path for logging output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[chain=%(chain_id)s nota=%(nota_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(NotaContextFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(NotaContextFilter())
        root_logger.addHandler(file_handler)


class LogContext:
    """
    Context manager for scoped logging context.

    Usage:
        with LogContext(chain_id=80001, nota_id="12", operation="cash"):
            logger.info("Cashing nota")
    """

    def __init__(
        self,
        chain_id: Optional[int] = None,
        nota_id: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        self.chain_id = chain_id
        self.nota_id = nota_id
        self.operation = operation
        self._tokens: list[tuple[ContextVar, Token]] = []

    def __enter__(self) -> "LogContext":
        for var, value in (
            (chain_id_var, self.chain_id),
            (nota_id_var, self.nota_id),
            (operation_var, self.operation),
        ):
            if value is not None:
                self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()


def get_logger(name: str) -> logging.Logger:
    """Get a logger that carries the nota context filter."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, NotaContextFilter) for f in logger.filters):
        logger.addFilter(NotaContextFilter())
    return logger
