"""
Structured Logging for ASEA Import

This module configures structlog for the reconciliation engine. Every log line
emitted while a stack is being reconciled carries the stack key and phase, so
skip, match and deletion decisions can be traced back to the legacy stack that
produced them.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from typing import Any, Dict, Iterator, Optional

import structlog

from .config import get_config


@contextmanager
def stack_context(stack_key: str, phase: Optional[int] = None) -> Iterator[None]:
    """Bind the stack being reconciled to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(stack_key=stack_key, phase=phase):
        yield


def current_stack_context() -> Dict[str, Any]:
    """Return the stack context bound by ``stack_context``."""
    context = structlog.contextvars.get_contextvars()
    return {key: context[key] for key in ("stack_key", "phase") if key in context}


def trace_operation(operation_name: str):
    """Decorator to log start, completion and failure of an operation with its duration."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(f"asea_import.trace.{func.__module__}")
            start_time = time.time()

            logger.info(
                f"Starting operation: {operation_name}",
                operation=operation_name,
                function=func.__name__,
            )

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Failed operation: {operation_name}",
                    operation=operation_name,
                    function=func.__name__,
                    duration_seconds=time.time() - start_time,
                    success=False,
                    error=str(e),
                )
                raise

            logger.info(
                f"Completed operation: {operation_name}",
                operation=operation_name,
                function=func.__name__,
                duration_seconds=time.time() - start_time,
                success=True,
            )
            return result

        return wrapper

    return decorator


class StackAwareFormatter(logging.Formatter):
    """Formatter that attaches the current stack context to log records."""

    def format(self, record: logging.LogRecord) -> str:
        context = current_stack_context()
        record.stack_key = context.get("stack_key")
        record.phase = context.get("phase")

        if not hasattr(record, "timestamp"):
            record.timestamp = datetime.utcnow().isoformat()

        return super().format(record)


class JSONFormatter(StackAwareFormatter):
    """JSON formatter for machine-readable logs."""

    EXCLUDED_FIELDS = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "stack_key",
        "phase",
        "timestamp",
    }

    def format(self, record: logging.LogRecord) -> str:
        super().format(record)
        log_entry = {
            "timestamp": record.timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "stack": {
                "stack_key": record.stack_key,
                "phase": record.phase,
            },
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in self.EXCLUDED_FIELDS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(StackAwareFormatter):
    """Console formatter with colored levels and the stack key."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
        "GRAY": "\033[90m",
    }

    def format(self, record: logging.LogRecord) -> str:
        super().format(record)
        level_color = self.COLORS.get(record.levelname, "")
        reset_color = self.COLORS["RESET"]
        gray_color = self.COLORS["GRAY"]

        timestamp = datetime.utcnow().strftime("%H:%M:%S.%f")[:-3]
        stack_info = f"[{record.stack_key}]" if record.stack_key else ""

        message = record.getMessage()
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return (
            f"{gray_color}{timestamp}{reset_color} "
            f"{level_color}{record.levelname:8}{reset_color} "
            f"{record.name:30} "
            f"{gray_color}{stack_info}{reset_color} "
            f"{message}"
        )


def setup_logging():
    """Setup structured logging for the import engine."""
    config = get_config()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if config.log_format == "json"
                else structlog.dev.ConsoleRenderer(colors=False)
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.log_level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    if config.log_format == "json":
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(ConsoleFormatter())

    root_logger.addHandler(console_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


# Initialize logging on module import
setup_logging()
