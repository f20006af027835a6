"""
Structured logging for the proposal register.

structlog over stdlib logging: human-readable console output while
developing, JSON lines in production, a correlation id on every record so a
single CLI invocation or HTTP request can be followed through the log.
"""

import contextvars
import logging
import os
import secrets
import sys
import time
from typing import Any

import structlog

from proposal_register.kernel.errors import InvariantViolation

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


def generate_correlation_id() -> str:
    """Return a 22-character URL-safe token (128 bits of entropy)."""
    return secrets.token_urlsafe(16)


def get_correlation_id() -> str:
    """Get the current correlation ID, or generate a new one if not set."""
    cid = correlation_id_var.get()
    if not cid:
        cid = generate_correlation_id()
        correlation_id_var.set(cid)
    return cid


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context."""
    correlation_id_var.set(correlation_id)


def add_correlation_id(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor adding the correlation ID to every record."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    log_level: str = "INFO",
) -> None:
    """
    Configure structured logging for the application.

    Args:
        json_output: JSON lines (production) instead of console rendering
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper())

    # stderr keeps CLI stdout clean for command output
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_correlation_id,
    ]

    if json_output:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.ExceptionRenderer(),
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for the given module (typically __name__)."""
    return structlog.get_logger(name)


def is_production() -> bool:
    """True when the ENVIRONMENT variable is 'production'."""
    return os.getenv("ENVIRONMENT", "development").lower() == "production"


# Caller identities are account-like references; keep them out of logs
REDACTED_FIELDS = {
    "caller_id",
    "requester_id",
    "target_id",
    "voter_id",
    "identity",
    "actor_id",
}


def redact_context(context: dict[str, Any]) -> dict[str, Any]:
    """
    Redact identity fields from log context.

    Example:
        >>> redact_context({"voter_id": "0xabc", "proposal_id": 3})
        {"voter_id": "***REDACTED***", "proposal_id": 3}
    """
    return {
        k: "***REDACTED***" if k in REDACTED_FIELDS else v
        for k, v in context.items()
    }


class LogOperation:
    """Context manager logging start, completion or failure of an operation with timing."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        operation: str,
        **context: Any,
    ):
        self.logger = logger
        self.operation = operation
        self.context = redact_context(context)
        self.start_time: float = 0.0

    def __enter__(self) -> "LogOperation":
        self.start_time = time.perf_counter()
        self.logger.debug(
            f"{self.operation} started",
            operation=self.operation,
            **self.context,
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        duration_ms = round((time.perf_counter() - self.start_time) * 1000, 2)

        if exc_type is None:
            self.logger.info(
                f"{self.operation} completed",
                operation=self.operation,
                duration_ms=duration_ms,
                **self.context,
            )
            return

        # Domain rejections are expected outcomes, not faults
        if issubclass(exc_type, InvariantViolation):
            self.logger.warning(
                f"{self.operation} rejected",
                operation=self.operation,
                duration_ms=duration_ms,
                error_type=exc_type.__name__,
                error=str(exc_val),
                **self.context,
            )
        else:
            self.logger.error(
                f"{self.operation} failed",
                operation=self.operation,
                duration_ms=duration_ms,
                exc_info=not is_production(),
                **self.context,
            )
