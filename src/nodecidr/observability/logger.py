"""Structured logging configuration."""

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import structlog

# Context variables for per-node tracing
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


class LogContext:
    """
    Context manager for adding context to logs.

    Usage:
        with LogContext(node="node001"):
            logger.info("Reconciling")
    """

    def __init__(self, **kwargs: Any) -> None:
        """
        Initialize log context.

        Args:
            **kwargs: Key-value pairs to add to log context
        """
        self.new_context = kwargs
        self.token = None

    def __enter__(self) -> "LogContext":
        """Enter context and merge new values."""
        current = _log_context.get().copy()
        current.update(self.new_context)
        self.token = _log_context.set(current)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit context and restore previous values."""
        if self.token:
            _log_context.reset(self.token)


def current_context() -> dict[str, Any]:
    """Return a copy of the active log context."""
    return _log_context.get().copy()


def clear_all_context() -> None:
    """Clear all context variables."""
    _log_context.set({})


def _context_processor(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """
    Structlog processor to inject context variables.

    Args:
        logger: Logger instance
        method_name: Logging method name
        event_dict: Event dictionary

    Returns:
        Updated event dictionary with context
    """
    context = _log_context.get()
    if context:
        event_dict.update(context)
    return event_dict


LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level(level: str) -> int:
    """
    Get numeric log level from string.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Numeric log level
    """
    return LOG_LEVELS.get(level.upper(), logging.INFO)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: str | Path | None = None,
) -> None:
    """
    Configure structured logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to output logs in JSON format
        log_file: Optional path to write logs to file
    """
    log_level = get_log_level(level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        file_path = Path(log_file)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(file_path))

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=handlers,
        force=True,  # Force reconfiguration even if logging has been configured
    )
    logging.getLogger().setLevel(log_level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        _context_processor,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
