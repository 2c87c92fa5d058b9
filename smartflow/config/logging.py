"""
SmartFlow Logging Configuration

JSON or console log output, a timing decorator for the heavier analytics
passes, and helpers for attaching per-security fields to log records.

Library modules only call ``logging.getLogger(__name__)``. An application
embedding the engine calls ``configure_logging`` once; level and format
default to the ``SMARTFLOW_LOG_LEVEL`` and ``SMARTFLOW_JSON_LOGS`` settings.
"""

import json
import logging
import sys
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

from .settings import get_settings

# =============================================================================
# Log Level Strategy
# =============================================================================
#
# DEBUG   - Per-query detail: window sizes, match counts, skipped rows,
#           traffic light outcomes
# INFO    - Snapshot aggregation and engine construction
# WARNING - High share of malformed rows, slow operations
# ERROR   - Failed decorated operations
# =============================================================================

# Extra fields carrying this prefix are rendered by both formatters
CONTEXT_PREFIX = "ctx_"


def _context_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key[len(CONTEXT_PREFIX):]: value
        for key, value in record.__dict__.items()
        if key.startswith(CONTEXT_PREFIX)
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation."""

    def __init__(self, service_name: str = "smartflow", environment: str = "development"):
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "environment": self.environment,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }
        payload.update(_context_fields(record))
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Single-line human-readable output, colored by level on a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"

        line = f"{self.formatTime(record, self.datefmt)} {level} {record.name} - {record.getMessage()}"

        fields = _context_fields(record)
        if fields:
            line += " | " + ", ".join(f"{k}={v}" for k, v in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    service_name: str = "smartflow",
    environment: str = "development",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure root logging for an application embedding SmartFlow.

    Args:
        level: Log level name; defaults to the ``log_level`` setting
        json_format: JSON output on stdout; defaults to the ``json_logs`` setting
        service_name: Service name for structured logs
        environment: Environment name for structured logs
        log_file: Optional path; the file always receives JSON lines
    """
    if level is None or json_format is None:
        settings = get_settings()
        level = settings.log_level if level is None else level
        json_format = settings.json_logs if json_format is None else json_format

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if json_format:
        console_handler.setFormatter(StructuredFormatter(service_name, environment))
    else:
        console_handler.setFormatter(ConsoleFormatter(use_colors=sys.stdout.isatty()))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter(service_name, environment))
        root_logger.addHandler(file_handler)


# =============================================================================
# Performance Logging Decorator
# =============================================================================

T = TypeVar("T")


def log_performance(threshold_ms: float = 1000.0) -> Callable:
    """
    Log the duration of each call; a warning above ``threshold_ms``.

    Example:
        @log_performance(threshold_ms=250)
        def outcomes(self, security_id, sentiment_value, horizon_days):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        logger = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            start = time.perf_counter()
            extra: Dict[str, Any] = {"ctx_function": func.__qualname__}
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                extra["ctx_duration_ms"] = round((time.perf_counter() - start) * 1000, 2)
                extra["ctx_status"] = "error"
                extra["ctx_error_type"] = type(e).__name__
                logger.error(f"Operation failed: {func.__name__} - {e}", extra=extra)
                raise

            duration_ms = (time.perf_counter() - start) * 1000
            extra["ctx_duration_ms"] = round(duration_ms, 2)
            extra["ctx_status"] = "success"
            if duration_ms > threshold_ms:
                logger.warning(
                    f"Slow operation: {func.__name__} took {duration_ms:.2f}ms", extra=extra
                )
            else:
                logger.debug(f"{func.__name__} completed in {duration_ms:.2f}ms", extra=extra)
            return result

        return wrapper

    return decorator


# =============================================================================
# Structured Log Helpers
# =============================================================================


class LogContext:
    """
    Attach fields to every record created inside the block.

    Example:
        with LogContext(security_id="IL0001"):
            engine.detect_pattern("IL0001", day)
    """

    def __init__(self, **fields: Any):
        self.fields = {f"{CONTEXT_PREFIX}{k}": v for k, v in fields.items()}
        self._previous_factory: Optional[Callable[..., logging.LogRecord]] = None

    def __enter__(self) -> "LogContext":
        previous = logging.getLogRecordFactory()
        self._previous_factory = previous
        fields = self.fields

        def factory(*args, **kwargs):
            record = previous(*args, **kwargs)
            record.__dict__.update(fields)
            return record

        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._previous_factory is not None:
            logging.setLogRecordFactory(self._previous_factory)


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log ``message`` with ``context`` attached as prefixed extra fields."""
    logger.log(level, message, extra={f"{CONTEXT_PREFIX}{k}": v for k, v in context.items()})
