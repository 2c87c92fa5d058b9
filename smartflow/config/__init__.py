"""
SmartFlow Configuration

Settings and logging setup.
"""

from .logging import (
    ConsoleFormatter,
    LogContext,
    StructuredFormatter,
    configure_logging,
    log_performance,
    log_with_context,
)
from .settings import SmartFlowSettings, get_settings

__all__ = [
    "SmartFlowSettings",
    "get_settings",
    "configure_logging",
    "log_performance",
    "log_with_context",
    "LogContext",
    "StructuredFormatter",
    "ConsoleFormatter",
]
