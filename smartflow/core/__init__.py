"""
SmartFlow Core Module

Error taxonomy and the engine facade (``smartflow.core.core``).
"""

from .errors import (
    ConfigurationError,
    DataError,
    ErrorCategory,
    ErrorCode,
    ErrorCodes,
    ErrorSeverity,
    InvalidParameterError,
    SmartFlowError,
)

__all__ = [
    "ErrorCategory",
    "ErrorSeverity",
    "ErrorCode",
    "ErrorCodes",
    "SmartFlowError",
    "DataError",
    "InvalidParameterError",
    "ConfigurationError",
]
