"""
SmartFlow Error Handling Module

Structured error codes for the few hard failures the engine raises.

Data gaps (missing volume, missing prices, short history) are never errors:
they surface as explicit None / "no data" markers in results. Only
programmer errors such as an invalid window size or a negative horizon
raise.
"""

import logging
import numbers
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Error Code Taxonomy
# =============================================================================


class ErrorCategory(Enum):
    """Top-level error categories."""

    DATA = "DATA"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"


class ErrorSeverity(Enum):
    """Error severity levels for logging."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass(frozen=True)
class ErrorCode:
    """Structured error code with metadata."""

    code: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    recovery_hint: str = ""

    def __str__(self) -> str:
        return f"{self.category.value}_{self.code}"


class ErrorCodes:
    """Central registry of SmartFlow error codes."""

    # Data Errors (2xxx)
    DATA_NOT_FOUND = ErrorCode(
        code="2001",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.INFO,
        message="Requested data not found",
        recovery_hint="Verify the security identifier and date are correct.",
    )

    DATA_INVALID_FORMAT = ErrorCode(
        code="2003",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.WARNING,
        message="Data format is invalid or unexpected",
        recovery_hint="Check the input columns against the documented record layout.",
    )

    # Validation Errors (4xxx)
    VALIDATION_INVALID_PARAMETER = ErrorCode(
        code="4001",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.ERROR,
        message="Invalid parameter value",
        recovery_hint="Window sizes, horizons and lookbacks must be positive integers.",
    )

    VALIDATION_INVALID_VALUE = ErrorCode(
        code="4002",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.WARNING,
        message="Invalid input value",
        recovery_hint="Check the value against its allowed range.",
    )

    # Configuration Errors (6xxx)
    CONFIG_INVALID = ErrorCode(
        code="6001",
        category=ErrorCategory.CONFIG,
        severity=ErrorSeverity.CRITICAL,
        message="Invalid configuration",
        recovery_hint="Review SMARTFLOW_* environment variables and threshold tables.",
    )


# =============================================================================
# Base Exception Classes
# =============================================================================


class SmartFlowError(Exception):
    """
    Base exception for all SmartFlow errors.

    Carries a structured error code plus optional detail and context.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.detail = detail
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.technical_message)

    @property
    def code(self) -> str:
        """Full error code string."""
        return str(self.error_code)

    @property
    def category(self) -> ErrorCategory:
        return self.error_code.category

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_code.severity

    @property
    def technical_message(self) -> str:
        """Technical error message for logging."""
        msg = f"[{self.code}] {self.error_code.message}"
        if self.detail:
            msg = f"{msg}: {self.detail}"
        return msg

    @property
    def recovery_hint(self) -> str:
        return self.error_code.recovery_hint

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for reporting."""
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.technical_message,
            "recovery_hint": self.recovery_hint,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def log(self) -> None:
        """Log the error with appropriate severity."""
        log_method = getattr(logger, self.severity.name.lower(), logger.error)
        log_method(
            self.technical_message,
            extra={"ctx_error_code": self.code, "ctx_context": self.context},
        )


class DataError(SmartFlowError):
    """Data-related errors."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.DATA_INVALID_FORMAT,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class InvalidParameterError(SmartFlowError, ValueError):
    """Programmer errors: invalid window, horizon, lookback or tolerance."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.VALIDATION_INVALID_PARAMETER,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class ConfigurationError(SmartFlowError):
    """Invalid threshold tables or settings."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.CONFIG_INVALID,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


# =============================================================================
# Parameter Validation Helpers
# =============================================================================


def _require_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 1:
        raise InvalidParameterError(
            detail=f"{name} must be a positive integer, got {value!r}",
            context={name: value},
        )
    return int(value)


def validate_window_size(window_size: Any) -> int:
    """Validate a pattern window size."""
    return _require_positive_int("window_size", window_size)


def validate_horizon(horizon_days: Any) -> int:
    """Validate a forward-return horizon."""
    return _require_positive_int("horizon_days", horizon_days)


def validate_lookback(lookback_days: Any) -> int:
    """Validate a trend or history lookback."""
    return _require_positive_int("lookback_days", lookback_days)


def validate_tolerance(tolerance: Any) -> float:
    """Validate a sentiment matching tolerance band."""
    try:
        value = float(tolerance)
    except (TypeError, ValueError):
        raise InvalidParameterError(
            ErrorCodes.VALIDATION_INVALID_VALUE,
            detail=f"tolerance must be a number, got {tolerance!r}",
            context={"tolerance": tolerance},
        )
    if value < 0 or value != value:
        raise InvalidParameterError(
            detail=f"tolerance must be non-negative, got {tolerance!r}",
            context={"tolerance": tolerance},
        )
    return value
