"""
SmartFlow Settings

Engine defaults loaded from environment variables (prefix ``SMARTFLOW_``)
or a ``.env`` file via pydantic-settings.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.errors import ConfigurationError


class SmartFlowSettings(BaseSettings):
    """
    Default query parameters and logging options for the engine.

    Every value can be overridden per call; these only fill in what the
    caller leaves out.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SMARTFLOW_",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level used by configure_logging.",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON structured logs instead of console format.",
    )

    # Pattern detection
    pattern_window: int = Field(
        default=10,
        ge=1,
        le=250,
        description="Trailing records inspected for streaks and volume spikes.",
    )

    # Historical outcomes
    outcome_horizon_days: int = Field(
        default=5,
        ge=1,
        le=60,
        description="Forward trading days used for historical outcome returns.",
    )
    outcome_tolerance: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Half-width of the sentiment band treated as a match.",
    )

    # Trend
    trend_lookback_days: int = Field(
        default=5,
        ge=1,
        le=60,
        description="Preceding records averaged for the sentiment trend baseline.",
    )

    # History window for display
    history_lookback_days: int = Field(
        default=30,
        ge=1,
        le=3650,
        description="Calendar days returned by get_history when not specified.",
    )


@lru_cache()
def get_settings() -> SmartFlowSettings:
    """
    Return cached settings loaded from the environment.

    Raises:
        ConfigurationError: If an environment value fails validation
    """
    try:
        return SmartFlowSettings()
    except ValidationError as e:
        raise ConfigurationError(
            detail=f"Invalid SMARTFLOW_ settings: {e.error_count()} error(s)",
            context={"errors": [err["loc"] for err in e.errors()]},
        ) from e
