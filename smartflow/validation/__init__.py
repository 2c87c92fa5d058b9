"""
SmartFlow Validation Module

Pydantic models for the raw records supplied by ingestion collaborators.
"""

from .models import (
    PriceRecord,
    RawVolumeRecord,
    SecurityInfo,
    Side,
    SmartFlowBaseModel,
    coerce_date,
    normalize_security_id,
)

__all__ = [
    "SmartFlowBaseModel",
    "RawVolumeRecord",
    "PriceRecord",
    "SecurityInfo",
    "Side",
    "coerce_date",
    "normalize_security_id",
]
