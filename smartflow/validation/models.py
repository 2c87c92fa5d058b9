"""
Pydantic Validation Models

Input record models for raw smart money volume rows, daily price changes
and security reference data. Rows that fail validation are dropped by the
consumers rather than raised, so a single malformed row never aborts an
aggregation.
"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..analytics.investor_types import InvestorType


class Side(Enum):
    """Trade side of a volume record."""

    BUY = "buy"
    SELL = "sell"


_SIDE_ALIASES = {
    "buy": Side.BUY,
    "b": Side.BUY,
    "bid": Side.BUY,
    "sell": Side.SELL,
    "s": Side.SELL,
    "ask": Side.SELL,
}


def coerce_date(value: Any) -> Optional[date]:
    """
    Normalize a date-like value to a ``date``.

    Accepts ``date``, ``datetime`` (including pandas Timestamps) and ISO
    strings with an optional time part. Returns None for empty values.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text or text.lower() in ("nan", "nat", "none"):
        return None
    text = text.split("T")[0].split(" ")[0]
    return date.fromisoformat(text)


def normalize_security_id(value: Any) -> Optional[str]:
    """Upper-case and strip an identifier; empty and NaN values become None."""
    if value is None or (isinstance(value, float) and value != value):
        return None
    text = str(value).strip().upper()
    return text or None


# Security identifiers are stored upper-cased and stripped
SecurityIdField = Annotated[
    str,
    Field(min_length=1, max_length=32, description="Security identifier (ISIN or exchange id)"),
]

# Traded volume; zero or negative rows carry no information
PositiveVolume = Annotated[
    float,
    Field(gt=0, description="Traded volume or turnover"),
]


class SmartFlowBaseModel(BaseModel):
    """Base model with strict-ish defaults shared by all input records."""

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        extra="ignore",
        populate_by_name=True,
    )


class RawVolumeRecord(SmartFlowBaseModel):
    """One end-of-day volume row for a security, investor type and side."""

    security_id: SecurityIdField
    date: date
    investor_type: InvestorType
    side: Side
    volume: PositiveVolume

    @field_validator("security_id", mode="before")
    @classmethod
    def clean_security_id(cls, v: Any) -> Any:
        return normalize_security_id(v)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        try:
            return coerce_date(v)
        except ValueError:
            raise ValueError(f"Unparseable date: {v!r}")

    @field_validator("investor_type", mode="before")
    @classmethod
    def normalize_investor_type(cls, v: Any) -> Any:
        if isinstance(v, InvestorType) or v is None:
            return v
        return InvestorType.from_code(v)

    @field_validator("side", mode="before")
    @classmethod
    def normalize_side(cls, v: Any) -> Any:
        if isinstance(v, Side):
            return v
        side = _SIDE_ALIASES.get(str(v).strip().lower())
        if side is None:
            raise ValueError(f"Unknown trade side: {v!r}")
        return side


class PriceRecord(SmartFlowBaseModel):
    """Daily percentage price change for a security."""

    security_id: SecurityIdField
    date: date
    change: float = Field(ge=-100, le=1000, description="Daily % change")

    @field_validator("security_id", mode="before")
    @classmethod
    def clean_security_id(cls, v: Any) -> Any:
        return normalize_security_id(v)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        try:
            return coerce_date(v)
        except ValueError:
            raise ValueError(f"Unparseable date: {v!r}")

    @field_validator("change")
    @classmethod
    def reject_nan(cls, v: float) -> float:
        if v != v:
            raise ValueError("change must not be NaN")
        return v


class SecurityInfo(SmartFlowBaseModel):
    """Security reference data, passed through for display enrichment."""

    security_id: SecurityIdField
    symbol: Optional[str] = None
    company_name: Optional[str] = None

    @field_validator("security_id", mode="before")
    @classmethod
    def clean_security_id(cls, v: Any) -> Any:
        return normalize_security_id(v)
