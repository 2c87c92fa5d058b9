"""
Calendar Context

Backtested seasonality of foreign investor activity on the exchange's
Sunday to Thursday trading week.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from ..validation.models import coerce_date

QUARTER_END_MONTHS = (3, 6, 9, 12)
MONTH_END_START_DAY = 25
MONTH_END_VOLUME_IMPACT = "+11.1%"


@dataclass(frozen=True)
class DayOfWeekContext:
    """Historical foreign buy ratio for a weekday."""

    name: str
    buy_ratio: float  # % of foreign volume on the buy side
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "buy_ratio": self.buy_ratio, "note": self.note}


# Keyed by date.weekday() (Monday == 0)
FOREIGN_DAY_OF_WEEK: Dict[int, DayOfWeekContext] = {
    6: DayOfWeekContext("Sunday", 46.1, "Lowest foreign buy ratio"),
    0: DayOfWeekContext("Monday", 47.6),
    1: DayOfWeekContext("Tuesday", 47.0),
    2: DayOfWeekContext("Wednesday", 46.8),
    3: DayOfWeekContext("Thursday", 47.1, "Highest foreign volume day"),
}


@dataclass(frozen=True)
class MonthEndContext:
    """Whether a date falls in the month-end rebalancing period."""

    is_month_end: bool = False
    is_quarter_end: bool = False
    volume_impact: Optional[str] = None
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_month_end": self.is_month_end,
            "is_quarter_end": self.is_quarter_end,
            "volume_impact": self.volume_impact,
            "note": self.note,
        }


def day_of_week_context(value: Any) -> Optional[DayOfWeekContext]:
    """Foreign buy ratio for the trading weekday of ``value``; None off the trading week."""
    day = coerce_date(value)
    if day is None:
        return None
    return FOREIGN_DAY_OF_WEEK.get(day.weekday())


def month_end_context(value: Any) -> MonthEndContext:
    """
    Month-end rebalancing context.

    Dates on or after the 25th count as month end; month end in March,
    June, September or December is also quarter end.
    """
    day: Optional[date] = coerce_date(value)
    if day is None or day.day < MONTH_END_START_DAY:
        return MonthEndContext()
    return MonthEndContext(
        is_month_end=True,
        is_quarter_end=day.month in QUARTER_END_MONTHS,
        volume_impact=MONTH_END_VOLUME_IMPACT,
        note=(
            "Month-end period, foreign volume typically "
            f"{MONTH_END_VOLUME_IMPACT} higher due to portfolio rebalancing"
        ),
    )
