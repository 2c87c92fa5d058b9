"""
Investor Type Catalog

Static configuration for the investor-type categories reported in the
end-of-day smart money files, together with the backtested predictive
weights and the sentiment quintile table used by the scorer.

All structures here are frozen; alternate tables can be built and injected
into the scorer for testing or recalibration.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class InvestorType(Enum):
    """Investor-type category codes."""

    PENSION_INSURANCE = "F"
    MUTUAL_FUND = "M"
    NOSTRO = "N"
    PORTFOLIO_MANAGER = "P"
    FOREIGN_INVESTOR = "O"
    FOREIGN_INDIVIDUAL = "D"
    FOREIGN_OTHER = "G"
    ETF_MARKET_MAKER = "E"
    RETAIL = "Z"
    INDIVIDUAL = "A"
    CORPORATE = "B"

    @property
    def code(self) -> str:
        return self.value

    @classmethod
    def from_code(cls, code: Any) -> "InvestorType":
        """Resolve a type from its single-letter code (case-insensitive)."""
        if isinstance(code, cls):
            return code
        return cls(str(code).strip().upper())


class SignalQuality(Enum):
    """Predictive quality tier from historical backtesting."""

    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    UNRATED = "unrated"


@dataclass(frozen=True)
class InvestorTypeInfo:
    """Descriptive and predictive metadata for one investor type."""

    investor_type: InvestorType
    name: str
    short_name: str
    is_smart_money: bool
    quality: SignalQuality = SignalQuality.UNRATED
    weight: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.investor_type.code,
            "name": self.name,
            "short_name": self.short_name,
            "is_smart_money": self.is_smart_money,
            "quality": self.quality.value,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class InvestorTypeCatalog:
    """
    Immutable catalog of investor types.

    One type is distinguished as the foreign-flow signal, the category with
    the strongest historical predictive spread.
    """

    types: Mapping[InvestorType, InvestorTypeInfo]
    foreign_flow_type: InvestorType = InvestorType.FOREIGN_OTHER

    def __post_init__(self):
        if self.foreign_flow_type not in self.types:
            raise ValueError(
                f"Foreign flow type {self.foreign_flow_type.code} is not in the catalog"
            )
        object.__setattr__(self, "types", MappingProxyType(dict(self.types)))

    def __contains__(self, investor_type: InvestorType) -> bool:
        return investor_type in self.types

    def __iter__(self):
        return iter(self.types)

    def info(self, investor_type: InvestorType) -> InvestorTypeInfo:
        return self.types[investor_type]

    def name(self, investor_type: InvestorType) -> str:
        return self.types[investor_type].short_name

    def weight(self, investor_type: InvestorType) -> float:
        return self.types[investor_type].weight

    def quality(self, investor_type: InvestorType) -> SignalQuality:
        return self.types[investor_type].quality

    @property
    def smart_money_types(self) -> Tuple[InvestorType, ...]:
        """Institutional types, in catalog order."""
        return tuple(t for t, info in self.types.items() if info.is_smart_money)

    @property
    def scored_types(self) -> Tuple[InvestorType, ...]:
        """Smart money types plus the foreign flow type."""
        scored = list(self.smart_money_types)
        if self.foreign_flow_type not in scored:
            scored.append(self.foreign_flow_type)
        return tuple(scored)


def _build_default_catalog() -> InvestorTypeCatalog:
    entries = [
        (InvestorType.PENSION_INSURANCE, "Pension/Insurance", "Pension", True,
         SignalQuality.MODERATE, 1.0),
        (InvestorType.MUTUAL_FUND, "Mutual Funds", "Mutual", True,
         SignalQuality.MODERATE, 1.0),
        (InvestorType.NOSTRO, "Nostro", "Nostro", True,
         SignalQuality.MODERATE, 1.0),
        (InvestorType.PORTFOLIO_MANAGER, "Portfolio Managers", "Portfolio", True,
         SignalQuality.WEAK, 0.8),
        (InvestorType.FOREIGN_INVESTOR, "Foreign Investors", "Foreign", True,
         SignalQuality.WEAK, 0.5),
        (InvestorType.FOREIGN_INDIVIDUAL, "Foreign Individual", "Foreign Indiv", False,
         SignalQuality.UNRATED, 0.0),
        (InvestorType.FOREIGN_OTHER, "Foreign Other", "Foreign Other", False,
         SignalQuality.STRONG, 1.5),
        (InvestorType.ETF_MARKET_MAKER, "ETF/Market Maker", "ETF/MM", False,
         SignalQuality.UNRATED, 0.0),
        (InvestorType.RETAIL, "Israeli Retail", "IL Retail", False,
         SignalQuality.UNRATED, 0.0),
        (InvestorType.INDIVIDUAL, "Israeli Individual", "IL Indiv", False,
         SignalQuality.UNRATED, 0.0),
        (InvestorType.CORPORATE, "Israeli Corporate", "IL Corp", False,
         SignalQuality.UNRATED, 0.0),
    ]
    return InvestorTypeCatalog(
        types={
            t: InvestorTypeInfo(t, name, short, smart, quality, weight)
            for t, name, short, smart, quality, weight in entries
        },
        foreign_flow_type=InvestorType.FOREIGN_OTHER,
    )


DEFAULT_CATALOG = _build_default_catalog()


# =============================================================================
# Weight Table
# =============================================================================


@dataclass(frozen=True)
class WeightTable:
    """
    Predictive-quality weights for the weighted composite sentiment.

    Two tables are kept because the presence of the foreign flow type
    changes the normalization base.
    """

    with_foreign_flow: Mapping[InvestorType, float]
    without_foreign_flow: Mapping[InvestorType, float]
    foreign_flow_type: InvestorType = InvestorType.FOREIGN_OTHER

    def __post_init__(self):
        for table in (self.with_foreign_flow, self.without_foreign_flow):
            negative = [t.code for t, w in table.items() if w < 0]
            if negative:
                raise ValueError(f"Negative weights for types: {negative}")
        object.__setattr__(
            self, "with_foreign_flow", MappingProxyType(dict(self.with_foreign_flow))
        )
        object.__setattr__(
            self,
            "without_foreign_flow",
            MappingProxyType(dict(self.without_foreign_flow)),
        )

    def for_types(self, present: Iterable[InvestorType]) -> Mapping[InvestorType, float]:
        """Select the table matching the set of types that have data."""
        if self.foreign_flow_type in set(present):
            return self.with_foreign_flow
        return self.without_foreign_flow

    @classmethod
    def from_catalog(cls, catalog: InvestorTypeCatalog) -> "WeightTable":
        with_foreign = {t: catalog.weight(t) for t in catalog.scored_types}
        without_foreign = {
            t: w for t, w in with_foreign.items() if t != catalog.foreign_flow_type
        }
        return cls(
            with_foreign_flow=with_foreign,
            without_foreign_flow=without_foreign,
            foreign_flow_type=catalog.foreign_flow_type,
        )


DEFAULT_WEIGHTS = WeightTable.from_catalog(DEFAULT_CATALOG)


# =============================================================================
# Quintile Table
# =============================================================================


@dataclass(frozen=True)
class QuintileBucket:
    """Historical forward-return statistics for one sentiment range."""

    quintile: str
    label: str
    lower: float
    upper: float
    avg_return: float  # % average 5-day forward return
    win_rate: float  # % of positive forward returns

    def contains(self, sentiment: float) -> bool:
        return self.lower <= sentiment < self.upper

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quintile": self.quintile,
            "label": self.label,
            "min": self.lower,
            "max": self.upper,
            "avg_return": self.avg_return,
            "win_rate": self.win_rate,
        }


@dataclass(frozen=True)
class QuintileTable:
    """Ordered buckets, most bearish first."""

    buckets: Tuple[QuintileBucket, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.buckets:
            raise ValueError("Quintile table needs at least one bucket")
        ordered = tuple(sorted(self.buckets, key=lambda b: b.lower))
        for prev, nxt in zip(ordered, ordered[1:]):
            if prev.upper != nxt.lower:
                raise ValueError(
                    f"Quintile buckets {prev.quintile} and {nxt.quintile} are not contiguous"
                )
        object.__setattr__(self, "buckets", ordered)

    def lookup(self, sentiment: Optional[float]) -> Optional[QuintileBucket]:
        """Bucket for a sentiment value; the top bound belongs to the last bucket."""
        if sentiment is None:
            return None
        for bucket in self.buckets:
            if bucket.contains(sentiment):
                return bucket
        if sentiment == self.buckets[-1].upper:
            return self.buckets[-1]
        logger.debug(f"Sentiment {sentiment} outside quintile range")
        return None


DEFAULT_QUINTILES = QuintileTable(
    buckets=(
        QuintileBucket("Q1", "Most Bearish", -1.0, -0.6, 0.071, 48.6),
        QuintileBucket("Q2", "Bearish", -0.6, -0.2, 0.068, 48.2),
        QuintileBucket("Q3", "Neutral", -0.2, 0.2, 0.065, 47.8),
        QuintileBucket("Q4", "Bullish", 0.2, 0.6, 0.068, 48.3),
        QuintileBucket("Q5", "Most Bullish", 0.6, 1.0, 0.066, 48.0),
    )
)
