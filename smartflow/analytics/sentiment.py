"""
Smart Money Sentiment Aggregation

Turns raw end-of-day volume rows (one per security, date, investor type and
side) into one sentiment record per (security, date), broken down by
investor type.

Sentiment is the net buy/sell imbalance ratio ``(buy - sell) / (buy + sell)``
in [-1, 1]. A type with no volume on a date has no sentiment entry at all;
absence is distinct from a neutral 0.
"""

import bisect
import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import pandas as pd
from pydantic import ValidationError

from ..config.logging import log_performance
from ..validation.models import RawVolumeRecord, Side, coerce_date, normalize_security_id
from .investor_types import DEFAULT_CATALOG, InvestorType, InvestorTypeCatalog

logger = logging.getLogger(__name__)

RecordKey = Tuple[str, date]

# Share of malformed rows above which aggregation logs a warning
MALFORMED_WARNING_RATIO = 0.05


def calculate_sentiment(buy_volume: float, sell_volume: float) -> Optional[float]:
    """
    Net imbalance ratio between buy and sell volume.

    Returns None when there is no volume; 0.0 is a real, neutral reading.
    """
    total = buy_volume + sell_volume
    if total <= 0:
        return None
    return (buy_volume - sell_volume) / total


class SentimentLevel(Enum):
    """Coarse sentiment classification."""

    STRONG_BUY = "strong_buy"
    BUY = "buy"
    NEUTRAL = "neutral"
    SELL = "sell"
    STRONG_SELL = "strong_sell"

    @classmethod
    def from_sentiment(cls, sentiment: float) -> "SentimentLevel":
        if sentiment >= 0.7:
            return cls.STRONG_BUY
        elif sentiment >= 0.3:
            return cls.BUY
        elif sentiment >= -0.3:
            return cls.NEUTRAL
        elif sentiment >= -0.7:
            return cls.SELL
        return cls.STRONG_SELL


def sentiment_level(sentiment: Optional[float]) -> Optional[SentimentLevel]:
    """Classify a sentiment value; None stays None."""
    if sentiment is None:
        return None
    return SentimentLevel.from_sentiment(sentiment)


@dataclass(frozen=True)
class TypeVolume:
    """Summed buy and sell volume for one investor type on one date."""

    buy_volume: float = 0.0
    sell_volume: float = 0.0

    @property
    def total(self) -> float:
        return self.buy_volume + self.sell_volume

    @property
    def sentiment(self) -> Optional[float]:
        return calculate_sentiment(self.buy_volume, self.sell_volume)


@dataclass(frozen=True)
class SentimentRecord:
    """Aggregated smart money sentiment for one security on one date."""

    security_id: str
    date: date
    per_type: Dict[InvestorType, TypeVolume] = field(default_factory=dict)
    type_sentiment: Dict[InvestorType, float] = field(default_factory=dict)
    composite_sentiment: Optional[float] = None
    total_buy_volume: float = 0.0
    total_sell_volume: float = 0.0

    @property
    def key(self) -> RecordKey:
        return (self.security_id, self.date)

    @property
    def total_volume(self) -> float:
        return self.total_buy_volume + self.total_sell_volume

    @property
    def has_data(self) -> bool:
        return self.composite_sentiment is not None

    @property
    def level(self) -> Optional[SentimentLevel]:
        return sentiment_level(self.composite_sentiment)

    @classmethod
    def empty(cls, security_id: str, on_date: date) -> "SentimentRecord":
        """Record for a security/date with no volume at all."""
        return cls(security_id=security_id, date=on_date)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "security_id": self.security_id,
            "date": self.date.isoformat(),
            "per_type": {
                t.code: {"buy": v.buy_volume, "sell": v.sell_volume}
                for t, v in self.per_type.items()
            },
            "type_sentiment": {t.code: s for t, s in self.type_sentiment.items()},
            "composite_sentiment": self.composite_sentiment,
            "total_buy_volume": self.total_buy_volume,
            "total_sell_volume": self.total_sell_volume,
        }


class SentimentAggregator:
    """
    Aggregate raw volume rows into per-(security, date) sentiment records.

    Malformed rows (missing security id or date, non-positive volume,
    unknown side or investor type) are skipped, never raised. Volumes are
    summed with ``math.fsum`` so the result does not depend on row order.
    """

    def __init__(
        self,
        catalog: Optional[InvestorTypeCatalog] = None,
        included_types: Optional[Iterable[InvestorType]] = None,
    ):
        """
        Initialize aggregator.

        Args:
            catalog: Investor type catalog (defaults to the built-in one)
            included_types: Restrict aggregation to these types; rows for
                other types contribute to neither side of the ratio
        """
        self.catalog = catalog or DEFAULT_CATALOG
        self.included_types = (
            frozenset(included_types) if included_types is not None else None
        )
        self.last_skipped = 0

    @classmethod
    def smart_money_only(
        cls, catalog: Optional[InvestorTypeCatalog] = None
    ) -> "SentimentAggregator":
        """Aggregator restricted to the institutional investor types."""
        catalog = catalog or DEFAULT_CATALOG
        return cls(catalog=catalog, included_types=catalog.smart_money_types)

    def _validate(self, row: Union[RawVolumeRecord, Mapping[str, Any]]) -> Optional[RawVolumeRecord]:
        if isinstance(row, RawVolumeRecord):
            return row
        try:
            return RawVolumeRecord.model_validate(row)
        except ValidationError as e:
            logger.debug(f"Skipping malformed volume row: {e.error_count()} error(s)")
            return None

    @log_performance(threshold_ms=500)
    def aggregate(
        self, records: Iterable[Union[RawVolumeRecord, Mapping[str, Any]]]
    ) -> Dict[RecordKey, SentimentRecord]:
        """
        Aggregate raw volume rows.

        Args:
            records: Iterable of RawVolumeRecord models or mappings with
                security_id, date, investor_type, side and volume

        Returns:
            Mapping of (security_id, date) to SentimentRecord
        """
        volumes: Dict[RecordKey, Dict[InvestorType, Dict[Side, List[float]]]] = defaultdict(
            lambda: defaultdict(lambda: {Side.BUY: [], Side.SELL: []})
        )

        seen = 0
        skipped = 0
        for row in records:
            seen += 1
            record = self._validate(row)
            if record is None or record.investor_type not in self.catalog:
                skipped += 1
                continue
            if self.included_types is not None and record.investor_type not in self.included_types:
                continue
            volumes[(record.security_id, record.date)][record.investor_type][record.side].append(
                record.volume
            )

        self.last_skipped = skipped
        if seen and skipped / seen > MALFORMED_WARNING_RATIO:
            logger.warning(
                f"Skipped {skipped} of {seen} volume rows as malformed",
                extra={"ctx_skipped": skipped, "ctx_rows": seen},
            )

        result = {key: self._build_record(key, by_type) for key, by_type in volumes.items()}
        logger.info(
            f"Aggregated {seen - skipped} volume rows into {len(result)} sentiment records"
        )
        return result

    def aggregate_frame(self, frame: pd.DataFrame) -> Dict[RecordKey, SentimentRecord]:
        """
        Aggregate a DataFrame of raw volume rows.

        The frame must carry security_id, date, investor_type, side and
        volume columns.
        """
        if frame is None or frame.empty:
            return {}
        return self.aggregate(frame.to_dict(orient="records"))

    def _build_record(
        self,
        key: RecordKey,
        by_type: Mapping[InvestorType, Mapping[Side, List[float]]],
    ) -> SentimentRecord:
        per_type: Dict[InvestorType, TypeVolume] = {}
        type_sentiment: Dict[InvestorType, float] = {}

        # Catalog order keeps dict iteration stable regardless of input order
        for investor_type in self.catalog:
            if investor_type not in by_type:
                continue
            sides = by_type[investor_type]
            volume = TypeVolume(
                buy_volume=math.fsum(sides[Side.BUY]),
                sell_volume=math.fsum(sides[Side.SELL]),
            )
            per_type[investor_type] = volume
            sentiment = volume.sentiment
            if sentiment is not None:
                type_sentiment[investor_type] = sentiment

        total_buy = math.fsum(v.buy_volume for v in per_type.values())
        total_sell = math.fsum(v.sell_volume for v in per_type.values())

        return SentimentRecord(
            security_id=key[0],
            date=key[1],
            per_type=per_type,
            type_sentiment=type_sentiment,
            composite_sentiment=calculate_sentiment(total_buy, total_sell),
            total_buy_volume=total_buy,
            total_sell_volume=total_sell,
        )


class SentimentHistory:
    """
    Per-security, date-ordered index over aggregated sentiment records.

    Built once from an aggregation result; every query touches only the
    requested security's series.
    """

    def __init__(self, records: Mapping[RecordKey, SentimentRecord]):
        series: Dict[str, List[SentimentRecord]] = defaultdict(list)
        for record in records.values():
            series[record.security_id].append(record)

        self._series: Dict[str, Tuple[SentimentRecord, ...]] = {}
        self._dates: Dict[str, List[date]] = {}
        for security_id, items in series.items():
            items.sort(key=lambda r: r.date)
            self._series[security_id] = tuple(items)
            self._dates[security_id] = [r.date for r in items]

        self._records = {r.key: r for items in self._series.values() for r in items}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: RecordKey) -> bool:
        return key in self._records

    @property
    def securities(self) -> List[str]:
        return sorted(self._series)

    def get(self, security_id: Any, on_date: Any) -> Optional[SentimentRecord]:
        """Record for a security and date, or None when nothing traded."""
        key = (normalize_security_id(security_id), coerce_date(on_date))
        return self._records.get(key)

    def series(self, security_id: Any) -> Tuple[SentimentRecord, ...]:
        """Full date-ordered series for a security."""
        return self._series.get(normalize_security_id(security_id), ())

    def window(self, security_id: Any, end_date: Any, size: int) -> Tuple[SentimentRecord, ...]:
        """The ``size`` most recent records dated on or before ``end_date``."""
        sid = normalize_security_id(security_id)
        items = self._series.get(sid, ())
        if not items or size <= 0:
            return ()
        end = bisect.bisect_right(self._dates[sid], coerce_date(end_date))
        return items[max(0, end - size):end]

    def before(self, security_id: Any, on_date: Any, size: int) -> Tuple[SentimentRecord, ...]:
        """The ``size`` most recent records dated strictly before ``on_date``."""
        sid = normalize_security_id(security_id)
        items = self._series.get(sid, ())
        if not items or size <= 0:
            return ()
        end = bisect.bisect_left(self._dates[sid], coerce_date(on_date))
        return items[max(0, end - size):end]

    def between(self, security_id: Any, end_date: Any, lookback_days: int) -> Tuple[SentimentRecord, ...]:
        """Records within ``lookback_days`` calendar days ending at ``end_date``."""
        sid = normalize_security_id(security_id)
        items = self._series.get(sid, ())
        if not items:
            return ()
        end_day = coerce_date(end_date)
        start_day = end_day - timedelta(days=lookback_days - 1)
        dates = self._dates[sid]
        lo = bisect.bisect_left(dates, start_day)
        hi = bisect.bisect_right(dates, end_day)
        return items[lo:hi]

    def to_frame(self, security_id: Any) -> pd.DataFrame:
        """Date-indexed DataFrame of composite sentiment, volume and per-type sentiment."""
        rows = []
        for record in self.series(security_id):
            row: Dict[str, Any] = {
                "date": pd.Timestamp(record.date),
                "composite_sentiment": record.composite_sentiment,
                "total_buy_volume": record.total_buy_volume,
                "total_sell_volume": record.total_sell_volume,
            }
            for investor_type, value in record.type_sentiment.items():
                row[f"sentiment_{investor_type.code}"] = value
            rows.append(row)
        if not rows:
            return pd.DataFrame(
                columns=["composite_sentiment", "total_buy_volume", "total_sell_volume"]
            )
        return pd.DataFrame(rows).set_index("date")


def composite_series(records: Sequence[SentimentRecord]) -> List[Optional[float]]:
    """Composite sentiment values of a record sequence, preserving None."""
    return [r.composite_sentiment for r in records]
