"""
Historical Outcome Index

Given a sentiment value, finds past dates where a security's composite
sentiment was similar and reports what its price did over the following
trading days.

Missing price data is never treated as a zero return: a match without a
full forward horizon of price rows is left out of the statistics.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd
from pydantic import ValidationError

from ..config.logging import log_performance
from ..core.errors import validate_horizon, validate_tolerance
from ..validation.models import PriceRecord, normalize_security_id
from .sentiment import SentimentHistory

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.1
RECENT_OUTCOME_COUNT = 5

# Slack on the band edge so decimal distances like 0.4 - 0.3 still match
MATCH_EPSILON = 1e-9


class ConfidenceLevel(Enum):
    """Confidence in a statistic based on its sample size."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INSUFFICIENT = "insufficient"

    @classmethod
    def from_sample_size(cls, sample_size: int) -> "ConfidenceLevel":
        if sample_size >= 50:
            return cls.HIGH
        elif sample_size >= 20:
            return cls.MEDIUM
        elif sample_size >= 5:
            return cls.LOW
        return cls.INSUFFICIENT


def confidence_level(sample_size: int) -> ConfidenceLevel:
    """Confidence tier for a historical sample: 50+ high, 20+ medium, 5+ low."""
    return ConfidenceLevel.from_sample_size(sample_size)


@dataclass(frozen=True)
class PatternOutcome:
    """Forward return following one historical match."""

    date: date
    sentiment: float
    forward_return: float

    @property
    def is_positive(self) -> bool:
        return self.forward_return > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "sentiment": self.sentiment,
            "forward_return": self.forward_return,
        }


@dataclass(frozen=True)
class OutcomeStatistics:
    """
    What happened after similar sentiment readings.

    ``has_data`` is the explicit no-data marker: when False, ``decline_rate``
    and ``avg_change`` are None and must not be used in arithmetic.
    """

    security_id: str
    sentiment_value: float
    horizon_days: int
    tolerance: float
    total_patterns: int = 0
    positive_outcomes: int = 0
    negative_outcomes: int = 0
    decline_rate: Optional[float] = None  # % of matches with forward return < 0
    avg_change: Optional[float] = None  # mean forward return, %
    recent_outcomes: Tuple[PatternOutcome, ...] = field(default_factory=tuple)

    @property
    def has_data(self) -> bool:
        return self.total_patterns > 0

    @property
    def confidence(self) -> ConfidenceLevel:
        return ConfidenceLevel.from_sample_size(self.total_patterns)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "security_id": self.security_id,
            "sentiment_value": self.sentiment_value,
            "horizon_days": self.horizon_days,
            "tolerance": self.tolerance,
            "total_patterns": self.total_patterns,
            "positive_outcomes": self.positive_outcomes,
            "negative_outcomes": self.negative_outcomes,
            "decline_rate": self.decline_rate,
            "avg_change": self.avg_change,
            "recent_outcomes": [o.to_dict() for o in self.recent_outcomes],
            "has_data": self.has_data,
            "confidence": self.confidence.value,
        }


class PriceSeries:
    """
    Daily percentage price changes per security.

    Indexed by security, each series sorted by date, so forward returns are
    a slice of the trading days strictly after a given date.
    """

    def __init__(self, changes: Optional[Mapping[str, pd.Series]] = None):
        self._changes: Dict[str, pd.Series] = {}
        for security_id, series in (changes or {}).items():
            cleaned = series.dropna().sort_index()
            cleaned = cleaned[~cleaned.index.duplicated(keep="last")]
            self._changes[security_id] = cleaned

    def __contains__(self, security_id: Any) -> bool:
        return normalize_security_id(security_id) in self._changes

    def __len__(self) -> int:
        return len(self._changes)

    @classmethod
    def from_records(
        cls, records: Iterable[Union[PriceRecord, Mapping[str, Any]]]
    ) -> "PriceSeries":
        """
        Build from PriceRecord models or mappings with security_id, date, change.

        Malformed rows are skipped.
        """
        by_security: Dict[str, Dict[date, float]] = {}
        skipped = 0
        for row in records:
            try:
                record = row if isinstance(row, PriceRecord) else PriceRecord.model_validate(row)
            except ValidationError:
                skipped += 1
                continue
            by_security.setdefault(record.security_id, {})[record.date] = record.change

        if skipped:
            logger.debug(f"Skipped {skipped} malformed price rows")

        return cls(
            {
                sid: pd.Series(values, dtype=float).sort_index()
                for sid, values in by_security.items()
            }
        )

    @classmethod
    def from_frame(cls, frame: Optional[pd.DataFrame]) -> "PriceSeries":
        """Build from a DataFrame with security_id, date and change columns."""
        if frame is None or frame.empty:
            return cls()
        return cls.from_records(frame.to_dict(orient="records"))

    def forward_return(self, security_id: Any, after: date, horizon_days: int) -> Optional[float]:
        """
        Sum of daily % changes over the ``horizon_days`` trading days after ``after``.

        Returns None when fewer than ``horizon_days`` price rows follow.
        """
        series = self._changes.get(normalize_security_id(security_id))
        if series is None or series.empty:
            return None
        start = series.index.searchsorted(after, side="right")
        window = series.iloc[start:start + horizon_days]
        if len(window) < horizon_days:
            return None
        return float(window.to_numpy().sum())


class HistoricalOutcomeIndex:
    """
    Look up forward price outcomes after similar historical sentiment.

    A historical date matches when its composite sentiment lies within
    ``tolerance`` of the queried value.
    """

    def __init__(
        self,
        history: SentimentHistory,
        prices: Optional[PriceSeries] = None,
        tolerance: float = DEFAULT_TOLERANCE,
    ):
        """
        Initialize outcome index.

        Args:
            history: Aggregated sentiment history
            prices: Daily price changes per security
            tolerance: Half-width of the matching sentiment band
        """
        self.history = history
        self.prices = prices or PriceSeries()
        self.tolerance = validate_tolerance(tolerance)
        logger.info(f"HistoricalOutcomeIndex initialized (tolerance={self.tolerance})")

    @log_performance(threshold_ms=250)
    def outcomes(
        self,
        security_id: Any,
        sentiment_value: float,
        horizon_days: int,
        tolerance: Optional[float] = None,
    ) -> OutcomeStatistics:
        """
        Statistics of forward returns after similar sentiment readings.

        Args:
            security_id: Security identifier
            sentiment_value: Sentiment to match against history
            horizon_days: Forward trading days per outcome
            tolerance: Override of the index's matching band

        Returns:
            OutcomeStatistics; ``has_data`` is False when nothing matched

        Raises:
            InvalidParameterError: For a non-positive horizon or negative tolerance
        """
        horizon_days = validate_horizon(horizon_days)
        band = self.tolerance if tolerance is None else validate_tolerance(tolerance)
        sid = normalize_security_id(security_id)

        matched: List[PatternOutcome] = []
        for record in self.history.series(sid):
            sentiment = record.composite_sentiment
            if sentiment is None or abs(sentiment - sentiment_value) > band + MATCH_EPSILON:
                continue
            forward = self.prices.forward_return(sid, record.date, horizon_days)
            if forward is None:
                continue
            matched.append(PatternOutcome(record.date, sentiment, forward))

        logger.debug(
            f"Outcome lookup for {sid} at {sentiment_value:+.3f}±{band}: "
            f"{len(matched)} matches with price data"
        )

        if not matched:
            return OutcomeStatistics(
                security_id=sid,
                sentiment_value=sentiment_value,
                horizon_days=horizon_days,
                tolerance=band,
            )

        returns = np.array([o.forward_return for o in matched], dtype=float)
        declines = int((returns < 0).sum())
        positives = int((returns > 0).sum())

        return OutcomeStatistics(
            security_id=sid,
            sentiment_value=sentiment_value,
            horizon_days=horizon_days,
            tolerance=band,
            total_patterns=len(matched),
            positive_outcomes=positives,
            negative_outcomes=declines,
            decline_rate=declines / len(matched) * 100,
            avg_change=float(returns.mean()),
            recent_outcomes=tuple(matched[-RECENT_OUTCOME_COUNT:]),
        )
