"""
Smart Money Pattern Detection

Inspects a trailing window of aggregated sentiment records for one security
to flag consecutive same-direction days and volume spikes.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Sequence

import numpy as np

from ..core.errors import validate_window_size
from ..validation.models import coerce_date, normalize_security_id
from .sentiment import SentimentHistory, SentimentRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternThresholds:
    """Configurable thresholds for pattern detection."""

    volume_spike_multiplier: float = 2.0  # latest >= 2x trailing average
    flag_sell_days: int = 2  # sell streak length that flags the pattern

    def __post_init__(self):
        if self.volume_spike_multiplier <= 0:
            raise ValueError("volume_spike_multiplier must be positive")
        if self.flag_sell_days < 1:
            raise ValueError("flag_sell_days must be at least 1")


@dataclass(frozen=True)
class PatternResult:
    """Selling/buying streaks and volume anomaly for a trailing window."""

    security_id: str
    reference_date: Optional[date]
    window_size: int
    consecutive_sell_days: int = 0
    consecutive_buy_days: int = 0
    has_volume_spike: bool = False
    latest_volume: float = 0.0
    avg_volume: float = 0.0
    flagged: bool = False
    days_analyzed: int = 0

    @property
    def volume_ratio(self) -> Optional[float]:
        """Latest volume over trailing average; None without a baseline."""
        if self.avg_volume <= 0:
            return None
        return self.latest_volume / self.avg_volume

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "security_id": self.security_id,
            "reference_date": self.reference_date.isoformat() if self.reference_date else None,
            "window_size": self.window_size,
            "consecutive_sell_days": self.consecutive_sell_days,
            "consecutive_buy_days": self.consecutive_buy_days,
            "has_volume_spike": self.has_volume_spike,
            "latest_volume": self.latest_volume,
            "avg_volume": self.avg_volume,
            "volume_ratio": self.volume_ratio,
            "flagged": self.flagged,
            "days_analyzed": self.days_analyzed,
        }


def count_streak(records: Sequence[SentimentRecord], direction: int) -> int:
    """
    Count consecutive records, newest first, whose composite has ``direction``.

    A None or exactly-zero composite is non-directional and ends the streak.
    """
    streak = 0
    for record in reversed(records):
        sentiment = record.composite_sentiment
        if sentiment is None or np.sign(sentiment) != direction:
            break
        streak += 1
    return streak


def analyze_window(
    security_id: str,
    reference_date: Optional[date],
    window: Sequence[SentimentRecord],
    window_size: int,
    thresholds: Optional[PatternThresholds] = None,
) -> PatternResult:
    """
    Build a PatternResult from an already selected, date-ordered window.

    Args:
        security_id: Security the window belongs to
        reference_date: Query date
        window: Records ordered oldest to newest
        window_size: Requested window size (echoed in the result)
        thresholds: Pattern thresholds

    Returns:
        PatternResult; an unflagged all-zero result for an empty window
    """
    thresholds = thresholds or PatternThresholds()

    if not window:
        return PatternResult(
            security_id=security_id,
            reference_date=reference_date,
            window_size=window_size,
        )

    volumes = np.array([r.total_volume for r in window], dtype=float)
    latest_volume = float(volumes[-1])
    prior = volumes[:-1]
    avg_volume = float(prior.mean()) if prior.size > 0 else 0.0

    has_volume_spike = bool(
        avg_volume > 0 and latest_volume >= thresholds.volume_spike_multiplier * avg_volume
    )
    consecutive_sell_days = count_streak(window, -1)
    consecutive_buy_days = count_streak(window, 1)

    return PatternResult(
        security_id=security_id,
        reference_date=reference_date,
        window_size=window_size,
        consecutive_sell_days=consecutive_sell_days,
        consecutive_buy_days=consecutive_buy_days,
        has_volume_spike=has_volume_spike,
        latest_volume=latest_volume,
        avg_volume=avg_volume,
        flagged=consecutive_sell_days >= thresholds.flag_sell_days or has_volume_spike,
        days_analyzed=len(window),
    )


class PatternDetector:
    """Detect selling streaks and volume spikes from a sentiment history."""

    def __init__(
        self,
        history: SentimentHistory,
        thresholds: Optional[PatternThresholds] = None,
    ):
        self.history = history
        self.thresholds = thresholds or PatternThresholds()
        logger.info("PatternDetector initialized")

    def detect(self, security_id: Any, reference_date: Any, window_size: int) -> PatternResult:
        """
        Detect patterns in the trailing window ending at ``reference_date``.

        Args:
            security_id: Security identifier
            reference_date: Last date included in the window
            window_size: Maximum number of records in the window

        Returns:
            PatternResult for the window

        Raises:
            InvalidParameterError: If window_size is not a positive integer
        """
        window_size = validate_window_size(window_size)
        sid = normalize_security_id(security_id)
        ref = coerce_date(reference_date)

        window = self.history.window(sid, ref, window_size)
        result = analyze_window(sid, ref, window, window_size, self.thresholds)

        logger.debug(
            f"Pattern for {sid} at {ref}: sell={result.consecutive_sell_days} "
            f"buy={result.consecutive_buy_days} spike={result.has_volume_spike}"
        )
        return result
