"""
Smart Money Signal Scoring

Scores one aggregated sentiment record from several independent angles:

- Consensus: how many investor types agree on direction
- Trend: current composite versus its recent average
- Weighted sentiment: composite reweighted by backtested predictive quality
- Quintile: historical expected return for the sentiment range
- Pattern strength: additive 0-100 warning score
- Alert level: combined sentiment/pattern classification

Every sub-computation is a pure function of its inputs. Static tables are
injected at construction so they can be swapped for recalibration.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..core.errors import validate_lookback
from .alerts import AlertResult, AlertThresholds, classify_alert
from .investor_types import (
    DEFAULT_CATALOG,
    DEFAULT_QUINTILES,
    DEFAULT_WEIGHTS,
    InvestorType,
    InvestorTypeCatalog,
    QuintileBucket,
    QuintileTable,
    SignalQuality,
    WeightTable,
)
from .patterns import PatternResult
from .sentiment import SentimentRecord

logger = logging.getLogger(__name__)

HistoryPoint = Union[SentimentRecord, Optional[float]]


class Direction(Enum):
    """Sentiment direction."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class ConsensusLevel(Enum):
    """Agreement among investor types."""

    UNANIMOUS = "unanimous"
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    UNKNOWN = "unknown"


class TrendDirection(Enum):
    """Change of composite sentiment against its recent average."""

    IMPROVING = "improving"
    SLIGHTLY_IMPROVING = "slightly_improving"
    STABLE = "stable"
    SLIGHTLY_DETERIORATING = "slightly_deteriorating"
    DETERIORATING = "deteriorating"
    UNKNOWN = "unknown"


class StrengthLevel(Enum):
    """Pattern strength level."""

    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


class FlowStrength(Enum):
    """Magnitude tier of the foreign flow sentiment."""

    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


@dataclass(frozen=True)
class ScoringThresholds:
    """Configurable thresholds for signal scoring."""

    # Direction bands shared by consensus and foreign flow
    bullish_above: float = 0.1
    bearish_below: float = -0.1

    # Consensus agreement ratios
    consensus_strong: float = 0.8
    consensus_moderate: float = 0.6

    # Trend delta bands
    trend_stable: float = 0.05
    trend_slight: float = 0.15
    trend_min_points: int = 2

    # Pattern strength points
    short_streak_days: int = 2
    short_streak_points: int = 15
    long_streak_days: int = 3
    long_streak_points: int = 40
    volume_spike_points: int = 20
    heavy_selling_below: float = -0.5
    heavy_selling_points: int = 20
    extreme_selling_below: float = -0.7
    extreme_selling_points: int = 30

    # Pattern strength levels
    critical_score: int = 70
    high_score: int = 50
    moderate_score: int = 25

    # Foreign flow magnitude tiers
    flow_strong: float = 0.7
    flow_moderate: float = 0.3

    def direction_of(self, sentiment: float) -> Direction:
        if sentiment > self.bullish_above:
            return Direction.BULLISH
        elif sentiment < self.bearish_below:
            return Direction.BEARISH
        return Direction.NEUTRAL


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class ConsensusResult:
    """Direction counts across investor types with defined sentiment."""

    bullish_count: int = 0
    bearish_count: int = 0
    neutral_count: int = 0
    level: ConsensusLevel = ConsensusLevel.UNKNOWN
    dominant_direction: Direction = Direction.UNKNOWN
    agreement_ratio: Optional[float] = None

    @property
    def total_types(self) -> int:
        return self.bullish_count + self.bearish_count + self.neutral_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bullish_count": self.bullish_count,
            "bearish_count": self.bearish_count,
            "neutral_count": self.neutral_count,
            "total_types": self.total_types,
            "level": self.level.value,
            "dominant_direction": self.dominant_direction.value,
            "agreement_ratio": self.agreement_ratio,
        }


@dataclass(frozen=True)
class TrendResult:
    """Current composite against the mean of recent history."""

    direction: TrendDirection = TrendDirection.UNKNOWN
    current: Optional[float] = None
    average: Optional[float] = None
    delta: Optional[float] = None
    points_used: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "current": self.current,
            "average": self.average,
            "delta": self.delta,
            "points_used": self.points_used,
        }


@dataclass(frozen=True)
class WeightedSentimentResult:
    """Quality-weighted composite and the type driving it."""

    weighted_sentiment: Optional[float] = None
    strongest_type: Optional[InvestorType] = None
    strongest_type_name: Optional[str] = None
    strongest_quality: Optional[SignalQuality] = None
    types_used: Tuple[InvestorType, ...] = field(default_factory=tuple)

    @property
    def has_data(self) -> bool:
        return self.weighted_sentiment is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weighted_sentiment": self.weighted_sentiment,
            "strongest_type": self.strongest_type.code if self.strongest_type else None,
            "strongest_type_name": self.strongest_type_name,
            "strongest_quality": self.strongest_quality.value if self.strongest_quality else None,
            "types_used": [t.code for t in self.types_used],
        }


@dataclass(frozen=True)
class QuintileResult:
    """Quintile bucket for a sentiment value, or no data."""

    sentiment: Optional[float] = None
    bucket: Optional[QuintileBucket] = None

    @property
    def has_data(self) -> bool:
        return self.bucket is not None

    @property
    def label(self) -> str:
        return self.bucket.label if self.bucket else "No Data"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment,
            "has_data": self.has_data,
            "label": self.label,
            "bucket": self.bucket.to_dict() if self.bucket else None,
        }


@dataclass(frozen=True)
class PatternFactor:
    """One contribution to the pattern strength score."""

    name: str
    points: int
    detail: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "points": self.points, "detail": self.detail}


@dataclass(frozen=True)
class PatternStrengthResult:
    """Additive warning score in [0, 100]."""

    score: int = 0
    level: StrengthLevel = StrengthLevel.LOW
    factors: Tuple[PatternFactor, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level.value,
            "factors": [f.to_dict() for f in self.factors],
        }


@dataclass(frozen=True)
class ForeignFlowSignal:
    """Sentiment of the foreign flow investor type on its own."""

    sentiment: float
    direction: Direction
    strength: FlowStrength
    buy_volume: float
    sell_volume: float
    is_contrarian: bool = False
    contrarian_detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment,
            "direction": self.direction.value,
            "strength": self.strength.value,
            "buy_volume": self.buy_volume,
            "sell_volume": self.sell_volume,
            "is_contrarian": self.is_contrarian,
            "contrarian_detail": self.contrarian_detail,
        }


@dataclass(frozen=True)
class SignalScore:
    """All scored views of one sentiment record."""

    security_id: str
    date: Any
    composite_sentiment: Optional[float]
    consensus: ConsensusResult
    trend: TrendResult
    weighted: WeightedSentimentResult
    quintile: QuintileResult
    pattern_strength: PatternStrengthResult
    alert_level: AlertResult
    foreign_flow: Optional[ForeignFlowSignal] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert score to dictionary."""
        return {
            "security_id": self.security_id,
            "date": self.date.isoformat() if self.date is not None else None,
            "composite_sentiment": self.composite_sentiment,
            "consensus": self.consensus.to_dict(),
            "trend": self.trend.to_dict(),
            "weighted": self.weighted.to_dict(),
            "quintile": self.quintile.to_dict(),
            "pattern_strength": self.pattern_strength.to_dict(),
            "alert_level": self.alert_level.to_dict(),
            "foreign_flow": self.foreign_flow.to_dict() if self.foreign_flow else None,
        }


# =============================================================================
# Scorer
# =============================================================================


class SignalScorer:
    """
    Compute scored signals from aggregated smart money sentiment.

    Static configuration (catalog, weights, quintile table and thresholds) is
    injected; the scorer itself holds no mutable state.
    """

    def __init__(
        self,
        catalog: Optional[InvestorTypeCatalog] = None,
        weights: Optional[WeightTable] = None,
        quintiles: Optional[QuintileTable] = None,
        thresholds: Optional[ScoringThresholds] = None,
        alert_thresholds: Optional[AlertThresholds] = None,
        trend_lookback_days: int = 5,
    ):
        """
        Initialize scorer.

        Args:
            catalog: Investor type catalog
            weights: Predictive-quality weight table
            quintiles: Sentiment quintile table
            thresholds: Scoring thresholds
            alert_thresholds: Alert classification thresholds
            trend_lookback_days: Default lookback for the trend baseline
        """
        self.catalog = catalog or DEFAULT_CATALOG
        self.weights = weights or (
            DEFAULT_WEIGHTS if catalog is None else WeightTable.from_catalog(self.catalog)
        )
        self.quintiles = quintiles or DEFAULT_QUINTILES
        self.thresholds = thresholds or ScoringThresholds()
        self.alert_thresholds = alert_thresholds or AlertThresholds()
        self.trend_lookback_days = validate_lookback(trend_lookback_days)
        logger.info("SignalScorer initialized")

    # -------------------------------------------------------------------------
    # Consensus
    # -------------------------------------------------------------------------

    def consensus(
        self,
        type_sentiment: Mapping[InvestorType, float],
        types: Optional[Iterable[InvestorType]] = None,
    ) -> ConsensusResult:
        """
        Direction agreement among investor types with defined sentiment.

        Args:
            type_sentiment: Per-type sentiment; absent types have no data
            types: Restrict counting to these types (all present types if None)

        Returns:
            ConsensusResult; UNKNOWN when no type has data
        """
        t = self.thresholds
        candidates = list(types) if types is not None else list(type_sentiment)

        counts = {Direction.BULLISH: 0, Direction.BEARISH: 0, Direction.NEUTRAL: 0}
        for investor_type in candidates:
            sentiment = type_sentiment.get(investor_type)
            if sentiment is None:
                continue
            counts[t.direction_of(sentiment)] += 1

        total = sum(counts.values())
        if total == 0:
            return ConsensusResult()

        majority = max(counts.values())
        ratio = majority / total

        if ratio >= 1.0:
            level = ConsensusLevel.UNANIMOUS
        elif ratio >= t.consensus_strong:
            level = ConsensusLevel.STRONG
        elif ratio >= t.consensus_moderate:
            level = ConsensusLevel.MODERATE
        else:
            level = ConsensusLevel.WEAK

        leaders = [d for d, n in counts.items() if n == majority]
        dominant = leaders[0] if len(leaders) == 1 else Direction.MIXED

        return ConsensusResult(
            bullish_count=counts[Direction.BULLISH],
            bearish_count=counts[Direction.BEARISH],
            neutral_count=counts[Direction.NEUTRAL],
            level=level,
            dominant_direction=dominant,
            agreement_ratio=ratio,
        )

    # -------------------------------------------------------------------------
    # Trend
    # -------------------------------------------------------------------------

    def trend(
        self,
        current: Optional[float],
        history: Sequence[HistoryPoint],
        lookback_days: Optional[int] = None,
    ) -> TrendResult:
        """
        Compare the current composite with the mean of recent history.

        Args:
            current: Current composite sentiment
            history: Preceding records or composite values, oldest first
            lookback_days: Number of trailing history points to average

        Returns:
            TrendResult; UNKNOWN with fewer than two usable history points
        """
        lookback = self.trend_lookback_days if lookback_days is None else validate_lookback(lookback_days)
        t = self.thresholds

        values = [_composite_of(point) for point in list(history)[-lookback:]]
        points = [v for v in values if v is not None]

        if current is None or len(points) < t.trend_min_points:
            return TrendResult(current=current, points_used=len(points))

        average = float(np.mean(points))
        delta = current - average

        if abs(delta) < t.trend_stable:
            direction = TrendDirection.STABLE
        elif abs(delta) < t.trend_slight:
            direction = (
                TrendDirection.SLIGHTLY_IMPROVING if delta > 0 else TrendDirection.SLIGHTLY_DETERIORATING
            )
        else:
            direction = TrendDirection.IMPROVING if delta > 0 else TrendDirection.DETERIORATING

        return TrendResult(
            direction=direction,
            current=current,
            average=average,
            delta=delta,
            points_used=len(points),
        )

    # -------------------------------------------------------------------------
    # Weighted sentiment
    # -------------------------------------------------------------------------

    def weighted(self, type_sentiment: Mapping[InvestorType, float]) -> WeightedSentimentResult:
        """
        Quality-weighted average of per-type sentiment.

        Only the scored types (smart money plus foreign flow) with defined
        sentiment contribute. The weight table switches on whether the
        foreign flow type is present.
        """
        present = [
            t for t in self.catalog.scored_types if type_sentiment.get(t) is not None
        ]
        table = self.weights.for_types(present)
        used = [t for t in present if t in table]

        weights = np.array([table[t] for t in used], dtype=float)
        total_weight = float(weights.sum()) if used else 0.0
        if total_weight <= 0:
            return WeightedSentimentResult()

        sentiments = np.array([type_sentiment[t] for t in used], dtype=float)
        contributions = sentiments * weights
        weighted_sentiment = float(contributions.sum() / total_weight)

        strongest_type = None
        magnitudes = np.abs(contributions)
        if magnitudes.max() > 0:
            strongest_type = used[int(np.argmax(magnitudes))]

        return WeightedSentimentResult(
            weighted_sentiment=weighted_sentiment,
            strongest_type=strongest_type,
            strongest_type_name=self.catalog.name(strongest_type) if strongest_type else None,
            strongest_quality=self.catalog.quality(strongest_type) if strongest_type else None,
            types_used=tuple(used),
        )

    # -------------------------------------------------------------------------
    # Quintile
    # -------------------------------------------------------------------------

    def quintile(self, sentiment: Optional[float]) -> QuintileResult:
        """Historical expected return bucket for a sentiment value."""
        return QuintileResult(sentiment=sentiment, bucket=self.quintiles.lookup(sentiment))

    # -------------------------------------------------------------------------
    # Pattern strength
    # -------------------------------------------------------------------------

    def pattern_strength(
        self, pattern: Optional[PatternResult], sentiment: Optional[float]
    ) -> PatternStrengthResult:
        """
        Additive warning score.

        Sell streak: 2 days +15, 3 or more +40. Volume spike +20.
        Sentiment below -0.5 +20, below -0.7 +30 (tiers do not stack).
        Clamped to [0, 100].
        """
        t = self.thresholds
        factors: List[PatternFactor] = []

        sell_days = pattern.consecutive_sell_days if pattern else 0
        if sell_days >= t.long_streak_days:
            factors.append(
                PatternFactor("Selling streak", t.long_streak_points, f"{sell_days} consecutive days")
            )
        elif sell_days >= t.short_streak_days:
            factors.append(
                PatternFactor("Short selling streak", t.short_streak_points, f"{sell_days} consecutive days")
            )

        if pattern is not None and pattern.has_volume_spike:
            ratio = pattern.volume_ratio
            detail = f"{ratio:.1f}x average" if ratio is not None else "above average"
            factors.append(PatternFactor("Volume spike", t.volume_spike_points, detail))

        if sentiment is not None:
            if sentiment < t.extreme_selling_below:
                factors.append(
                    PatternFactor(
                        "Strong selling pressure", t.extreme_selling_points, f"{sentiment * 100:.0f}% sentiment"
                    )
                )
            elif sentiment < t.heavy_selling_below:
                factors.append(
                    PatternFactor("Heavy selling", t.heavy_selling_points, f"{sentiment * 100:.0f}% sentiment")
                )

        score = int(np.clip(sum(f.points for f in factors), 0, 100))

        if score >= t.critical_score:
            level = StrengthLevel.CRITICAL
        elif score >= t.high_score:
            level = StrengthLevel.HIGH
        elif score >= t.moderate_score:
            level = StrengthLevel.MODERATE
        else:
            level = StrengthLevel.LOW

        return PatternStrengthResult(score=score, level=level, factors=tuple(factors))

    # -------------------------------------------------------------------------
    # Alert level
    # -------------------------------------------------------------------------

    def alert_level(
        self, composite: Optional[float], pattern: Optional[PatternResult]
    ) -> AlertResult:
        return classify_alert(composite, pattern, self.alert_thresholds)

    # -------------------------------------------------------------------------
    # Foreign flow
    # -------------------------------------------------------------------------

    def foreign_flow(self, record: SentimentRecord) -> Optional[ForeignFlowSignal]:
        """
        Signal of the foreign flow type alone.

        Flags a contrarian reading when it points the other way from the
        composite. Returns None when the type did not trade.
        """
        flow_type = self.catalog.foreign_flow_type
        sentiment = record.type_sentiment.get(flow_type)
        if sentiment is None:
            return None

        t = self.thresholds
        volume = record.per_type[flow_type]
        direction = t.direction_of(sentiment)

        magnitude = abs(sentiment)
        if magnitude >= t.flow_strong:
            strength = FlowStrength.STRONG
        elif magnitude >= t.flow_moderate:
            strength = FlowStrength.MODERATE
        else:
            strength = FlowStrength.WEAK

        is_contrarian = False
        detail = None
        composite = record.composite_sentiment
        if composite is not None:
            composite_direction = t.direction_of(composite)
            directional = (Direction.BULLISH, Direction.BEARISH)
            if (
                direction in directional
                and composite_direction in directional
                and direction != composite_direction
            ):
                is_contrarian = True
                detail = (
                    f"Foreign investors are {direction.value} while smart money is "
                    f"{composite_direction.value}"
                )

        return ForeignFlowSignal(
            sentiment=sentiment,
            direction=direction,
            strength=strength,
            buy_volume=volume.buy_volume,
            sell_volume=volume.sell_volume,
            is_contrarian=is_contrarian,
            contrarian_detail=detail,
        )

    # -------------------------------------------------------------------------
    # Full score
    # -------------------------------------------------------------------------

    def score(
        self,
        record: SentimentRecord,
        pattern: Optional[PatternResult] = None,
        history: Sequence[HistoryPoint] = (),
    ) -> SignalScore:
        """
        Score a sentiment record.

        Args:
            record: Aggregated sentiment for one security and date
            pattern: Pattern detected for the same security and date
            history: Records preceding ``record``, oldest first, for the trend

        Returns:
            SignalScore with every sub-computation
        """
        composite = record.composite_sentiment
        result = SignalScore(
            security_id=record.security_id,
            date=record.date,
            composite_sentiment=composite,
            consensus=self.consensus(record.type_sentiment),
            trend=self.trend(composite, history),
            weighted=self.weighted(record.type_sentiment),
            quintile=self.quintile(composite),
            pattern_strength=self.pattern_strength(pattern, composite),
            alert_level=self.alert_level(composite, pattern),
            foreign_flow=self.foreign_flow(record),
        )
        logger.debug(
            f"Scored {record.security_id} {record.date}: alert={result.alert_level.level.value} "
            f"strength={result.pattern_strength.score}"
        )
        return result


def _composite_of(point: HistoryPoint) -> Optional[float]:
    if isinstance(point, SentimentRecord):
        return point.composite_sentiment
    if point is None:
        return None
    value = float(point)
    return None if np.isnan(value) else value
