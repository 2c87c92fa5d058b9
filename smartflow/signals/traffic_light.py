"""
Trade Traffic Light

Checks an intended trade direction against institutional sentiment and
recommends whether to proceed.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class TrafficLightColor(Enum):
    """Decision color; GRAY is the separate no-data state."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    GRAY = "gray"


class Recommendation(Enum):
    """What the trader should do with the intended trade."""

    PROCEED = "proceed"
    ADJUST = "adjust"
    RECONSIDER = "reconsider"
    NONE = "none"


class Alignment(Enum):
    """Relation between trade direction and sentiment."""

    ALIGNED = "aligned"
    MIXED = "mixed"
    OPPOSED = "opposed"
    NO_DATA = "no_data"


@dataclass(frozen=True)
class DecisionThresholds:
    """
    Sentiment bands for the traffic light.

    Independent of the alert thresholds: these judge a single intended
    trade, not the risk of a held position.
    """

    band: float = 0.3  # symmetric: aligned above +band, opposed at or below -band

    def __post_init__(self):
        if not self.band >= 0:
            raise ValueError("band must be a non-negative number")


@dataclass(frozen=True)
class TrafficLightDecision:
    """Traffic light output for one intended trade."""

    color: TrafficLightColor
    label: str
    recommendation: Recommendation
    message: str
    alignment: Alignment
    is_buy_action: bool
    sentiment_used: Optional[float] = None
    used_weighted: bool = False

    @property
    def has_data(self) -> bool:
        return self.alignment != Alignment.NO_DATA

    def to_dict(self) -> Dict[str, Any]:
        """Convert decision to dictionary."""
        return {
            "color": self.color.value,
            "label": self.label,
            "recommendation": self.recommendation.value,
            "message": self.message,
            "alignment": self.alignment.value,
            "is_buy_action": self.is_buy_action,
            "sentiment_used": self.sentiment_used,
            "used_weighted": self.used_weighted,
        }


class DecisionEngine:
    """Map (trade direction, sentiment) to a traffic light decision."""

    def __init__(self, thresholds: Optional[DecisionThresholds] = None):
        self.thresholds = thresholds or DecisionThresholds()

    def decide(
        self,
        is_buy_action: bool,
        raw_sentiment: Optional[float],
        weighted_sentiment: Optional[float] = None,
    ) -> TrafficLightDecision:
        """
        Decide on an intended trade.

        Weighted sentiment drives the decision when available, otherwise
        the raw composite is used.

        Args:
            is_buy_action: True for a buy, False for a sell
            raw_sentiment: Composite sentiment, or None
            weighted_sentiment: Quality-weighted sentiment, or None

        Returns:
            TrafficLightDecision; GRAY when neither sentiment is available
        """
        used_weighted = weighted_sentiment is not None
        sentiment = weighted_sentiment if used_weighted else raw_sentiment

        if sentiment is None:
            return TrafficLightDecision(
                color=TrafficLightColor.GRAY,
                label="No Data",
                recommendation=Recommendation.NONE,
                message="No institutional trading data available for this security",
                alignment=Alignment.NO_DATA,
                is_buy_action=is_buy_action,
            )

        # Positive when sentiment agrees with the trade direction
        alignment = sentiment if is_buy_action else -sentiment
        band = self.thresholds.band
        aligned, opposed = alignment > band, alignment <= -band

        source = "weighted institutional sentiment" if used_weighted else "institutional sentiment"
        if aligned:
            decision = TrafficLightDecision(
                color=TrafficLightColor.GREEN,
                label="Aligned",
                recommendation=Recommendation.PROCEED,
                message=f"Your trade direction aligns with {source}",
                alignment=Alignment.ALIGNED,
                is_buy_action=is_buy_action,
                sentiment_used=sentiment,
                used_weighted=used_weighted,
            )
        elif opposed:
            decision = TrafficLightDecision(
                color=TrafficLightColor.RED,
                label="Counter",
                recommendation=Recommendation.RECONSIDER,
                message=f"Your trade opposes {source}",
                alignment=Alignment.OPPOSED,
                is_buy_action=is_buy_action,
                sentiment_used=sentiment,
                used_weighted=used_weighted,
            )
        else:
            decision = TrafficLightDecision(
                color=TrafficLightColor.YELLOW,
                label="Mixed",
                recommendation=Recommendation.ADJUST,
                message=f"Mixed signals from {source}, proceed with caution",
                alignment=Alignment.MIXED,
                is_buy_action=is_buy_action,
                sentiment_used=sentiment,
                used_weighted=used_weighted,
            )

        logger.debug(
            f"Traffic light {'buy' if is_buy_action else 'sell'} at {sentiment:+.3f}: "
            f"{decision.color.value}"
        )
        return decision
