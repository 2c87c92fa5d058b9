"""
Smart Money Alert Classification

Combines the composite sentiment with the detected selling pattern into a
single alert level for a held position.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .patterns import PatternResult

logger = logging.getLogger(__name__)


class AlertLevel(Enum):
    """Alert levels, most severe first."""

    HIGH = "high"
    MEDIUM = "medium"
    BULLISH = "bullish"
    CLEAR = "clear"


class AlertColor(Enum):
    """Display color associated with an alert level."""

    RED = "red"
    YELLOW = "yellow"
    TEAL = "teal"
    GREEN = "green"


class AlertConfidence(Enum):
    """How much the combined signals back the alert."""

    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


@dataclass(frozen=True)
class AlertThresholds:
    """Configurable thresholds for alert classification."""

    # HIGH
    high_sentiment: float = -0.5  # combined with a sustained sell streak
    high_sell_days: int = 3
    extreme_sentiment: float = -0.7  # HIGH on its own

    # MEDIUM
    medium_sentiment: float = -0.3
    medium_sell_days: int = 2

    # BULLISH (requires a volume spike)
    bullish_sentiment: float = 0.5


@dataclass(frozen=True)
class AlertResult:
    """Classified alert with its explanation."""

    level: AlertLevel
    color: AlertColor
    reason: str
    action: str
    confidence: AlertConfidence

    @property
    def is_warning(self) -> bool:
        return self.level in (AlertLevel.HIGH, AlertLevel.MEDIUM)

    def to_dict(self) -> Dict[str, Any]:
        """Convert alert to dictionary."""
        return {
            "level": self.level.value,
            "color": self.color.value,
            "reason": self.reason,
            "action": self.action,
            "confidence": self.confidence.value,
        }


def classify_alert(
    composite: Optional[float],
    pattern: Optional[PatternResult] = None,
    thresholds: Optional[AlertThresholds] = None,
) -> AlertResult:
    """
    Classify the alert level for a security.

    Rules are checked in order (first match wins):
        HIGH     composite < -0.5 with a sell streak >= 3, or composite < -0.7
        MEDIUM   composite < -0.3, or a sell streak >= 2
        BULLISH  composite > 0.5 with a volume spike
        CLEAR    otherwise

    A None composite has no direction, so only the streak and spike
    conditions can apply.

    Args:
        composite: Composite smart money sentiment, or None
        pattern: Detected pattern for the same security and date
        thresholds: Alert thresholds

    Returns:
        AlertResult; every input maps to exactly one level
    """
    t = thresholds or AlertThresholds()
    sell_days = pattern.consecutive_sell_days if pattern else 0
    has_spike = pattern.has_volume_spike if pattern else False

    if composite is not None and composite < t.high_sentiment and sell_days >= t.high_sell_days:
        return AlertResult(
            level=AlertLevel.HIGH,
            color=AlertColor.RED,
            reason="Strong selling sentiment with sustained selling pattern",
            action="Consider hedging or exit",
            confidence=AlertConfidence.HIGH,
        )

    if composite is not None and composite < t.extreme_sentiment:
        return AlertResult(
            level=AlertLevel.HIGH,
            color=AlertColor.RED,
            reason="Extreme institutional selling pressure",
            action="Review position urgently",
            confidence=AlertConfidence.MODERATE,
        )

    moderate_selling = composite is not None and composite < t.medium_sentiment
    if moderate_selling or sell_days >= t.medium_sell_days:
        reasons: List[str] = []
        if moderate_selling:
            reasons.append("Moderate selling sentiment")
        if sell_days >= t.medium_sell_days:
            reasons.append(f"{sell_days} consecutive sell days")
        if has_spike:
            reasons.append("Volume spike detected")
        return AlertResult(
            level=AlertLevel.MEDIUM,
            color=AlertColor.YELLOW,
            reason="; ".join(reasons),
            action="Monitor closely",
            confidence=AlertConfidence.MODERATE,
        )

    if composite is not None and composite > t.bullish_sentiment and has_spike:
        return AlertResult(
            level=AlertLevel.BULLISH,
            color=AlertColor.TEAL,
            reason="Volume spike with strong institutional buying",
            action="Potential opportunity, volume confirms buying pressure",
            confidence=AlertConfidence.MODERATE,
        )

    return AlertResult(
        level=AlertLevel.CLEAR,
        color=AlertColor.GREEN,
        reason="No concerning signals",
        action="Continue holding",
        confidence=AlertConfidence.LOW,
    )
