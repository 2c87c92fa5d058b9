"""
SmartFlow

Smart money sentiment analytics over end-of-day institutional trading
volume broken out by investor type.
"""

from .config import SmartFlowSettings, configure_logging, get_settings
from .core.errors import (
    ConfigurationError,
    DataError,
    InvalidParameterError,
    SmartFlowError,
)

# Static configuration
from .analytics.investor_types import (
    DEFAULT_CATALOG,
    DEFAULT_QUINTILES,
    DEFAULT_WEIGHTS,
    InvestorType,
    InvestorTypeCatalog,
    InvestorTypeInfo,
    QuintileBucket,
    QuintileTable,
    SignalQuality,
    WeightTable,
)

# Aggregation
from .analytics.sentiment import (
    SentimentAggregator,
    SentimentHistory,
    SentimentLevel,
    SentimentRecord,
    TypeVolume,
    calculate_sentiment,
    sentiment_level,
)

# Patterns and outcomes
from .analytics.patterns import PatternDetector, PatternResult, PatternThresholds
from .analytics.outcomes import (
    ConfidenceLevel,
    confidence_level,
    HistoricalOutcomeIndex,
    OutcomeStatistics,
    PatternOutcome,
    PriceSeries,
)

# Scoring
from .analytics.alerts import AlertLevel, AlertResult, AlertThresholds, classify_alert
from .analytics.scoring import (
    ConsensusLevel,
    Direction,
    ScoringThresholds,
    SignalScore,
    SignalScorer,
    StrengthLevel,
    TrendDirection,
)
from .analytics.calendar import day_of_week_context, month_end_context

# Decisions
from .signals.traffic_light import (
    DecisionEngine,
    DecisionThresholds,
    Recommendation,
    TrafficLightColor,
    TrafficLightDecision,
)

from .core.core import SmartFlowEngine

__version__ = "0.1.0"

__all__ = [
    # Engine
    "SmartFlowEngine",
    "SmartFlowSettings",
    "get_settings",
    "configure_logging",
    # Errors
    "SmartFlowError",
    "DataError",
    "InvalidParameterError",
    "ConfigurationError",
    # Static configuration
    "InvestorType",
    "InvestorTypeInfo",
    "InvestorTypeCatalog",
    "SignalQuality",
    "WeightTable",
    "QuintileBucket",
    "QuintileTable",
    "DEFAULT_CATALOG",
    "DEFAULT_WEIGHTS",
    "DEFAULT_QUINTILES",
    # Aggregation
    "SentimentAggregator",
    "SentimentHistory",
    "SentimentRecord",
    "SentimentLevel",
    "TypeVolume",
    "calculate_sentiment",
    "sentiment_level",
    # Patterns and outcomes
    "PatternDetector",
    "PatternResult",
    "PatternThresholds",
    "HistoricalOutcomeIndex",
    "OutcomeStatistics",
    "PatternOutcome",
    "PriceSeries",
    "ConfidenceLevel",
    "confidence_level",
    # Scoring
    "SignalScorer",
    "SignalScore",
    "ScoringThresholds",
    "ConsensusLevel",
    "Direction",
    "TrendDirection",
    "StrengthLevel",
    "AlertLevel",
    "AlertResult",
    "AlertThresholds",
    "classify_alert",
    "day_of_week_context",
    "month_end_context",
    # Decisions
    "DecisionEngine",
    "DecisionThresholds",
    "TrafficLightColor",
    "Recommendation",
    "TrafficLightDecision",
]
