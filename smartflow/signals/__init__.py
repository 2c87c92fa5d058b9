"""
Signals Module

Trade-level decisions built on scored smart money sentiment.
"""

from .traffic_light import (
    Alignment,
    DecisionEngine,
    DecisionThresholds,
    Recommendation,
    TrafficLightColor,
    TrafficLightDecision,
)

__all__ = [
    "Alignment",
    "DecisionEngine",
    "DecisionThresholds",
    "Recommendation",
    "TrafficLightColor",
    "TrafficLightDecision",
]
