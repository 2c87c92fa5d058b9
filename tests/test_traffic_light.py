"""
Tests for the trade traffic light.
"""

import pytest

from smartflow.signals.traffic_light import (
    Alignment,
    DecisionEngine,
    DecisionThresholds,
    Recommendation,
    TrafficLightColor,
)


@pytest.fixture
def engine():
    return DecisionEngine()


class TestDecide:
    """Tests for DecisionEngine.decide."""

    def test_buy_into_selling_is_red(self, engine):
        """Test buying while weighted sentiment is strongly negative."""
        decision = engine.decide(True, -0.6, -0.55)
        assert decision.color is TrafficLightColor.RED
        assert decision.label == "Counter"
        assert decision.recommendation is Recommendation.RECONSIDER
        assert decision.alignment is Alignment.OPPOSED

    def test_no_data_is_gray(self, engine):
        """Test the separate no-data color."""
        decision = engine.decide(True, None, None)
        assert decision.color is TrafficLightColor.GRAY
        assert decision.label == "No Data"
        assert decision.recommendation is Recommendation.NONE
        assert not decision.has_data
        assert decision.sentiment_used is None

    def test_buy_aligned(self, engine):
        decision = engine.decide(True, 0.5, None)
        assert decision.color is TrafficLightColor.GREEN
        assert decision.label == "Aligned"
        assert decision.recommendation is Recommendation.PROCEED

    def test_sell_aligned(self, engine):
        assert engine.decide(False, -0.4).color is TrafficLightColor.GREEN

    def test_sell_opposed(self, engine):
        assert engine.decide(False, 0.4).color is TrafficLightColor.RED

    @pytest.mark.parametrize("sentiment", [0.0, 0.29, -0.29])
    def test_mixed_band(self, engine, sentiment):
        """Test readings strictly inside the band."""
        for is_buy in (True, False):
            decision = engine.decide(is_buy, sentiment)
            assert decision.color is TrafficLightColor.YELLOW
            assert decision.label == "Mixed"
            assert decision.recommendation is Recommendation.ADJUST

    def test_weighted_preferred(self, engine):
        """Test that weighted sentiment overrides raw."""
        decision = engine.decide(True, 0.8, -0.5)
        assert decision.color is TrafficLightColor.RED
        assert decision.used_weighted
        assert decision.sentiment_used == -0.5

    def test_raw_fallback(self, engine):
        decision = engine.decide(True, 0.8, None)
        assert decision.color is TrafficLightColor.GREEN
        assert not decision.used_weighted

    def test_weighted_only(self, engine):
        assert engine.decide(False, None, -0.9).color is TrafficLightColor.GREEN

    def test_weighted_zero_is_data(self, engine):
        """Test that a neutral weighted reading is not treated as missing."""
        decision = engine.decide(True, 0.9, 0.0)
        assert decision.color is TrafficLightColor.YELLOW
        assert decision.used_weighted

    @pytest.mark.parametrize("is_buy,sentiment", [(True, -0.3), (False, 0.3)])
    def test_opposed_at_threshold(self, engine, is_buy, sentiment):
        """Test that a reading exactly at the opposing threshold is counter."""
        decision = engine.decide(is_buy, sentiment)
        assert decision.color is TrafficLightColor.RED
        assert decision.recommendation is Recommendation.RECONSIDER

    @pytest.mark.parametrize("is_buy,sentiment", [(True, 0.3), (False, -0.3)])
    def test_aligned_threshold_is_mixed(self, engine, is_buy, sentiment):
        """Test that reaching the aligned threshold is not enough to proceed."""
        assert engine.decide(is_buy, sentiment).color is TrafficLightColor.YELLOW

    def test_custom_thresholds(self):
        engine = DecisionEngine(DecisionThresholds(band=0.1))
        assert engine.decide(True, 0.2).color is TrafficLightColor.GREEN
        assert engine.decide(False, 0.1).color is TrafficLightColor.RED

    @pytest.mark.parametrize("band", [-0.1, float("nan")])
    def test_invalid_thresholds(self, band):
        with pytest.raises(ValueError):
            DecisionThresholds(band=band)

    def test_to_dict(self, engine):
        data = engine.decide(True, -0.6, -0.55).to_dict()
        assert data["color"] == "red"
        assert data["recommendation"] == "reconsider"
        assert data["sentiment_used"] == -0.55
