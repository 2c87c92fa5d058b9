"""
Tests for the historical outcome index and price series.
"""

from datetime import date, timedelta

import pandas as pd
import pytest

from smartflow.analytics.outcomes import (
    ConfidenceLevel,
    HistoricalOutcomeIndex,
    OutcomeStatistics,
    PriceSeries,
    confidence_level,
)
from smartflow.analytics.sentiment import SentimentHistory, SentimentRecord
from smartflow.core.errors import InvalidParameterError

START = date(2024, 5, 1)


def day(i):
    return START + timedelta(days=i)


def history_from(composites, security_id="IL0001"):
    """History with one record per composite on consecutive days."""
    records = {}
    for i, composite in enumerate(composites):
        volume = 0.0 if composite is None else 100.0
        record = SentimentRecord(
            security_id=security_id,
            date=day(i),
            composite_sentiment=composite,
            total_buy_volume=volume / 2,
            total_sell_volume=volume / 2,
        )
        records[record.key] = record
    return SentimentHistory(records)


def prices_from(changes, security_id="IL0001"):
    return PriceSeries.from_records(
        {"security_id": security_id, "date": day(i), "change": c} for i, c in enumerate(changes)
    )


@pytest.fixture
def outcome_index():
    """
    Composites on days 0..5: -0.5, -0.45, 0.2, -0.55, 0.9, -0.5.
    Daily changes on days 0..7: 1, -2, 0.5, -1, 3, 2, -4, 2.
    """
    history = history_from([-0.5, -0.45, 0.2, -0.55, 0.9, -0.5])
    prices = prices_from([1, -2, 0.5, -1, 3, 2, -4, 2])
    return HistoricalOutcomeIndex(history, prices, tolerance=0.1)


# =============================================================================
# Outcome statistics
# =============================================================================


class TestHistoricalOutcomes:
    """Tests for HistoricalOutcomeIndex.outcomes."""

    def test_matches_and_forward_returns(self, outcome_index):
        """Test forward sums over the trading days after each match."""
        stats = outcome_index.outcomes("IL0001", -0.5, horizon_days=2)

        assert stats.total_patterns == 4
        returns = [o.forward_return for o in stats.recent_outcomes]
        assert returns == pytest.approx([-1.5, -0.5, 5.0, -2.0])
        assert [o.date for o in stats.recent_outcomes] == [day(0), day(1), day(3), day(5)]

    def test_decline_rate_and_average(self, outcome_index):
        stats = outcome_index.outcomes("IL0001", -0.5, horizon_days=2)
        assert stats.negative_outcomes == 3
        assert stats.positive_outcomes == 1
        assert stats.decline_rate == pytest.approx(75.0)
        assert stats.avg_change == pytest.approx(0.25)
        assert stats.has_data

    def test_incomplete_horizon_excluded(self, outcome_index):
        """Test that a match without a full horizon is left out, not zeroed."""
        stats = outcome_index.outcomes("IL0001", -0.5, horizon_days=3)
        assert stats.total_patterns == 3
        assert [o.date for o in stats.recent_outcomes] == [day(0), day(1), day(3)]
        assert [o.forward_return for o in stats.recent_outcomes] == pytest.approx([-2.5, 2.5, 1.0])

    def test_tolerance_band_inclusive(self):
        """Test that a distance equal to the tolerance matches."""
        index = HistoricalOutcomeIndex(history_from([0.75, 0.25]), prices_from([0, 1, 1]))
        stats = index.outcomes("IL0001", 0.5, horizon_days=1, tolerance=0.25)
        assert stats.total_patterns == 2
        assert stats.tolerance == 0.25

    def test_default_band_edge_with_decimals(self):
        """Test that readings one default band away match despite float error."""
        composite = (70.0 - 30.0) / (70.0 + 30.0)
        history = history_from([composite, 0.2, 0.41])
        index = HistoricalOutcomeIndex(history, prices_from([0, 1, -1, 2]))
        stats = index.outcomes("IL0001", 0.3, horizon_days=1)

        assert stats.tolerance == 0.1
        assert stats.total_patterns == 2
        assert [o.date for o in stats.recent_outcomes] == [day(0), day(1)]

    def test_narrow_tolerance(self, outcome_index):
        stats = outcome_index.outcomes("IL0001", -0.5, horizon_days=2, tolerance=0.0)
        assert stats.total_patterns == 2

    def test_no_matches(self, outcome_index):
        """Test the explicit no-data result."""
        stats = outcome_index.outcomes("IL0001", -0.95, horizon_days=2)
        assert stats.total_patterns == 0
        assert stats.decline_rate is None
        assert stats.avg_change is None
        assert not stats.has_data
        assert stats.confidence is ConfidenceLevel.INSUFFICIENT
        assert stats.recent_outcomes == ()

    def test_no_price_data(self):
        """Test that matches without any prices are not counted."""
        index = HistoricalOutcomeIndex(history_from([-0.5, -0.5]))
        stats = index.outcomes("IL0001", -0.5, horizon_days=1)
        assert not stats.has_data

    def test_unknown_security(self, outcome_index):
        stats = outcome_index.outcomes("UNKNOWN", -0.5, horizon_days=2)
        assert not stats.has_data
        assert stats.security_id == "UNKNOWN"

    def test_null_composite_never_matches(self):
        index = HistoricalOutcomeIndex(history_from([None, None]), prices_from([0, 1, 1]))
        stats = index.outcomes("IL0001", 0.0, horizon_days=1, tolerance=2.0)
        assert stats.total_patterns == 0

    def test_recent_outcomes_capped_at_five(self):
        history = history_from([-0.5] * 12)
        prices = prices_from([1.0] * 13)
        stats = HistoricalOutcomeIndex(history, prices).outcomes("IL0001", -0.5, horizon_days=1)
        assert stats.total_patterns == 12
        assert len(stats.recent_outcomes) == 5
        assert stats.recent_outcomes[-1].date == day(11)
        assert stats.confidence is ConfidenceLevel.LOW

    @pytest.mark.parametrize("horizon", [0, -3, 1.5])
    def test_invalid_horizon(self, outcome_index, horizon):
        with pytest.raises(InvalidParameterError):
            outcome_index.outcomes("IL0001", -0.5, horizon_days=horizon)

    def test_negative_tolerance(self, outcome_index):
        with pytest.raises(InvalidParameterError):
            outcome_index.outcomes("IL0001", -0.5, horizon_days=2, tolerance=-0.1)

    def test_negative_default_tolerance(self):
        with pytest.raises(InvalidParameterError):
            HistoricalOutcomeIndex(history_from([0.1]), tolerance=-1)

    def test_to_dict(self, outcome_index):
        data = outcome_index.outcomes("IL0001", -0.5, horizon_days=2).to_dict()
        assert data["has_data"] is True
        assert data["confidence"] == "insufficient"
        assert data["recent_outcomes"][0]["date"] == "2024-05-01"

    def test_empty_statistics_to_dict(self):
        data = OutcomeStatistics("IL0001", 0.1, 5, 0.1).to_dict()
        assert data["decline_rate"] is None
        assert data["has_data"] is False


class TestConfidenceLevel:
    """Tests for sample-size confidence."""

    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, ConfidenceLevel.INSUFFICIENT),
            (4, ConfidenceLevel.INSUFFICIENT),
            (5, ConfidenceLevel.LOW),
            (19, ConfidenceLevel.LOW),
            (20, ConfidenceLevel.MEDIUM),
            (49, ConfidenceLevel.MEDIUM),
            (50, ConfidenceLevel.HIGH),
        ],
    )
    def test_thresholds(self, size, expected):
        assert confidence_level(size) is expected


# =============================================================================
# Price series
# =============================================================================


class TestPriceSeries:
    """Tests for PriceSeries loading and forward returns."""

    def test_forward_return_strictly_after(self):
        prices = prices_from([10, 1, 2, 3])
        assert prices.forward_return("IL0001", day(0), 2) == pytest.approx(3.0)

    def test_forward_return_between_trading_days(self):
        """Test a match date with no price row of its own."""
        prices = PriceSeries.from_records(
            [
                {"security_id": "IL0001", "date": day(0), "change": 1.0},
                {"security_id": "IL0001", "date": day(3), "change": 2.0},
            ]
        )
        assert prices.forward_return("IL0001", day(1), 1) == pytest.approx(2.0)

    def test_forward_return_incomplete(self):
        prices = prices_from([1, 1])
        assert prices.forward_return("IL0001", day(0), 2) is None

    def test_from_frame_skips_malformed(self):
        frame = pd.DataFrame(
            [
                {"security_id": "il0001", "date": "2024-05-01", "change": 1.0},
                {"security_id": "IL0001", "date": "2024-05-02", "change": float("nan")},
                {"security_id": None, "date": "2024-05-02", "change": 1.0},
                {"security_id": "IL0001", "date": None, "change": 1.0},
                {"security_id": "IL0001", "date": "2024-05-03", "change": 2.5},
            ]
        )
        prices = PriceSeries.from_frame(frame)
        assert "IL0001" in prices
        assert len(prices) == 1
        assert prices.forward_return("IL0001", day(0), 1) == pytest.approx(2.5)

    def test_unsorted_input(self):
        prices = PriceSeries.from_records(
            [
                {"security_id": "IL0001", "date": day(2), "change": 3.0},
                {"security_id": "IL0001", "date": day(1), "change": 2.0},
                {"security_id": "IL0001", "date": day(0), "change": 1.0},
            ]
        )
        assert prices.forward_return("IL0001", day(0), 1) == pytest.approx(2.0)

    def test_empty_frame(self):
        assert len(PriceSeries.from_frame(pd.DataFrame())) == 0
        assert len(PriceSeries.from_frame(None)) == 0
