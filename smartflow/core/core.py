"""
SmartFlow Core Module

Main engine class that coordinates aggregation, pattern detection,
historical outcomes, scoring and trade decisions over one data snapshot.
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import pandas as pd
from pydantic import ValidationError

from ..analytics.alerts import AlertThresholds
from ..analytics.calendar import day_of_week_context, month_end_context
from ..analytics.investor_types import (
    DEFAULT_CATALOG,
    InvestorType,
    InvestorTypeCatalog,
    QuintileTable,
    WeightTable,
)
from ..analytics.outcomes import HistoricalOutcomeIndex, OutcomeStatistics, PriceSeries
from ..analytics.patterns import PatternDetector, PatternResult, PatternThresholds
from ..analytics.scoring import ScoringThresholds, SignalScore, SignalScorer
from ..analytics.sentiment import SentimentAggregator, SentimentHistory, SentimentRecord
from ..config.logging import LogContext, log_with_context
from ..config.settings import SmartFlowSettings, get_settings
from ..signals.traffic_light import DecisionEngine, DecisionThresholds, TrafficLightDecision
from ..validation.models import SecurityInfo, coerce_date, normalize_security_id
from .errors import DataError, ErrorCodes, validate_lookback

logger = logging.getLogger(__name__)

VolumeInput = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]
PriceInput = Union[PriceSeries, pd.DataFrame, Iterable[Mapping[str, Any]]]


class SmartFlowEngine:
    """
    Smart money sentiment engine over an immutable snapshot of volume data.

    Raw rows are aggregated and indexed by security once, at construction.
    Every query afterwards is a deterministic read of that snapshot.
    """

    def __init__(
        self,
        volume_records: VolumeInput,
        price_series: Optional[PriceInput] = None,
        securities: Optional[Union[pd.DataFrame, Iterable[Any]]] = None,
        settings: Optional[SmartFlowSettings] = None,
        catalog: Optional[InvestorTypeCatalog] = None,
        included_types: Optional[Iterable[InvestorType]] = None,
        weights: Optional[WeightTable] = None,
        quintiles: Optional[QuintileTable] = None,
        pattern_thresholds: Optional[PatternThresholds] = None,
        scoring_thresholds: Optional[ScoringThresholds] = None,
        alert_thresholds: Optional[AlertThresholds] = None,
        decision_thresholds: Optional[DecisionThresholds] = None,
    ):
        """
        Initialize the engine.

        Args:
            volume_records: Raw volume rows (DataFrame or mappings)
            price_series: Daily % price changes per security
            securities: Reference data (SecurityInfo, mappings or DataFrame)
            settings: Default query parameters
            catalog: Investor type catalog
            included_types: Restrict aggregation to these investor types
            weights: Weight table for weighted sentiment
            quintiles: Quintile table
            pattern_thresholds: Pattern detection thresholds
            scoring_thresholds: Scoring thresholds
            alert_thresholds: Alert classification thresholds
            decision_thresholds: Traffic light thresholds
        """
        self.settings = settings or get_settings()
        self.catalog = catalog or DEFAULT_CATALOG

        aggregator = SentimentAggregator(catalog=self.catalog, included_types=included_types)
        if isinstance(volume_records, pd.DataFrame):
            records = aggregator.aggregate_frame(volume_records)
        else:
            records = aggregator.aggregate(volume_records)
        self.skipped_rows = aggregator.last_skipped

        self.history = SentimentHistory(records)
        self.prices = self._load_prices(price_series)
        self.securities = self._load_securities(securities)

        self.patterns = PatternDetector(self.history, pattern_thresholds)
        self.outcome_index = HistoricalOutcomeIndex(
            self.history, self.prices, tolerance=self.settings.outcome_tolerance
        )
        self.scorer = SignalScorer(
            catalog=self.catalog,
            weights=weights,
            quintiles=quintiles,
            thresholds=scoring_thresholds,
            alert_thresholds=alert_thresholds,
            trend_lookback_days=self.settings.trend_lookback_days,
        )
        self.decisions = DecisionEngine(decision_thresholds)

        logger.info(
            f"SmartFlowEngine initialized with {len(self.history)} sentiment records "
            f"for {len(self.history.securities)} securities"
        )

    @staticmethod
    def _load_prices(price_series: Optional[PriceInput]) -> PriceSeries:
        if price_series is None:
            return PriceSeries()
        if isinstance(price_series, PriceSeries):
            return price_series
        if isinstance(price_series, pd.DataFrame):
            return PriceSeries.from_frame(price_series)
        return PriceSeries.from_records(price_series)

    @staticmethod
    def _load_securities(
        securities: Optional[Union[pd.DataFrame, Iterable[Any]]]
    ) -> Dict[str, SecurityInfo]:
        if securities is None:
            return {}
        if isinstance(securities, pd.DataFrame):
            securities = securities.to_dict(orient="records")

        result: Dict[str, SecurityInfo] = {}
        for row in securities:
            try:
                info = row if isinstance(row, SecurityInfo) else SecurityInfo.model_validate(row)
            except ValidationError:
                logger.debug("Skipping malformed security reference row")
                continue
            result[info.security_id] = info
        return result

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_sentiment(self, security_id: Any, on_date: Any) -> SentimentRecord:
        """
        Sentiment record for a security and date.

        Returns the empty no-data record when nothing was traded.
        """
        record = self.history.get(security_id, on_date)
        if record is None:
            return SentimentRecord.empty(normalize_security_id(security_id), coerce_date(on_date))
        return record

    def get_history(
        self,
        security_id: Any,
        end_date: Any,
        lookback_days: Optional[int] = None,
    ) -> Tuple[SentimentRecord, ...]:
        """Records within ``lookback_days`` calendar days ending at ``end_date``."""
        lookback = validate_lookback(
            self.settings.history_lookback_days if lookback_days is None else lookback_days
        )
        return self.history.between(security_id, end_date, lookback)

    def get_history_frame(
        self, security_id: Any, end_date: Any, lookback_days: Optional[int] = None
    ) -> pd.DataFrame:
        """get_history as a date-indexed DataFrame."""
        frame = self.history.to_frame(security_id)
        if frame.empty:
            return frame
        records = self.get_history(security_id, end_date, lookback_days)
        dates = [pd.Timestamp(r.date) for r in records]
        return frame.loc[frame.index.isin(dates)]

    def detect_pattern(
        self, security_id: Any, on_date: Any, window_size: Optional[int] = None
    ) -> PatternResult:
        """Selling streaks and volume spike in the window ending at ``on_date``."""
        size = self.settings.pattern_window if window_size is None else window_size
        return self.patterns.detect(security_id, on_date, size)

    def get_outcomes(
        self,
        security_id: Any,
        sentiment_value: float,
        horizon_days: Optional[int] = None,
        tolerance: Optional[float] = None,
    ) -> OutcomeStatistics:
        """Forward price outcomes after historically similar sentiment."""
        horizon = self.settings.outcome_horizon_days if horizon_days is None else horizon_days
        return self.outcome_index.outcomes(security_id, sentiment_value, horizon, tolerance)

    def score_signal(
        self, record: SentimentRecord, pattern: Optional[PatternResult] = None
    ) -> SignalScore:
        """
        Score a sentiment record.

        The trend baseline is taken from the records preceding ``record``
        in this engine's history.
        """
        history = self.history.before(
            record.security_id, record.date, self.scorer.trend_lookback_days
        )
        return self.scorer.score(record, pattern, history)

    def decide(
        self,
        is_buy_action: bool,
        raw_sentiment: Optional[float],
        weighted_sentiment: Optional[float] = None,
    ) -> TrafficLightDecision:
        """Traffic light for an intended trade."""
        return self.decisions.decide(is_buy_action, raw_sentiment, weighted_sentiment)

    def check_trade(self, security_id: Any, on_date: Any, is_buy_action: bool) -> Dict[str, Any]:
        """
        Full check of an intended trade on a date.

        Aggregates the sentiment lookup, pattern detection, scoring, the
        traffic light and the calendar context of the date into one result.
        Records logged while checking carry the security id and date.
        """
        sid = normalize_security_id(security_id)
        day = coerce_date(on_date)
        with LogContext(security_id=sid, date=day):
            record = self.get_sentiment(sid, day)
            pattern = self.detect_pattern(sid, day)
            score = self.score_signal(record, pattern)
            decision = self.decide(
                is_buy_action, record.composite_sentiment, score.weighted.weighted_sentiment
            )
            log_with_context(
                logger,
                logging.DEBUG,
                f"Trade check {sid} {day}: {decision.color.value}",
                alert_level=score.alert_level.level.value,
                flagged=pattern.flagged,
            )

        security = self.securities.get(sid)
        return {
            "security": security.model_dump() if security else None,
            "sentiment": record,
            "pattern": pattern,
            "score": score,
            "decision": decision,
            "day_of_week": day_of_week_context(day),
            "month_end": month_end_context(day),
        }

    def get_security(self, security_id: Any) -> SecurityInfo:
        """
        Reference data for a security.

        Raises:
            DataError: If the security is not in the reference data
        """
        sid = normalize_security_id(security_id)
        info = self.securities.get(sid)
        if info is None:
            raise DataError(
                ErrorCodes.DATA_NOT_FOUND,
                detail=f"No reference data for security {sid!r}",
                context={"security_id": sid},
            )
        return info

    def available_dates(self, security_id: Any) -> Tuple[date, ...]:
        return tuple(r.date for r in self.history.series(security_id))

    def health_check(self) -> Dict[str, Union[bool, str, int]]:
        """
        Check health of engine components.

        Returns:
            Dictionary with health status of each component
        """
        return {
            "core": True,
            "sentiment_records": len(self.history),
            "securities": len(self.history.securities),
            "price_series": len(self.prices),
            "reference_securities": len(self.securities),
            "skipped_rows": self.skipped_rows,
            "status": "operational" if len(self.history) > 0 else "no_data",
        }
