"""
Shared test fixtures for SmartFlow test suite.
"""

from datetime import date, timedelta
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
import pytest

from smartflow.analytics.sentiment import SentimentAggregator, SentimentRecord
from smartflow.config.settings import SmartFlowSettings


def volume_row(security_id, day, code, side, volume) -> Dict:
    """Build one raw volume row."""
    return {
        "security_id": security_id,
        "date": day,
        "investor_type": code,
        "side": side,
        "volume": volume,
    }


def day_rows(security_id, day, volumes: Dict[str, Tuple[float, float]]) -> List[Dict]:
    """Raw rows for one date from ``{code: (buy, sell)}``; zero volumes are omitted."""
    rows = []
    for code, (buy, sell) in volumes.items():
        if buy > 0:
            rows.append(volume_row(security_id, day, code, "buy", buy))
        if sell > 0:
            rows.append(volume_row(security_id, day, code, "sell", sell))
    return rows


@pytest.fixture
def rows_for():
    """Expose day_rows to tests."""
    return day_rows


@pytest.fixture
def base_date():
    """First trading date used by the fixtures."""
    return date(2024, 1, 1)


@pytest.fixture
def trading_days(base_date):
    """Twenty consecutive dates."""
    return [base_date + timedelta(days=i) for i in range(20)]


@pytest.fixture
def make_record():
    """Factory building an aggregated SentimentRecord from ``{code: (buy, sell)}``."""

    def _make(volumes, security_id="IL0001", day=date(2024, 1, 10)) -> SentimentRecord:
        records = SentimentAggregator().aggregate(day_rows(security_id, day, volumes))
        return records.get((security_id, day), SentimentRecord.empty(security_id, day))

    return _make


@pytest.fixture
def fm_rows():
    """F buys 100, M sells 50 on one date."""
    return day_rows("IL0001", date(2024, 1, 10), {"F": (100, 0), "M": (0, 50)})


@pytest.fixture
def streak_rows(base_date):
    """
    Three dates with composites -0.4, -0.35, -0.6.

    Total volume is 100, 100, then 300 (3x the prior average).
    """
    days = [base_date + timedelta(days=i) for i in range(3)]
    rows = []
    rows += day_rows("IL0001", days[0], {"F": (30, 70)})
    rows += day_rows("IL0001", days[1], {"F": (32.5, 67.5)})
    rows += day_rows("IL0001", days[2], {"F": (60, 240)})
    return rows


@pytest.fixture
def random_volume_rows(trading_days):
    """Random volume rows for three securities across seven investor types."""
    np.random.seed(42)
    rows = []
    for security_id in ("IL0001", "IL0002", "IL0003"):
        for day in trading_days:
            for code in ("F", "M", "N", "P", "O", "G", "Z"):
                for side in ("buy", "sell"):
                    volume = float(np.random.randint(1, 10_000))
                    rows.append(volume_row(security_id, day, code, side, volume))
    return rows


@pytest.fixture
def random_volume_frame(random_volume_rows):
    """random_volume_rows as a DataFrame."""
    return pd.DataFrame(random_volume_rows)


@pytest.fixture
def price_frame(trading_days):
    """Daily % changes for the random fixture securities."""
    np.random.seed(7)
    rows = []
    for security_id in ("IL0001", "IL0002", "IL0003"):
        changes = np.round(np.random.normal(0.0, 1.5, len(trading_days)), 3)
        for day, change in zip(trading_days, changes):
            rows.append({"security_id": security_id, "date": day, "change": float(change)})
    return pd.DataFrame(rows)


@pytest.fixture
def securities():
    """Security reference data."""
    return [
        {"security_id": "IL0001", "symbol": "ALPH", "company_name": "Alpha Ltd"},
        {"security_id": "IL0002", "symbol": "BETA", "company_name": "Beta Holdings"},
    ]


@pytest.fixture
def settings():
    """Default settings isolated from any local .env file."""
    return SmartFlowSettings(_env_file=None)
