"""
Tests for the Daily Aggregator

Covers per-day summation, zero-row filtering, multi-symbol alignment and
cross-symbol totals.

Run Tests:
    pytest tests/test_daily.py -v
"""

import pytest
import numpy as np
import pandas as pd

from tradestats.analytics.daily import DailyAggregator, TOTAL_COLUMN
from tradestats.analytics.metrics import EmptySeriesError


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def intraday_pl():
    """Realized P&L events spread over three days, with zero rows."""
    index = pd.DatetimeIndex([
        "2024-01-02 09:30",
        "2024-01-02 10:15",
        "2024-01-02 15:59",
        "2024-01-03 11:00",
        "2024-01-04 09:45",
        "2024-01-04 14:00",
    ])
    return pd.Series([0.0, 50.0, -20.0, 0.0, 10.0, 5.0], index=index)


@pytest.fixture
def other_symbol_pl():
    index = pd.DatetimeIndex(["2024-01-03 10:00", "2024-01-05 10:00"])
    return pd.Series([-7.0, 12.0], index=index)


# =============================================================================
# aggregate_daily
# =============================================================================

class TestAggregateDaily:
    """Tests for DailyAggregator.aggregate_daily."""

    def test_sums_per_day(self, intraday_pl):
        daily = DailyAggregator.aggregate_daily(intraday_pl)

        assert list(daily.index) == [
            pd.Timestamp("2024-01-02"),
            pd.Timestamp("2024-01-04"),
        ]
        assert list(daily) == [30.0, 15.0]

    def test_zero_only_day_vanishes(self, intraday_pl):
        daily = DailyAggregator.aggregate_daily(intraday_pl)
        assert pd.Timestamp("2024-01-03") not in daily.index

    def test_include_zero_values_keeps_zero_day(self, intraday_pl):
        daily = DailyAggregator.aggregate_daily(intraday_pl, include_zero_values=True)
        assert daily.loc[pd.Timestamp("2024-01-03")] == 0.0
        assert len(daily) == 3

    def test_time_of_day_dropped(self, intraday_pl):
        daily = DailyAggregator.aggregate_daily(intraday_pl)
        assert all(ts == ts.normalize() for ts in daily.index)
        assert daily.index.name == "date"

    def test_round_trip_total(self, intraday_pl):
        for include_zero in (False, True):
            daily = DailyAggregator.aggregate_daily(
                intraday_pl, include_zero_values=include_zero
            )
            assert daily.sum() == pytest.approx(intraday_pl.sum())

    def test_all_zero_raises(self):
        series = pd.Series([0.0, 0.0], index=pd.date_range("2024-01-01", periods=2))
        with pytest.raises(EmptySeriesError):
            DailyAggregator.aggregate_daily(series)

    def test_all_zero_with_zeros_included(self):
        series = pd.Series([0.0, 0.0], index=pd.date_range("2024-01-01", periods=2))
        daily = DailyAggregator.aggregate_daily(series, include_zero_values=True)
        assert list(daily) == [0.0, 0.0]


# =============================================================================
# combine / total_by_day
# =============================================================================

class TestCombine:
    """Tests for multi-symbol alignment."""

    def test_union_of_dates(self, intraday_pl, other_symbol_pl):
        table = DailyAggregator.combine({
            "ES.DailyTxnPL": DailyAggregator.aggregate_daily(intraday_pl),
            "NQ.DailyTxnPL": DailyAggregator.aggregate_daily(other_symbol_pl),
        })

        assert list(table.columns) == ["ES.DailyTxnPL", "NQ.DailyTxnPL"]
        assert len(table) == 4
        assert table.index.is_monotonic_increasing

    def test_missing_cells_are_nan(self, intraday_pl, other_symbol_pl):
        table = DailyAggregator.combine({
            "ES": DailyAggregator.aggregate_daily(intraday_pl),
            "NQ": DailyAggregator.aggregate_daily(other_symbol_pl),
        })

        assert np.isnan(table.loc[pd.Timestamp("2024-01-02"), "NQ"])
        assert np.isnan(table.loc[pd.Timestamp("2024-01-05"), "ES"])

    def test_empty_mapping(self):
        table = DailyAggregator.combine({})
        assert table.empty

    def test_total_by_day_skips_missing(self, intraday_pl, other_symbol_pl):
        table = DailyAggregator.combine({
            "ES": DailyAggregator.aggregate_daily(intraday_pl),
            "NQ": DailyAggregator.aggregate_daily(other_symbol_pl),
        })
        total = DailyAggregator.total_by_day(table)

        assert total.name == TOTAL_COLUMN
        assert total.loc[pd.Timestamp("2024-01-02")] == 30.0
        assert total.loc[pd.Timestamp("2024-01-03")] == -7.0
        assert total.sum() == pytest.approx(intraday_pl.sum() + other_symbol_pl.sum())
