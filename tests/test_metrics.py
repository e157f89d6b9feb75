"""
Tests for the Statistics Reducer

This module tests StatsReducer:
    - Win/loss partition, gross profits/losses, profit factor
    - Mean/median/sample std and Sharpe-like ratio
    - Equity curve, drawdown and profit-to-drawdown
    - Degenerate cases (empty sides, zero volatility, no non-zero values)

Run Tests:
    pytest tests/test_metrics.py -v --tb=short
"""

import pytest
import numpy as np
import pandas as pd

from tradestats.analytics.metrics import (
    StatsReducer,
    StatsError,
    EmptySeriesError,
    MissingEquityRowsError,
    SUMMARY_FIELDS,
    TRADING_DAYS_PER_YEAR,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def mixed_pl():
    """Trade P&L with wins, losses and a scratch trade."""
    return pd.Series([100.0, -50.0, 200.0, 0.0, -30.0, 150.0])


@pytest.fixture
def drawdown_pl():
    """P&L whose equity curve peaks at 300 and falls to 100."""
    # Equity: 100, 300, 200, 100, 250
    return pd.Series([100.0, 200.0, -100.0, -100.0, 150.0])


# =============================================================================
# Partition and Ratios
# =============================================================================

class TestPartition:
    """Tests for the positive/negative/non-zero partition."""

    def test_partition_excludes_zero(self, mixed_pl):
        gt0, lt0, ne0 = StatsReducer.partition(mixed_pl)
        assert list(gt0) == [100.0, 200.0, 150.0]
        assert list(lt0) == [-50.0, -30.0]
        assert len(ne0) == 5

    def test_partition_drops_nan(self):
        gt0, lt0, ne0 = StatsReducer.partition([1.0, np.nan, -2.0])
        assert len(ne0) == 2


class TestProfitFactor:
    """Tests for calculate_profit_factor."""

    def test_profit_factor_known_values(self):
        assert StatsReducer.calculate_profit_factor(450.0, -80.0) == pytest.approx(5.625)

    def test_profit_factor_no_losses_is_infinite(self):
        assert np.isinf(StatsReducer.calculate_profit_factor(100.0, 0.0))

    def test_profit_factor_both_zero_is_nan(self):
        assert np.isnan(StatsReducer.calculate_profit_factor(0.0, 0.0))

    def test_profit_factor_scale_invariant(self, mixed_pl):
        base = StatsReducer.summarize(mixed_pl)["profit_factor"]
        for scale in (0.01, 3.0, 1000.0):
            scaled = StatsReducer.summarize(mixed_pl * scale)["profit_factor"]
            assert scaled == pytest.approx(base)


class TestAnnSharpe:
    """Tests for calculate_ann_sharpe."""

    def test_sharpe_known_values(self):
        daily = pd.Series([10.0, -5.0, 20.0, 5.0])
        expected = daily.mean() / daily.std() * np.sqrt(TRADING_DAYS_PER_YEAR)
        assert StatsReducer.calculate_ann_sharpe(daily) == pytest.approx(expected)

    def test_sharpe_zero_volatility_is_nan(self):
        assert np.isnan(StatsReducer.calculate_ann_sharpe([5.0, 5.0, 5.0]))

    def test_sharpe_single_day_is_nan(self):
        assert np.isnan(StatsReducer.calculate_ann_sharpe([5.0]))

    def test_sharpe_small_scale_is_finite(self):
        daily = [1e-11, 3e-11, 2e-11]
        expected = np.mean(daily) / np.std(daily, ddof=1) * np.sqrt(TRADING_DAYS_PER_YEAR)

        sharpe = StatsReducer.calculate_ann_sharpe(daily)

        assert np.isfinite(sharpe)
        assert sharpe == pytest.approx(expected)

    def test_sharpe_constant_fraction_is_nan(self):
        # Rounding residue in the std still counts as zero volatility
        assert np.isnan(StatsReducer.calculate_ann_sharpe([0.1, 0.1, 0.1]))

    def test_sharpe_custom_periods(self):
        daily = [1.0, 2.0, 3.0]
        sharpe_252 = StatsReducer.calculate_ann_sharpe(daily)
        sharpe_52 = StatsReducer.calculate_ann_sharpe(daily, periods_per_year=52)
        assert sharpe_252 / sharpe_52 == pytest.approx(np.sqrt(252 / 52))


# =============================================================================
# Equity Curve
# =============================================================================

class TestMaxDrawdown:
    """Tests for calculate_max_drawdown."""

    def test_max_drawdown_known_values(self, drawdown_pl):
        equity = StatsReducer.calculate_equity_curve(drawdown_pl)
        assert list(equity) == [100.0, 300.0, 200.0, 100.0, 250.0]
        assert StatsReducer.calculate_max_drawdown(equity) == -200.0

    def test_max_drawdown_monotonic_is_zero(self):
        equity = StatsReducer.calculate_equity_curve([10.0, 0.0, 5.0, 20.0])
        assert StatsReducer.calculate_max_drawdown(equity) == 0.0

    def test_max_drawdown_without_decline_is_positive_zero(self):
        equity = StatsReducer.calculate_equity_curve([10.0, 20.0])
        drawdown = StatsReducer.calculate_max_drawdown(equity)

        assert drawdown == 0.0
        assert not np.signbit(drawdown)

    def test_max_drawdown_never_positive(self):
        rng = np.random.default_rng(7)
        for _ in range(20):
            equity = StatsReducer.calculate_equity_curve(rng.normal(0, 10, 50))
            assert StatsReducer.calculate_max_drawdown(equity) <= 0.0

    def test_max_drawdown_empty_raises(self):
        with pytest.raises(EmptySeriesError):
            StatsReducer.calculate_max_drawdown([])

    def test_totals_reconcile_tolerates_rounding(self):
        assert StatsReducer.totals_reconcile(0.1 + 0.2, 0.3)
        assert not StatsReducer.totals_reconcile(100.0, 90.0)


# =============================================================================
# Summary
# =============================================================================

class TestSummarize:
    """Tests for StatsReducer.summarize."""

    def test_summary_has_all_fields(self, mixed_pl):
        summary = StatsReducer.summarize(mixed_pl)
        assert list(summary.keys()) == SUMMARY_FIELDS

    def test_summary_known_values(self, mixed_pl):
        s = StatsReducer.summarize(mixed_pl)

        assert s["total_net_profit"] == pytest.approx(370.0)
        assert s["num_values"] == 5
        assert s["gross_profits"] == pytest.approx(450.0)
        assert s["gross_losses"] == pytest.approx(-80.0)
        assert s["profit_factor"] == pytest.approx(450.0 / 80.0)
        assert s["avg_pl"] == pytest.approx(74.0)
        assert s["med_pl"] == pytest.approx(100.0)
        assert s["percent_positive"] == pytest.approx(60.0)
        assert s["percent_negative"] == pytest.approx(40.0)
        assert s["avg_win"] == pytest.approx(150.0)
        assert s["avg_loss"] == pytest.approx(-40.0)
        assert s["avg_win_loss_ratio"] == pytest.approx(150.0 / 40.0)
        assert s["med_win_loss_ratio"] == pytest.approx(150.0 / 40.0)
        assert s["largest_winner"] == 200.0
        assert s["largest_loser"] == -50.0

    def test_summary_std_is_sample_std(self, mixed_pl):
        s = StatsReducer.summarize(mixed_pl)
        ne0 = mixed_pl[mixed_pl != 0]
        assert s["std_dev_pl"] == pytest.approx(ne0.std(ddof=1))

    def test_summary_equity_from_values(self, drawdown_pl):
        s = StatsReducer.summarize(drawdown_pl)
        assert s["max_equity"] == 300.0
        assert s["min_equity"] == 100.0
        assert s["end_equity"] == 250.0
        assert s["max_drawdown"] == -200.0
        assert s["profit_to_max_draw"] == pytest.approx(250.0 / 200.0)

    def test_summary_equity_from_separate_series(self):
        s = StatsReducer.summarize(
            [100.0, -40.0],
            equity_pl=[0.0, 80.0, -20.0, 0.0],
            total_net_profit=60.0,
        )
        assert s["total_net_profit"] == 60.0
        assert s["max_equity"] == 80.0
        assert s["end_equity"] == 60.0
        assert s["max_drawdown"] == -20.0

    def test_summary_daily_values_drive_sharpe(self):
        daily = pd.Series([50.0, -10.0, 30.0])
        s = StatsReducer.summarize([100.0, -40.0], daily_values=daily)
        assert s["avg_daily_pl"] == pytest.approx(daily.mean())
        assert s["std_dev_daily_pl"] == pytest.approx(daily.std())
        assert s["ann_sharpe"] == pytest.approx(
            daily.mean() / daily.std() * np.sqrt(252)
        )

    def test_summary_single_losing_value(self):
        s = StatsReducer.summarize([-75.0])

        assert np.isnan(s["avg_win"])
        assert np.isnan(s["med_win"])
        assert np.isnan(s["avg_win_loss_ratio"])
        assert s["percent_positive"] == 0.0
        assert s["percent_negative"] == 100.0
        assert s["gross_profits"] == 0.0
        # |0 / -75| as computed
        assert s["profit_factor"] == 0.0
        assert np.isnan(s["std_dev_pl"])

    def test_summary_single_winning_value(self):
        s = StatsReducer.summarize([75.0])

        assert np.isinf(s["profit_factor"])
        assert np.isnan(s["avg_loss"])
        assert np.isnan(s["avg_win_loss_ratio"])
        assert s["percent_positive"] == 100.0
        assert s["max_drawdown"] == 0.0
        assert s["profit_to_max_draw"] == np.inf

    def test_summary_all_zero_raises(self):
        with pytest.raises(EmptySeriesError):
            StatsReducer.summarize([0.0, 0.0, 0.0])

    def test_summary_empty_raises(self):
        with pytest.raises(StatsError):
            StatsReducer.summarize(pd.Series([], dtype=float))

    def test_summary_empty_equity_raises(self):
        with pytest.raises(MissingEquityRowsError):
            StatsReducer.summarize([10.0], equity_pl=[])

    def test_zero_values_count_in_totals(self):
        s = StatsReducer.summarize([10.0, 0.0, -5.0])
        assert s["total_net_profit"] == 5.0
        assert s["num_values"] == 2
