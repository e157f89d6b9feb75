"""
StatsReducer Class for Trade and Daily P&L Statistics

This module reduces a list of signed P&L values (per-trade net P&L,
per-transaction realized P&L, or per-day aggregated P&L) into a fixed set of
summary statistics.

Key Features:
    - Win/loss partition statistics (gross profits/losses, profit factor)
    - Central tendency and dispersion (mean, median, sample std)
    - Annualized Sharpe-like ratio from daily P&L
    - Equity curve statistics (max drawdown, max/min/end equity)

Degenerate Cases:
    Exactly-zero values are excluded from the positive/negative partitions
    but count toward totals. A series with no non-zero value cannot be
    summarized and raises EmptySeriesError. Every ratio whose denominator can
    be zero or empty is computed with numpy float division and yields inf or
    NaN instead of raising.

Mathematical Definitions:
    - Profit Factor: |sum(gt0) / sum(lt0)|
    - Ann. Sharpe: mean(daily) / std(daily) * sqrt(252)
    - Max Drawdown: -max(cummax(Equity) - Equity)
    - Profit to Max Draw: TotalNetProfit / |MaxDrawdown| (inf without a drawdown)
    - Win/Loss Ratio: mean(gt0) / -mean(lt0)

Usage:
    from tradestats.analytics.metrics import StatsReducer

    summary = StatsReducer.summarize(trades['net_pl'])
    print(summary['profit_factor'], summary['max_drawdown'])
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Trading days per year (industry standard)
TRADING_DAYS_PER_YEAR = 252

# Relative tolerance below which a standard deviation counts as zero
EPSILON = 1e-10

# Minimum data points for a sample standard deviation
MIN_OBSERVATIONS_FOR_STATS = 2

# Keys returned by StatsReducer.summarize, in output order
SUMMARY_FIELDS = [
    "total_net_profit",
    "num_values",
    "num_positive",
    "num_negative",
    "avg_pl",
    "med_pl",
    "std_dev_pl",
    "largest_winner",
    "largest_loser",
    "gross_profits",
    "gross_losses",
    "percent_positive",
    "percent_negative",
    "profit_factor",
    "avg_win",
    "med_win",
    "avg_loss",
    "med_loss",
    "avg_daily_pl",
    "med_daily_pl",
    "std_dev_daily_pl",
    "ann_sharpe",
    "max_drawdown",
    "profit_to_max_draw",
    "avg_win_loss_ratio",
    "med_win_loss_ratio",
    "max_equity",
    "min_equity",
    "end_equity",
]

ArrayLike = Union[pd.Series, np.ndarray, Sequence[float]]


# =============================================================================
# Exceptions
# =============================================================================

class StatsError(Exception):
    """Base exception for statistics calculation errors."""
    pass


class EmptySeriesError(StatsError):
    """Exception raised when a series has no non-zero P&L to summarize."""
    pass


class MissingEquityRowsError(StatsError):
    """Exception raised when the position P&L series has no rows."""
    pass


# =============================================================================
# Helpers
# =============================================================================

def _to_array(values: ArrayLike) -> np.ndarray:
    if isinstance(values, (pd.Series, pd.DataFrame)):
        values = values.to_numpy()
    arr = np.asarray(values, dtype=float).ravel()
    return arr[~np.isnan(arr)]


def _mean(arr: np.ndarray) -> float:
    return float(np.mean(arr)) if arr.size else np.nan


def _median(arr: np.ndarray) -> float:
    return float(np.median(arr)) if arr.size else np.nan


def _std(arr: np.ndarray) -> float:
    # Sample standard deviation (N-1 denominator)
    if arr.size < MIN_OBSERVATIONS_FOR_STATS:
        return np.nan
    return float(np.std(arr, ddof=1))


def _divide(numerator: float, denominator: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


# =============================================================================
# StatsReducer Class
# =============================================================================

class StatsReducer:
    """
    Reduce a P&L series into summary statistics.

    All methods are static. They accept pandas Series, numpy arrays or plain
    sequences; NaN entries are treated as absent and dropped.

    Example:
        >>> summary = StatsReducer.summarize([100.0, -50.0, 25.0])
        >>> summary['profit_factor']
        2.5
    """

    # =========================================================================
    # Partition and Ratios
    # =========================================================================

    @staticmethod
    def partition(values: ArrayLike) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Split values into strictly positive, strictly negative and non-zero.

        Returns:
            Tuple of (gt0, lt0, ne0) arrays, each in input order
        """
        arr = _to_array(values)
        return arr[arr > 0], arr[arr < 0], arr[arr != 0]

    @staticmethod
    def calculate_profit_factor(gross_profits: float, gross_losses: float) -> float:
        """
        Calculate profit factor as |gross profits / gross losses|.

        No special case for zero gross losses: the result is inf when there
        are profits and NaN when both sides are zero.
        """
        return abs(_divide(gross_profits, gross_losses))

    @staticmethod
    def calculate_ann_sharpe(
        daily_pl: ArrayLike,
        periods_per_year: int = TRADING_DAYS_PER_YEAR
    ) -> float:
        """
        Calculate an annualized Sharpe-like ratio from daily P&L.

        Formula:
            Ann. Sharpe = mean(daily) / std(daily) * sqrt(periods_per_year)

        Assumes no outside capital additions. Returns NaN when the standard
        deviation is undefined (fewer than two days) or zero relative to the
        size of the values, so a constant series gives NaN at any scale.
        """
        arr = _to_array(daily_pl)
        std = _std(arr)

        if not np.isfinite(std) or std <= EPSILON * np.max(np.abs(arr)):
            return np.nan

        return float(_mean(arr) / std * np.sqrt(periods_per_year))

    # =========================================================================
    # Equity Curve
    # =========================================================================

    @staticmethod
    def calculate_equity_curve(values: ArrayLike) -> np.ndarray:
        """Running cumulative sum of values in their given order."""
        return np.cumsum(_to_array(values))

    @staticmethod
    def calculate_max_drawdown(equity: ArrayLike) -> float:
        """
        Calculate maximum drawdown in currency units.

        Formula:
            Max Drawdown = -max(cummax(Equity) - Equity)

        Returns:
            Non-positive drawdown; 0.0 when the curve never declines

        Raises:
            EmptySeriesError: If the equity curve is empty
        """
        arr = _to_array(equity)
        if arr.size == 0:
            raise EmptySeriesError("Equity curve is empty")

        running_max = np.maximum.accumulate(arr)
        # + 0.0 normalizes -0.0 for curves that never decline
        return float(-np.max(running_max - arr)) + 0.0

    @staticmethod
    def totals_reconcile(total_net_profit: float, end_equity: float) -> bool:
        """Check transaction-derived and equity-derived totals agree."""
        return bool(np.isclose(total_net_profit, end_equity, rtol=1e-9, atol=1e-8))

    # =========================================================================
    # Summary
    # =========================================================================

    @staticmethod
    def summarize(
        values: ArrayLike,
        daily_values: Optional[ArrayLike] = None,
        equity_pl: Optional[ArrayLike] = None,
        total_net_profit: Optional[float] = None,
        periods_per_year: int = TRADING_DAYS_PER_YEAR,
    ) -> Dict[str, Any]:
        """
        Compute the full set of summary statistics for a P&L series.

        Args:
            values: Signed P&L values (per trade, per transaction or per day)
            daily_values: Daily P&L used for the daily block and Sharpe.
                          Defaults to the non-zero values themselves.
            equity_pl: Period P&L whose cumulative sum is the equity curve.
                       Defaults to values.
            total_net_profit: Authoritative total net profit.
                              Defaults to sum(values).
            periods_per_year: Annualization factor for the Sharpe ratio

        Returns:
            Dictionary keyed by SUMMARY_FIELDS

        Raises:
            EmptySeriesError: If values contains no non-zero entry
            MissingEquityRowsError: If equity_pl is given but empty

        Example:
            >>> s = StatsReducer.summarize(trades['net_pl'])
            >>> print(f"Profit Factor: {s['profit_factor']:.2f}")
        """
        arr = _to_array(values)
        gt0, lt0, ne0 = StatsReducer.partition(arr)

        if ne0.size == 0:
            raise EmptySeriesError("No non-zero P&L values to summarize")

        if equity_pl is None:
            equity = StatsReducer.calculate_equity_curve(arr)
        else:
            equity = StatsReducer.calculate_equity_curve(equity_pl)
            if equity.size == 0:
                raise MissingEquityRowsError("Position P&L series has no rows")

        daily = ne0 if daily_values is None else _to_array(daily_values)

        if total_net_profit is None:
            total_net_profit = float(np.sum(arr))

        gross_profits = float(np.sum(gt0)) if gt0.size else 0.0
        gross_losses = float(np.sum(lt0)) if lt0.size else 0.0

        avg_win = _mean(gt0)
        med_win = _median(gt0)
        avg_loss = _mean(lt0)
        med_loss = _median(lt0)

        max_drawdown = StatsReducer.calculate_max_drawdown(equity)

        summary = {
            "total_net_profit": float(total_net_profit),
            "num_values": int(ne0.size),
            "num_positive": int(gt0.size),
            "num_negative": int(lt0.size),
            "avg_pl": _mean(ne0),
            "med_pl": _median(ne0),
            "std_dev_pl": _std(ne0),
            "largest_winner": float(np.max(arr)),
            "largest_loser": float(np.min(arr)),
            "gross_profits": gross_profits,
            "gross_losses": gross_losses,
            "percent_positive": gt0.size / ne0.size * 100.0,
            "percent_negative": lt0.size / ne0.size * 100.0,
            "profit_factor": StatsReducer.calculate_profit_factor(
                gross_profits, gross_losses
            ),
            "avg_win": avg_win,
            "med_win": med_win,
            "avg_loss": avg_loss,
            "med_loss": med_loss,
            "avg_daily_pl": _mean(daily),
            "med_daily_pl": _median(daily),
            "std_dev_daily_pl": _std(daily),
            "ann_sharpe": StatsReducer.calculate_ann_sharpe(daily, periods_per_year),
            "max_drawdown": max_drawdown,
            "profit_to_max_draw": _divide(total_net_profit, abs(max_drawdown)),
            "avg_win_loss_ratio": _divide(avg_win, -avg_loss),
            "med_win_loss_ratio": _divide(med_win, -med_loss),
            "max_equity": float(np.max(equity)),
            "min_equity": float(np.min(equity)),
            "end_equity": float(equity[-1]),
        }

        return summary
