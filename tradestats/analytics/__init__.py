"""
Analytics Module for Trade Statistics

This module turns a symbol's transaction ledger and position P&L series into
trade records, daily P&L tables and summary statistics.

Components:
    - DailyAggregator: Per-day P&L sums and multi-symbol daily tables
    - TradeSegmenter: Flat-to-flat (or flat-to-reduced) trade boundaries
    - TradeMetrics: Net P&L, MAE/MFE in currency, percent and ticks
    - StatsReducer: Profit factor, Sharpe-like ratio, drawdown, win/loss
    - TradeStatsEngine: Portfolio x symbol orchestration

Usage:
    from tradestats.analytics import TradeStatsEngine

    engine = TradeStatsEngine(store)
    stats = engine.trade_stats(['demo'], use='trades')
    daily = engine.daily_stats(['demo'], use='equity')

Metric Reference:

    Profit Factor:
        |Gross Profits / Gross Losses|; inf when there are no losses

    Ann. Sharpe:
        mean(daily P&L) / std(daily P&L) * sqrt(252), in P&L units,
        assuming no outside capital additions

    Max Drawdown:
        Largest decline of the cumulative P&L curve from its running peak,
        reported as a non-positive currency amount

    MAE / MFE:
        Worst / best cumulative mark-to-market P&L while a trade was open
"""

from tradestats.analytics.metrics import (
    # Main class
    StatsReducer,
    # Exceptions
    StatsError,
    EmptySeriesError,
    MissingEquityRowsError,
    # Constants
    TRADING_DAYS_PER_YEAR,
    SUMMARY_FIELDS,
    EPSILON,
)

from tradestats.analytics.daily import DailyAggregator

from tradestats.analytics.trades import (
    Trade,
    TradeSegmenter,
    TradeMetrics,
    per_trade_stats,
    TRADE_COLUMNS,
)

from tradestats.analytics.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    DiagnosticSink,
    LoggingDiagnosticSink,
)

from tradestats.analytics.stats import (
    TradeStatsEngine,
    TRADE_STATS_OUTPUT,
    DAILY_STATS_OUTPUT,
)


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "StatsReducer",
    "StatsError",
    "EmptySeriesError",
    "MissingEquityRowsError",
    "TRADING_DAYS_PER_YEAR",
    "SUMMARY_FIELDS",
    "EPSILON",
    "DailyAggregator",
    "Trade",
    "TradeSegmenter",
    "TradeMetrics",
    "per_trade_stats",
    "TRADE_COLUMNS",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticSink",
    "LoggingDiagnosticSink",
    "TradeStatsEngine",
    "TRADE_STATS_OUTPUT",
    "DAILY_STATS_OUTPUT",
]
