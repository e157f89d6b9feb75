"""
Trade Statistics Package

Performance and risk statistics for a portfolio's recorded transactions and
position P&L: flat-to-flat trade segmentation, per-trade MAE/MFE, daily P&L
aggregation, and summary statistics per portfolio/symbol and per day.

Modules:
    analytics: Daily aggregation, trade segmentation, statistics, orchestration
    data: Ledger records, frame conventions, portfolio stores
    config: Run configuration, loading, environment and logging
"""

__version__ = "1.0.0"
__author__ = "Trade Stats Team"

from tradestats.analytics import (
    TradeStatsEngine,
    LoggingDiagnosticSink,
    DiagnosticKind,
)
from tradestats.config import (
    StatsConfig,
    TradeDefinition,
    load_config,
    load_config_string,
    configure_logging,
)
from tradestats.data import (
    InMemoryPortfolioStore,
    CSVPortfolioStore,
    StaticSymbolMetadata,
    TransactionRecord,
    PositionPLRecord,
    transactions_to_frame,
    position_pl_to_frame,
)

__all__ = [
    "__version__",
    "__author__",
    "TradeStatsEngine",
    "LoggingDiagnosticSink",
    "DiagnosticKind",
    "StatsConfig",
    "TradeDefinition",
    "load_config",
    "load_config_string",
    "configure_logging",
    "InMemoryPortfolioStore",
    "CSVPortfolioStore",
    "StaticSymbolMetadata",
    "TransactionRecord",
    "PositionPLRecord",
    "transactions_to_frame",
    "position_pl_to_frame",
]
