"""
Test Suite for Trade Statistics

This package contains unit tests for the trade statistics system,
organized by module.

Test modules:
    - test_metrics: Profit factor, Sharpe-like ratio, drawdown and summaries
    - test_daily: Per-day P&L aggregation and multi-symbol tables
    - test_trades: Trade segmentation and MAE/MFE
    - test_stats: TradeStatsEngine trade/daily statistics and diagnostics
    - test_ledger: Ledger frames, validation and portfolio stores
    - test_config: Option parsing, config loading and environments

Run all tests:
    pytest tests/ -v

Run specific test file:
    pytest tests/test_trades.py -v

Run with coverage:
    pytest tests/ --cov=tradestats --cov-report=term-missing
"""
