"""
Trade and Daily Statistics Across Portfolios

The TradeStatsEngine is the only component aware of multiple portfolios and
symbols. For every requested (portfolio, symbol) pair it reads the ledger
through an injected PortfolioStore, runs the daily aggregation, trade
segmentation and reduction steps, and assembles one row per pair.

A problem with one symbol (no non-zero P&L, no equity rows, a malformed
ledger) is reported to the DiagnosticSink and the batch moves on. Invalid
options are fatal and rejected before anything is computed.

Entry Points:
    trade_stats():     one row per (portfolio, symbol), full precision
    daily_stats():     one row per daily column, rounded (2 decimals by default)
    per_trade_stats(): one row per trade for a single symbol
    daily_txn_pl():    daily transaction P&L table, one column per symbol
    daily_eq_pl():     daily position P&L table, one column per symbol
    run():             dispatch from a StatsConfig

Usage:
    from tradestats import TradeStatsEngine, InMemoryPortfolioStore

    engine = TradeStatsEngine(store)
    stats = engine.trade_stats("demo", use="trades")
    daily = engine.daily_stats("demo", use="txns")
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from tradestats.analytics.daily import DailyAggregator
from tradestats.analytics.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    DiagnosticSink,
    LoggingDiagnosticSink,
)
from tradestats.analytics.metrics import (
    EmptySeriesError,
    MissingEquityRowsError,
    StatsError,
    StatsReducer,
)
from tradestats.analytics.trades import per_trade_stats
from tradestats.config.config_schema import (
    DailyStatsUse,
    StatsConfig,
    StatsMode,
    TradeDefinition,
    TradeStatsUse,
    validate_config,
)
from tradestats.config.environment import get_settings
from tradestats.data.ledger import (
    LedgerError,
    LedgerNotFoundError,
    drop_initialization_row,
    validate_position_pl,
    validate_transactions,
)
from tradestats.data.portfolio_store import PortfolioStore, SymbolMetadata

logger = logging.getLogger(__name__)


# =============================================================================
# Output Columns
# =============================================================================

KEY_COLUMNS = ["portfolio", "symbol"]

# (output column, StatsReducer.summarize key)
TRADE_STATS_COLUMNS: List[Tuple[str, str]] = [
    ("num_trades", "num_values"),
    ("total_net_profit", "total_net_profit"),
    ("avg_trade_pl", "avg_pl"),
    ("med_trade_pl", "med_pl"),
    ("largest_winner", "largest_winner"),
    ("largest_loser", "largest_loser"),
    ("gross_profits", "gross_profits"),
    ("gross_losses", "gross_losses"),
    ("std_dev_trade_pl", "std_dev_pl"),
    ("percent_positive", "percent_positive"),
    ("percent_negative", "percent_negative"),
    ("profit_factor", "profit_factor"),
    ("avg_win_trade", "avg_win"),
    ("med_win_trade", "med_win"),
    ("avg_losing_trade", "avg_loss"),
    ("med_losing_trade", "med_loss"),
    ("avg_daily_pl", "avg_daily_pl"),
    ("med_daily_pl", "med_daily_pl"),
    ("std_dev_daily_pl", "std_dev_daily_pl"),
    ("ann_sharpe", "ann_sharpe"),
    ("max_drawdown", "max_drawdown"),
    ("profit_to_max_draw", "profit_to_max_draw"),
    ("avg_win_loss_ratio", "avg_win_loss_ratio"),
    ("med_win_loss_ratio", "med_win_loss_ratio"),
    ("max_equity", "max_equity"),
    ("min_equity", "min_equity"),
    ("end_equity", "end_equity"),
]

DAILY_STATS_COLUMNS: List[Tuple[str, str]] = [
    ("total_net_profit", "total_net_profit"),
    ("total_days", "num_values"),
    ("winning_days", "num_positive"),
    ("losing_days", "num_negative"),
    ("avg_day_pl", "avg_pl"),
    ("med_day_pl", "med_pl"),
    ("largest_winner", "largest_winner"),
    ("largest_loser", "largest_loser"),
    ("gross_profits", "gross_profits"),
    ("gross_losses", "gross_losses"),
    ("std_dev_daily_pl", "std_dev_pl"),
    ("percent_positive", "percent_positive"),
    ("percent_negative", "percent_negative"),
    ("profit_factor", "profit_factor"),
    ("avg_win_day", "avg_win"),
    ("med_win_day", "med_win"),
    ("avg_losing_day", "avg_loss"),
    ("med_losing_day", "med_loss"),
    ("ann_sharpe", "ann_sharpe"),
    ("max_drawdown", "max_drawdown"),
    ("profit_to_max_draw", "profit_to_max_draw"),
    ("avg_win_loss_ratio", "avg_win_loss_ratio"),
    ("med_win_loss_ratio", "med_win_loss_ratio"),
    ("max_equity", "max_equity"),
    ("min_equity", "min_equity"),
    ("end_equity", "end_equity"),
]

TRADE_STATS_OUTPUT = KEY_COLUMNS + ["num_txns"] + [c for c, _ in TRADE_STATS_COLUMNS]
DAILY_STATS_OUTPUT = KEY_COLUMNS + [c for c, _ in DAILY_STATS_COLUMNS]

DAILY_TXN_SUFFIX = "DailyTxnPL"
DAILY_EQ_SUFFIX = "DailyEndEq"

# Exception type -> diagnostic kind, most specific first
_ERROR_KINDS: List[Tuple[type, DiagnosticKind]] = [
    (MissingEquityRowsError, DiagnosticKind.MISSING_EQUITY_ROWS),
    (EmptySeriesError, DiagnosticKind.EMPTY_SERIES),
    (LedgerNotFoundError, DiagnosticKind.LEDGER_NOT_FOUND),
    (LedgerError, DiagnosticKind.INVALID_LEDGER),
]

PortfolioNames = Union[str, Sequence[str]]


# =============================================================================
# TradeStatsEngine Class
# =============================================================================

class TradeStatsEngine:
    """
    Compute trade and daily statistics for portfolios in a PortfolioStore.

    Attributes:
        store: Read-only ledger access
        metadata: Tick value lookup, or None
        sink: Receiver for per-symbol diagnostics

    Example:
        >>> engine = TradeStatsEngine(store, metadata=StaticSymbolMetadata({'ES': 12.5}))
        >>> engine.trade_stats(['demo'], use='trades')
    """

    def __init__(
        self,
        store: PortfolioStore,
        metadata: Optional[SymbolMetadata] = None,
        sink: Optional[DiagnosticSink] = None,
    ):
        self.store = store
        self.metadata = metadata
        self.sink = sink if sink is not None else LoggingDiagnosticSink()

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _portfolio_list(portfolios: PortfolioNames) -> List[str]:
        if isinstance(portfolios, str):
            return [portfolios]
        return list(portfolios)

    def _symbols_for(self, portfolio: str, symbols: Optional[Sequence[str]]) -> List[str]:
        if symbols is None:
            return self.store.list_symbols(portfolio)
        return list(symbols)

    def _load(self, portfolio: str, symbol: str) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Read, validate and strip the initialization rows of a symbol's ledger."""
        txns = validate_transactions(self.store.get_transactions(portfolio, symbol))
        position_pl = validate_position_pl(self.store.get_position_pl(portfolio, symbol))
        return drop_initialization_row(txns), drop_initialization_row(position_pl)

    def _tick_value(self, symbol: str) -> Optional[float]:
        if self.metadata is None:
            return None
        return self.metadata.get_tick_value(symbol)

    def _report(
        self,
        kind: DiagnosticKind,
        message: str,
        portfolio: Optional[str] = None,
        symbol: Optional[str] = None,
        **values: Any,
    ) -> None:
        self.sink.report(Diagnostic(
            kind=kind,
            message=message,
            portfolio=portfolio,
            symbol=symbol,
            values=values,
        ))

    def _report_error(
        self,
        error: Exception,
        portfolio: str,
        symbol: Optional[str] = None,
    ) -> None:
        kind = DiagnosticKind.INVALID_LEDGER
        for error_type, error_kind in _ERROR_KINDS:
            if isinstance(error, error_type):
                kind = error_kind
                break
        self._report(kind, f"{error}; skipped", portfolio, symbol)

    # =========================================================================
    # Per-Trade Statistics
    # =========================================================================

    def per_trade_stats(
        self,
        portfolio: str,
        symbol: str,
        trade_definition: Union[TradeDefinition, str] = TradeDefinition.FLAT_TO_FLAT,
        include_open_trade: bool = True,
    ) -> pd.DataFrame:
        """
        Segment one symbol's transactions into trades with excursion metrics.

        Raises:
            ConfigValidationError: If trade_definition is not supported
            LedgerError: If the symbol's ledger is missing or malformed
        """
        trade_definition = TradeDefinition.parse(trade_definition)
        txns, position_pl = self._load(portfolio, symbol)
        return per_trade_stats(
            txns,
            position_pl,
            trade_definition=trade_definition,
            include_open_trade=include_open_trade,
            tick_value=self._tick_value(symbol),
        )

    # =========================================================================
    # Trade Statistics
    # =========================================================================

    def trade_stats(
        self,
        portfolios: PortfolioNames,
        symbols: Optional[Sequence[str]] = None,
        use: Union[TradeStatsUse, str] = TradeStatsUse.TXNS,
        trade_definition: Union[TradeDefinition, str] = TradeDefinition.FLAT_TO_FLAT,
        include_zero_days: bool = False,
        include_open_trade: bool = True,
        periods_per_year: Optional[int] = None,
    ) -> pd.DataFrame:
        """
        Calculate statistics on transactions or trades per portfolio/symbol.

        Daily statistics come from non-zero transaction realized P&L summed
        per day (all rows when include_zero_days is True). Win/loss statistics
        come from transaction P&L (use='txns') or from flat-to-flat trade net
        P&L (use='trades'). Equity curve statistics come from the position
        P&L series. Total net profit is transaction-derived.

        Args:
            portfolios: Portfolio name or names
            symbols: Symbols to include (default: every symbol per portfolio)
            use: 'txns' or 'trades'
            trade_definition: 'flat.to.flat' or 'flat.to.reduced'
            include_zero_days: Include zero P&L rows in the daily series
            include_open_trade: Keep a trailing open trade when use='trades'
            periods_per_year: Annualization factor for the Sharpe ratio
                              (default: environment settings)

        Returns:
            DataFrame with one row per portfolio/symbol, columns
            TRADE_STATS_OUTPUT, values in full precision

        Raises:
            ConfigValidationError: If use or trade_definition is not supported
        """
        use = TradeStatsUse.parse(use)
        trade_definition = TradeDefinition.parse(trade_definition)
        if periods_per_year is None:
            periods_per_year = get_settings().periods_per_year

        rows = []
        for portfolio in self._portfolio_list(portfolios):
            try:
                symbol_list = self._symbols_for(portfolio, symbols)
            except LedgerError as e:
                self._report_error(e, portfolio)
                continue

            for symbol in symbol_list:
                try:
                    row = self._trade_stats_row(
                        portfolio,
                        symbol,
                        use,
                        trade_definition,
                        include_zero_days,
                        include_open_trade,
                        periods_per_year,
                    )
                except (LedgerError, StatsError) as e:
                    self._report_error(e, portfolio, symbol)
                    continue
                rows.append(row)

        logger.info(f"Computed trade statistics for {len(rows)} symbol(s)")
        return pd.DataFrame(rows, columns=TRADE_STATS_OUTPUT)

    def _trade_stats_row(
        self,
        portfolio: str,
        symbol: str,
        use: TradeStatsUse,
        trade_definition: TradeDefinition,
        include_zero_days: bool,
        include_open_trade: bool,
        periods_per_year: int,
    ) -> Dict[str, Any]:
        txns, position_pl = self._load(portfolio, symbol)
        txn_pl = txns["net_txn_realized_pl"]

        if not (txn_pl != 0).any():
            raise EmptySeriesError("No non-zero transaction P&L")

        daily_pl = DailyAggregator.aggregate_daily(
            txn_pl, include_zero_values=include_zero_days
        )

        if use == TradeStatsUse.TRADES:
            trades = per_trade_stats(
                txns,
                position_pl,
                trade_definition=trade_definition,
                include_open_trade=include_open_trade,
                tick_value=self._tick_value(symbol),
            )
            values = trades["net_pl"].astype(float)
        else:
            values = txn_pl

        if position_pl.empty:
            raise MissingEquityRowsError("No equity rows")

        total_net_profit = float(txn_pl.sum())
        summary = StatsReducer.summarize(
            values,
            daily_values=daily_pl,
            equity_pl=position_pl["net_trading_pl"],
            total_net_profit=total_net_profit,
            periods_per_year=periods_per_year,
        )

        # Only comparable when flat; open positions carry unrealized P&L
        end_equity = summary["end_equity"]
        if (
            not StatsReducer.totals_reconcile(total_net_profit, end_equity)
            and txns["pos_qty"].iloc[-1] == 0
        ):
            self._report(
                DiagnosticKind.RECONCILIATION_MISMATCH,
                f"Total net profit from transactions ({total_net_profit}) and "
                f"cumulative P&L from the equity curve ({end_equity}) do not "
                f"match. This can happen in long/short portfolios.",
                portfolio,
                symbol,
                total_net_profit=total_net_profit,
                end_equity=end_equity,
            )

        row: Dict[str, Any] = {
            "portfolio": portfolio,
            "symbol": symbol,
            "num_txns": len(txns),
        }
        row.update({column: summary[key] for column, key in TRADE_STATS_COLUMNS})
        return row

    # =========================================================================
    # Daily P&L Tables
    # =========================================================================

    def _daily_table(
        self,
        portfolios: PortfolioNames,
        symbols: Optional[Sequence[str]],
        source: DailyStatsUse,
    ) -> Tuple[pd.DataFrame, Dict[str, Tuple[str, str]]]:
        """Build the combined daily table and map each column to its pair."""
        portfolio_list = self._portfolio_list(portfolios)
        prefix_portfolio = len(portfolio_list) > 1
        suffix = DAILY_TXN_SUFFIX if source == DailyStatsUse.TXNS else DAILY_EQ_SUFFIX

        series: Dict[str, pd.Series] = {}
        keys: Dict[str, Tuple[str, str]] = {}

        for portfolio in portfolio_list:
            try:
                symbol_list = self._symbols_for(portfolio, symbols)
            except LedgerError as e:
                self._report_error(e, portfolio)
                continue

            for symbol in symbol_list:
                try:
                    txns, position_pl = self._load(portfolio, symbol)
                    if source == DailyStatsUse.TXNS:
                        daily = DailyAggregator.aggregate_daily(
                            txns["net_txn_realized_pl"]
                        )
                    else:
                        if position_pl.empty:
                            raise MissingEquityRowsError("No equity rows")
                        # Every valuation period counts, zero or not
                        daily = DailyAggregator.aggregate_daily(
                            position_pl["net_trading_pl"], include_zero_values=True
                        )
                except (LedgerError, StatsError) as e:
                    self._report_error(e, portfolio, symbol)
                    continue

                column = f"{symbol}.{suffix}"
                if prefix_portfolio:
                    column = f"{portfolio}.{column}"
                series[column] = daily
                keys[column] = (portfolio, symbol)

        return DailyAggregator.combine(series), keys

    def daily_txn_pl(
        self,
        portfolios: PortfolioNames,
        symbols: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """
        Daily transaction realized P&L by instrument.

        Returns:
            Table with one row per date and one '<symbol>.DailyTxnPL' column
            per symbol; days a symbol lacks are NaN
        """
        return self._daily_table(portfolios, symbols, DailyStatsUse.TXNS)[0]

    def daily_eq_pl(
        self,
        portfolios: PortfolioNames,
        symbols: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """
        Daily equity curve (position) P&L by instrument.

        Returns:
            Table with one row per date and one '<symbol>.DailyEndEq' column
            per symbol; days a symbol lacks are NaN
        """
        return self._daily_table(portfolios, symbols, DailyStatsUse.EQUITY)[0]

    # =========================================================================
    # Daily Statistics
    # =========================================================================

    def daily_stats(
        self,
        portfolios: PortfolioNames,
        symbols: Optional[Sequence[str]] = None,
        use: Union[DailyStatsUse, str] = DailyStatsUse.EQUITY,
        round_digits: Optional[int] = None,
        periods_per_year: Optional[int] = None,
    ) -> pd.DataFrame:
        """
        Calculate statistics on daily P&L per symbol column.

        Args:
            portfolios: Portfolio name or names
            symbols: Symbols to include (default: every symbol per portfolio)
            use: 'equity' (position P&L) or 'txns' (transaction realized P&L)
            round_digits: Decimal places of the numeric output
                          (default: environment settings)
            periods_per_year: Annualization factor for the Sharpe ratio
                              (default: environment settings)

        Returns:
            DataFrame indexed by daily column name with columns
            DAILY_STATS_OUTPUT

        Raises:
            ConfigValidationError: If use is not supported
        """
        use = DailyStatsUse.parse(use)
        settings = get_settings()
        if round_digits is None:
            round_digits = settings.round_digits
        if periods_per_year is None:
            periods_per_year = settings.periods_per_year

        table, keys = self._daily_table(portfolios, symbols, use)

        rows = []
        index = []
        for column in table.columns:
            portfolio, symbol = keys[column]
            # Days the symbol lacks are absent, not zero days
            values = table[column].dropna()
            try:
                summary = StatsReducer.summarize(values, periods_per_year=periods_per_year)
            except StatsError as e:
                self._report_error(e, portfolio, symbol)
                continue

            row: Dict[str, Any] = {"portfolio": portfolio, "symbol": symbol}
            row.update({col: summary[key] for col, key in DAILY_STATS_COLUMNS})
            rows.append(row)
            index.append(column)

        result = pd.DataFrame(
            rows, columns=DAILY_STATS_OUTPUT, index=pd.Index(index, name="series")
        )
        numeric = result.select_dtypes("number").columns
        result[numeric] = result[numeric].round(round_digits)

        logger.info(f"Computed daily statistics for {len(rows)} series")
        return result

    # =========================================================================
    # Config Dispatch
    # =========================================================================

    def run(self, config: StatsConfig) -> pd.DataFrame:
        """
        Run trade or daily statistics from a configuration.

        Raises:
            ConfigValidationError: If the configuration is invalid
        """
        validate_config(config)
        mode = StatsMode.parse(config.mode)

        if mode == StatsMode.DAILY:
            return self.daily_stats(
                config.portfolios,
                symbols=config.symbols,
                use=config.daily_use,
                round_digits=config.round_digits,
                periods_per_year=config.periods_per_year,
            )

        return self.trade_stats(
            config.portfolios,
            symbols=config.symbols,
            use=config.use,
            trade_definition=config.trade_definition,
            include_zero_days=config.include_zero_days,
            include_open_trade=config.include_open_trade,
            periods_per_year=config.periods_per_year,
        )
