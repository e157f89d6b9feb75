"""
Trade Segmentation and Per-Trade Metrics

Turns a symbol's transaction history into discrete trades and measures each
one against the position P&L series.

Trade Definitions:
    flat.to.flat:
        A trade runs from the transaction that moves the position away from
        zero to the transaction that returns it to exactly zero. Reversing
        through zero without landing on it stays one trade.
    flat.to.reduced:
        Each flat-to-flat span is further split at every transaction that
        lowers the absolute position. The reducing transaction ends the
        current leg and the next transaction starts a new one, so legs never
        straddle a flat point. If a position is still held after the last
        reducing leg, that leg is extended to the last valuation and flagged
        open.

Per-Trade Metrics:
    - net_pl: Sum of realized P&L of the trade's transactions
              (mark-to-market P&L over the span for an open trade)
    - mae / mfe: Worst / best cumulative position P&L over [start, end],
                 bounded by zero
    - pct_*: Currency metric / (entry price * |initial_position|)
    - tick_*: Currency metric / tick value

Usage:
    from tradestats.analytics.trades import per_trade_stats

    trades = per_trade_stats(txns, position_pl, tick_value=12.5)
    print(trades[['start', 'end', 'net_pl', 'mae', 'mfe']])
"""

import logging
from dataclasses import asdict, dataclass, replace
from typing import List, Optional, Union

import numpy as np
import pandas as pd

from tradestats.config.config_schema import TradeDefinition

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

TRADE_COLUMNS = [
    "start",
    "end",
    "initial_position",
    "max_position",
    "num_txns",
    "max_notional_cost",
    "net_pl",
    "mae",
    "mfe",
    "pct_net_pl",
    "pct_mae",
    "pct_mfe",
    "tick_net_pl",
    "tick_mae",
    "tick_mfe",
    "is_open",
]


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class Trade:
    """
    One segmented trade.

    Excursion fields are NaN until TradeMetrics.compute() fills them.
    max_position is the position of largest magnitude, with its sign.
    """

    start: pd.Timestamp
    end: pd.Timestamp
    initial_position: float
    max_position: float
    num_txns: int
    max_notional_cost: float
    entry_price: float
    realized_pl: float
    is_open: bool = False
    net_pl: float = np.nan
    mae: float = np.nan
    mfe: float = np.nan
    pct_net_pl: float = np.nan
    pct_mae: float = np.nan
    pct_mfe: float = np.nan
    tick_net_pl: float = np.nan
    tick_mae: float = np.nan
    tick_mfe: float = np.nan

    @property
    def entry_notional(self) -> float:
        return abs(self.entry_price * self.initial_position)


class _TradeBuilder:
    """Running state of the trade currently open."""

    def __init__(self, start: pd.Timestamp, initial_position: float, entry_price: float):
        self.start = start
        self.initial_position = initial_position
        self.entry_price = entry_price
        self.max_position = initial_position
        self.max_notional_cost = abs(initial_position * entry_price)
        self.num_txns = 0
        self.realized_pl = 0.0

    def add(self, pos_qty: float, price: float, realized_pl: float) -> None:
        self.num_txns += 1
        if abs(pos_qty) > abs(self.max_position):
            self.max_position = pos_qty
        self.max_notional_cost = max(self.max_notional_cost, abs(pos_qty * price))
        self.realized_pl += realized_pl

    def close(self, end: pd.Timestamp, is_open: bool = False) -> Trade:
        return Trade(
            start=self.start,
            end=end,
            initial_position=self.initial_position,
            max_position=self.max_position,
            num_txns=self.num_txns,
            max_notional_cost=self.max_notional_cost,
            entry_price=self.entry_price,
            realized_pl=self.realized_pl,
            is_open=is_open,
        )


# =============================================================================
# TradeSegmenter Class
# =============================================================================

class TradeSegmenter:
    """Split a transaction frame into trades."""

    @staticmethod
    def segment(
        txns: pd.DataFrame,
        trade_definition: Union[TradeDefinition, str] = TradeDefinition.FLAT_TO_FLAT,
        include_open_trade: bool = True,
        last_valuation: Optional[pd.Timestamp] = None,
    ) -> List[Trade]:
        """
        Walk the transactions and emit one Trade per segment.

        Transactions are processed in their given order; equal timestamps are
        never reordered.

        Args:
            txns: Transaction frame without the initialization row
            trade_definition: 'flat.to.flat' or 'flat.to.reduced'
            include_open_trade: Keep a trade still open at the end of the
                                series, closed at the last valuation
            last_valuation: Timestamp of the last position valuation

        Returns:
            Trades in order of their start

        Raises:
            ConfigValidationError: If trade_definition is not supported
        """
        trade_definition = TradeDefinition.parse(trade_definition)
        split_on_reduce = trade_definition == TradeDefinition.FLAT_TO_REDUCED

        trades: List[Trade] = []
        current: Optional[_TradeBuilder] = None
        prev_qty = 0.0

        rows = zip(
            txns.index,
            txns["txn_qty"].to_numpy(dtype=float),
            txns["txn_price"].to_numpy(dtype=float),
            txns["pos_qty"].to_numpy(dtype=float),
            txns["net_txn_realized_pl"].to_numpy(dtype=float),
        )

        for timestamp, txn_qty, price, pos_qty, realized_pl in rows:
            reducing = prev_qty != 0 and abs(pos_qty) < abs(prev_qty)

            if current is None:
                if prev_qty == 0 and (txn_qty == 0 or pos_qty == 0):
                    prev_qty = pos_qty
                    continue
                # A leg opened by a reduction is measured on the position carried in
                initial = prev_qty if reducing else pos_qty
                current = _TradeBuilder(timestamp, initial, price)

            current.add(pos_qty, price, realized_pl)

            if pos_qty == 0 or (split_on_reduce and reducing):
                trades.append(current.close(timestamp))
                current = None

            prev_qty = pos_qty

        if current is not None:
            if include_open_trade:
                trades.append(current.close(
                    TradeSegmenter._tail_end(txns, last_valuation), is_open=True
                ))
            else:
                logger.debug(f"Discarding open trade started {current.start}")
        elif prev_qty != 0 and include_open_trade and trades:
            # The last leg was ended by a reduction but the position is still held
            trades[-1] = replace(
                trades[-1],
                end=TradeSegmenter._tail_end(txns, last_valuation),
                is_open=True,
            )

        return trades

    @staticmethod
    def _tail_end(
        txns: pd.DataFrame,
        last_valuation: Optional[pd.Timestamp],
    ) -> pd.Timestamp:
        """Later of the last transaction and the last valuation."""
        end = txns.index[-1]
        if last_valuation is not None and last_valuation > end:
            end = last_valuation
        return end


# =============================================================================
# TradeMetrics Class
# =============================================================================

def _ratio(value: float, denominator: Optional[float]) -> float:
    if denominator is None or not np.isfinite(denominator) or denominator == 0:
        return np.nan
    return float(value / denominator)


class TradeMetrics:
    """Excursion and profitability metrics for segmented trades."""

    @staticmethod
    def compute(
        trades: List[Trade],
        position_pl: pd.DataFrame,
        tick_value: Optional[float] = None,
    ) -> List[Trade]:
        """
        Fill net P&L, MAE/MFE and their normalized variants for each trade.

        Args:
            trades: Trades from TradeSegmenter.segment()
            position_pl: Position P&L frame without the initialization row
            tick_value: Currency value of one tick, None if unknown

        Returns:
            New Trade objects with metric fields set
        """
        period_pl = position_pl["net_trading_pl"]
        result = []

        for trade in trades:
            span = period_pl.loc[trade.start:trade.end]
            cumulative = span.cumsum()

            if cumulative.empty:
                mae, mfe = 0.0, 0.0
            else:
                mae = min(0.0, float(cumulative.min()))
                mfe = max(0.0, float(cumulative.max()))

            if trade.is_open and not cumulative.empty:
                net_pl = float(cumulative.iloc[-1])
            else:
                net_pl = trade.realized_pl

            notional = trade.entry_notional
            result.append(replace(
                trade,
                net_pl=net_pl,
                mae=mae,
                mfe=mfe,
                pct_net_pl=_ratio(net_pl, notional),
                pct_mae=_ratio(mae, notional),
                pct_mfe=_ratio(mfe, notional),
                tick_net_pl=_ratio(net_pl, tick_value),
                tick_mae=_ratio(mae, tick_value),
                tick_mfe=_ratio(mfe, tick_value),
            ))

        return result

    @staticmethod
    def to_frame(trades: List[Trade]) -> pd.DataFrame:
        """Convert trades to a DataFrame with TRADE_COLUMNS."""
        if not trades:
            return pd.DataFrame(columns=TRADE_COLUMNS)
        return pd.DataFrame([asdict(t) for t in trades])[TRADE_COLUMNS]


def per_trade_stats(
    txns: pd.DataFrame,
    position_pl: pd.DataFrame,
    trade_definition: Union[TradeDefinition, str] = TradeDefinition.FLAT_TO_FLAT,
    include_open_trade: bool = True,
    tick_value: Optional[float] = None,
) -> pd.DataFrame:
    """
    Segment a symbol's transactions and compute per-trade metrics.

    Args:
        txns: Transaction frame without the initialization row
        position_pl: Position P&L frame without the initialization row
        trade_definition: 'flat.to.flat' (default) or 'flat.to.reduced'
        include_open_trade: Keep a trailing open trade
        tick_value: Currency value of one tick, None if unknown

    Returns:
        DataFrame with one row per trade and TRADE_COLUMNS columns

    Example:
        >>> trades = per_trade_stats(txns, position_pl)
        >>> trades['net_pl'].sum()
    """
    last_valuation = position_pl.index[-1] if len(position_pl) else None
    trades = TradeSegmenter.segment(
        txns,
        trade_definition=trade_definition,
        include_open_trade=include_open_trade,
        last_valuation=last_valuation,
    )
    trades = TradeMetrics.compute(trades, position_pl, tick_value=tick_value)
    return TradeMetrics.to_frame(trades)
