"""
Ledger Records and Frames

This module defines the two read-only inputs the statistics engine consumes
for each (portfolio, symbol) pair, and the helpers that turn record lists into
the pandas frames the analytics operate on.

Frame Conventions:
    Transactions:
        DatetimeIndex named 'timestamp', columns
        'txn_qty', 'txn_price', 'txn_fees', 'pos_qty', 'net_txn_realized_pl'
    Position P&L:
        DatetimeIndex named 'timestamp', columns
        'pos_qty', 'net_trading_pl'

    Frames handed out by a PortfolioStore INCLUDE the synthetic
    initialization row as their first row. The analytics drop it with
    drop_initialization_row() before computing anything.

Usage:
    from tradestats.data.ledger import TransactionRecord, transactions_to_frame

    txns = transactions_to_frame([
        TransactionRecord(datetime(2024, 1, 2), 10, 100.0, 10),
        TransactionRecord(datetime(2024, 1, 3), -10, 110.0, 0, realized_pl=100.0),
    ])
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

TRANSACTION_COLUMNS = [
    "txn_qty",
    "txn_price",
    "txn_fees",
    "pos_qty",
    "net_txn_realized_pl",
]

POSITION_PL_COLUMNS = ["pos_qty", "net_trading_pl"]

INDEX_NAME = "timestamp"

# Timestamp used for the initialization row when none is given
DEFAULT_INIT_DATE = pd.Timestamp("1950-01-01")


# =============================================================================
# Exceptions
# =============================================================================

class LedgerError(Exception):
    """Base exception for ledger access errors."""
    pass


class InvalidLedgerError(LedgerError):
    """Exception raised when a ledger frame is malformed."""
    pass


class LedgerNotFoundError(LedgerError):
    """Exception raised when a portfolio or symbol has no ledger."""
    pass


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class TransactionRecord:
    """A single executed transaction for one symbol."""

    timestamp: datetime
    quantity: float
    price: float
    position_qty: float
    realized_pl: float = 0.0
    fees: float = 0.0


@dataclass(frozen=True)
class PositionPLRecord:
    """Position valuation for one period (realized + unrealized change)."""

    timestamp: datetime
    net_trading_pl: float
    position_qty: float = 0.0


# =============================================================================
# Frame Builders
# =============================================================================

def transactions_to_frame(
    records: Iterable[TransactionRecord],
    init_date: Optional[Union[str, datetime]] = None,
) -> pd.DataFrame:
    """
    Build a transaction frame, prepending the zero-quantity initialization row.

    Args:
        records: Transactions in execution order
        init_date: Timestamp for the initialization row (default 1950-01-01)

    Returns:
        Transaction frame in the ledger convention
    """
    init_ts = pd.Timestamp(init_date) if init_date is not None else DEFAULT_INIT_DATE

    rows = [(init_ts, 0.0, 0.0, 0.0, 0.0, 0.0)]
    for rec in records:
        rows.append((
            pd.Timestamp(rec.timestamp),
            float(rec.quantity),
            float(rec.price),
            float(rec.fees),
            float(rec.position_qty),
            float(rec.realized_pl),
        ))

    frame = pd.DataFrame(
        [row[1:] for row in rows],
        index=pd.DatetimeIndex([row[0] for row in rows], name=INDEX_NAME),
        columns=TRANSACTION_COLUMNS,
    )
    return frame


def position_pl_to_frame(
    records: Iterable[PositionPLRecord],
    init_date: Optional[Union[str, datetime]] = None,
) -> pd.DataFrame:
    """
    Build a position P&L frame, prepending the initialization row.

    Args:
        records: Valuation periods in time order
        init_date: Timestamp for the initialization row (default 1950-01-01)

    Returns:
        Position P&L frame in the ledger convention
    """
    init_ts = pd.Timestamp(init_date) if init_date is not None else DEFAULT_INIT_DATE

    index: List[pd.Timestamp] = [init_ts]
    data: List[tuple] = [(0.0, 0.0)]
    for rec in records:
        index.append(pd.Timestamp(rec.timestamp))
        data.append((float(rec.position_qty), float(rec.net_trading_pl)))

    return pd.DataFrame(
        data,
        index=pd.DatetimeIndex(index, name=INDEX_NAME),
        columns=POSITION_PL_COLUMNS,
    )


def drop_initialization_row(frame: pd.DataFrame) -> pd.DataFrame:
    """Return the frame without its first (initialization) row."""
    return frame.iloc[1:]


# =============================================================================
# Validation
# =============================================================================

def _validate_frame(frame: pd.DataFrame, columns: List[str], kind: str) -> pd.DataFrame:
    if not isinstance(frame, pd.DataFrame):
        raise InvalidLedgerError(
            f"Expected DataFrame for {kind}, got {type(frame).__name__}"
        )

    missing = [col for col in columns if col not in frame.columns]
    if missing:
        raise InvalidLedgerError(f"{kind} frame is missing columns: {missing}")

    if not isinstance(frame.index, pd.DatetimeIndex):
        try:
            frame = frame.copy()
            frame.index = pd.DatetimeIndex(pd.to_datetime(frame.index), name=INDEX_NAME)
        except (TypeError, ValueError) as e:
            raise InvalidLedgerError(
                f"{kind} index cannot be converted to datetime: {e}"
            ) from e

    # Equal timestamps are allowed and keep their given order
    if not frame.index.is_monotonic_increasing:
        raise InvalidLedgerError(f"{kind} frame is not in time order")

    values = frame[columns].to_numpy(dtype=float)
    if np.isnan(values).any():
        raise InvalidLedgerError(f"{kind} frame contains NaN values")

    return frame


def validate_transactions(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Check a transaction frame against the ledger convention.

    Raises:
        InvalidLedgerError: If columns are missing, values are NaN,
                            or rows are out of time order
    """
    return _validate_frame(frame, TRANSACTION_COLUMNS, "Transaction")


def validate_position_pl(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Check a position P&L frame against the ledger convention.

    Raises:
        InvalidLedgerError: If columns are missing, values are NaN,
                            or rows are out of time order
    """
    return _validate_frame(frame, POSITION_PL_COLUMNS, "Position P&L")
