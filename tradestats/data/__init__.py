"""
Data Module for Trade Statistics

Ledger record types, frame conventions, and read-only access to portfolio
ledgers and symbol metadata.

Components:
    - TransactionRecord / PositionPLRecord: Immutable ledger rows
    - transactions_to_frame / position_pl_to_frame: Frame builders
    - PortfolioStore: Ledger access interface
    - InMemoryPortfolioStore / CSVPortfolioStore: Store implementations
    - SymbolMetadata / StaticSymbolMetadata: Tick value lookup
"""

from tradestats.data.ledger import (
    # Records
    TransactionRecord,
    PositionPLRecord,
    # Frame helpers
    transactions_to_frame,
    position_pl_to_frame,
    drop_initialization_row,
    validate_transactions,
    validate_position_pl,
    # Exceptions
    LedgerError,
    InvalidLedgerError,
    LedgerNotFoundError,
    # Constants
    TRANSACTION_COLUMNS,
    POSITION_PL_COLUMNS,
)

from tradestats.data.portfolio_store import (
    PortfolioStore,
    InMemoryPortfolioStore,
    CSVPortfolioStore,
    SymbolMetadata,
    StaticSymbolMetadata,
)

__all__ = [
    "TransactionRecord",
    "PositionPLRecord",
    "transactions_to_frame",
    "position_pl_to_frame",
    "drop_initialization_row",
    "validate_transactions",
    "validate_position_pl",
    "LedgerError",
    "InvalidLedgerError",
    "LedgerNotFoundError",
    "TRANSACTION_COLUMNS",
    "POSITION_PL_COLUMNS",
    "PortfolioStore",
    "InMemoryPortfolioStore",
    "CSVPortfolioStore",
    "SymbolMetadata",
    "StaticSymbolMetadata",
]
