"""
Portfolio Store and Symbol Metadata

This module defines the read-only interfaces the statistics engine uses to
reach the ledger and symbol metadata, plus in-memory and CSV-backed
implementations.

Key Components:
    - PortfolioStore: Abstract base class for ledger access
    - InMemoryPortfolioStore: Frames held in a dictionary
    - CSVPortfolioStore: Frames read from a directory of CSV files
    - SymbolMetadata / StaticSymbolMetadata: Tick value lookup

Usage:
    from tradestats.data.portfolio_store import InMemoryPortfolioStore

    store = InMemoryPortfolioStore()
    store.add_symbol("demo", "ES", txns=txn_frame, position_pl=pos_pl_frame)
    engine = TradeStatsEngine(store)
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from tradestats.config.environment import get_settings
from tradestats.data.ledger import (
    INDEX_NAME,
    POSITION_PL_COLUMNS,
    TRANSACTION_COLUMNS,
    LedgerNotFoundError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Interfaces
# =============================================================================

class PortfolioStore(ABC):
    """
    Abstract base class for read-only ledger access.

    Returned frames follow the conventions in tradestats.data.ledger and
    include the initialization row as their first row.

    Example:
        class MyStore(PortfolioStore):
            def list_symbols(self, portfolio: str) -> List[str]:
                return ["ES"]
    """

    @abstractmethod
    def list_symbols(self, portfolio: str) -> List[str]:
        """
        List the symbols recorded in a portfolio.

        Raises:
            LedgerNotFoundError: If the portfolio is unknown.
        """
        pass

    @abstractmethod
    def get_transactions(self, portfolio: str, symbol: str) -> pd.DataFrame:
        """
        Get the transaction frame for a symbol.

        Raises:
            LedgerNotFoundError: If the portfolio or symbol is unknown.
        """
        pass

    @abstractmethod
    def get_position_pl(self, portfolio: str, symbol: str) -> pd.DataFrame:
        """
        Get the position P&L frame for a symbol.

        Raises:
            LedgerNotFoundError: If the portfolio or symbol is unknown.
        """
        pass


class SymbolMetadata(ABC):
    """Lookup of per-symbol instrument attributes."""

    @abstractmethod
    def get_tick_value(self, symbol: str) -> Optional[float]:
        """Return the currency value of one tick, or None if unknown."""
        pass


# =============================================================================
# Implementations
# =============================================================================

class InMemoryPortfolioStore(PortfolioStore):
    """
    Portfolio store backed by in-memory frames.

    Symbols keep their insertion order, which is the order list_symbols()
    returns them in.
    """

    def __init__(self) -> None:
        self._portfolios: Dict[str, Dict[str, Tuple[pd.DataFrame, pd.DataFrame]]] = {}

    def add_symbol(
        self,
        portfolio: str,
        symbol: str,
        txns: pd.DataFrame,
        position_pl: pd.DataFrame,
    ) -> None:
        """Register the ledger frames for a portfolio/symbol pair."""
        self._portfolios.setdefault(portfolio, {})[symbol] = (txns, position_pl)
        logger.debug(f"Registered {portfolio}/{symbol} ({len(txns)} txn rows)")

    def list_symbols(self, portfolio: str) -> List[str]:
        if portfolio not in self._portfolios:
            raise LedgerNotFoundError(f"Portfolio not found: {portfolio}")
        return list(self._portfolios[portfolio].keys())

    def _get(self, portfolio: str, symbol: str) -> Tuple[pd.DataFrame, pd.DataFrame]:
        symbols = self._portfolios.get(portfolio)
        if symbols is None:
            raise LedgerNotFoundError(f"Portfolio not found: {portfolio}")
        if symbol not in symbols:
            raise LedgerNotFoundError(f"Symbol {symbol} not found in portfolio {portfolio}")
        return symbols[symbol]

    def get_transactions(self, portfolio: str, symbol: str) -> pd.DataFrame:
        return self._get(portfolio, symbol)[0]

    def get_position_pl(self, portfolio: str, symbol: str) -> pd.DataFrame:
        return self._get(portfolio, symbol)[1]


class CSVPortfolioStore(PortfolioStore):
    """
    Portfolio store reading ledger frames from CSV files.

    Expects one directory per portfolio:
        root_directory/
            demo/
                ES.txn.csv
                ES.posPL.csv
                NQ.txn.csv
                NQ.posPL.csv

    Each CSV has a 'timestamp' column plus the ledger columns. The first data
    row is the initialization row.

    Attributes:
        root_directory: Directory holding one subdirectory per portfolio
        use_cache: Whether parsed frames are kept in memory
    """

    TXN_SUFFIX = ".txn.csv"
    POSITION_PL_SUFFIX = ".posPL.csv"

    def __init__(
        self,
        root_directory: Optional[Union[str, Path]] = None,
        use_cache: bool = True,
    ):
        """
        Initialize CSV portfolio store.

        Args:
            root_directory: Directory holding one subdirectory per portfolio.
                            Defaults to the environment's ledger_directory.
            use_cache: Whether to cache loaded frames in memory
        """
        if root_directory is None:
            root_directory = get_settings().ledger_directory
            if root_directory is None:
                raise LedgerNotFoundError(
                    "No root_directory given and no ledger_directory configured"
                )
        self.root_directory = Path(root_directory).resolve()
        self.use_cache = use_cache
        self._cache: Dict[str, pd.DataFrame] = {}

    def _portfolio_dir(self, portfolio: str) -> Path:
        path = self.root_directory / portfolio
        if not path.is_dir():
            raise LedgerNotFoundError(f"Portfolio directory not found: {path}")
        return path

    def list_symbols(self, portfolio: str) -> List[str]:
        directory = self._portfolio_dir(portfolio)
        symbols = [
            p.name[: -len(self.TXN_SUFFIX)]
            for p in directory.glob(f"*{self.TXN_SUFFIX}")
        ]
        return sorted(symbols)

    def _load_csv(self, file_path: Path, columns: List[str]) -> pd.DataFrame:
        """Load and normalize a ledger CSV file."""
        cache_key = str(file_path)

        if self.use_cache and cache_key in self._cache:
            return self._cache[cache_key].copy()

        if not file_path.exists():
            raise LedgerNotFoundError(f"Ledger file not found: {file_path}")

        df = pd.read_csv(file_path)
        df.columns = df.columns.str.strip()

        if INDEX_NAME not in df.columns:
            raise LedgerNotFoundError(
                f"Ledger file {file_path} has no '{INDEX_NAME}' column"
            )

        df[INDEX_NAME] = pd.to_datetime(df[INDEX_NAME])
        df = df.set_index(INDEX_NAME)

        missing = set(columns) - set(df.columns)
        if missing:
            logger.warning(f"Ledger file {file_path.name} missing columns: {missing}")

        if self.use_cache:
            self._cache[cache_key] = df.copy()

        return df

    def get_transactions(self, portfolio: str, symbol: str) -> pd.DataFrame:
        path = self._portfolio_dir(portfolio) / f"{symbol}{self.TXN_SUFFIX}"
        return self._load_csv(path, TRANSACTION_COLUMNS)

    def get_position_pl(self, portfolio: str, symbol: str) -> pd.DataFrame:
        path = self._portfolio_dir(portfolio) / f"{symbol}{self.POSITION_PL_SUFFIX}"
        return self._load_csv(path, POSITION_PL_COLUMNS)


class StaticSymbolMetadata(SymbolMetadata):
    """Tick values from a fixed mapping."""

    def __init__(self, tick_values: Optional[Mapping[str, float]] = None):
        self._tick_values = dict(tick_values or {})

    def get_tick_value(self, symbol: str) -> Optional[float]:
        value = self._tick_values.get(symbol)
        if value is None or not np.isfinite(value):
            return None
        return float(value)
