"""
Diagnostics for Non-Fatal Anomalies

Per-symbol problems (an empty P&L series, missing equity rows, totals that
do not reconcile) never abort a batch. They are reported as structured
Diagnostic events to a DiagnosticSink.

Usage:
    sink = LoggingDiagnosticSink()
    engine = TradeStatsEngine(store, sink=sink)
    engine.trade_stats(["demo"])
    for event in sink.events:
        print(event.kind, event.symbol, event.message)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    """Categories of non-fatal anomalies."""

    EMPTY_SERIES = "empty_series"
    MISSING_EQUITY_ROWS = "missing_equity_rows"
    RECONCILIATION_MISMATCH = "reconciliation_mismatch"
    INVALID_LEDGER = "invalid_ledger"
    LEDGER_NOT_FOUND = "ledger_not_found"


@dataclass(frozen=True)
class Diagnostic:
    """A single anomaly attributed to a portfolio/symbol pair."""

    kind: DiagnosticKind
    message: str
    portfolio: Optional[str] = None
    symbol: Optional[str] = None
    values: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        where = "/".join(p for p in (self.portfolio, self.symbol) if p)
        return f"[{self.kind.value}] {where}: {self.message}" if where else (
            f"[{self.kind.value}] {self.message}"
        )


class DiagnosticSink(ABC):
    """Receiver for diagnostics. Implementations must not raise."""

    @abstractmethod
    def report(self, diagnostic: Diagnostic) -> None:
        pass


class LoggingDiagnosticSink(DiagnosticSink):
    """
    Sink that logs each diagnostic at WARNING and keeps it in memory.

    Attributes:
        events: Diagnostics in the order they were reported
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self.events: List[Diagnostic] = []
        self._log = log or logger

    def report(self, diagnostic: Diagnostic) -> None:
        self.events.append(diagnostic)
        self._log.warning(str(diagnostic))

    def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        """Return the recorded diagnostics of one kind."""
        return [e for e in self.events if e.kind == kind]

    def clear(self) -> None:
        self.events.clear()
