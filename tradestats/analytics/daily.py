"""
Daily Aggregation of Event-Level P&L

Collapses irregularly timed P&L events into one value per calendar day and
aligns several symbols into a single date-keyed table.

Usage:
    from tradestats.analytics.daily import DailyAggregator

    es = DailyAggregator.aggregate_daily(txns['net_txn_realized_pl'])
    nq = DailyAggregator.aggregate_daily(other['net_txn_realized_pl'])
    table = DailyAggregator.combine({'ES': es, 'NQ': nq})
    total = DailyAggregator.total_by_day(table)
"""

import logging
from typing import Mapping

import pandas as pd

from tradestats.analytics.metrics import EmptySeriesError

logger = logging.getLogger(__name__)

DATE_INDEX_NAME = "date"
TOTAL_COLUMN = "total"


class DailyAggregator:
    """Per-day summation of P&L series."""

    @staticmethod
    def aggregate_daily(
        series: pd.Series,
        include_zero_values: bool = False
    ) -> pd.Series:
        """
        Sum a timestamped P&L series per calendar day.

        Exactly-zero rows are dropped before summation unless
        include_zero_values is True, so a day holding only zero events
        disappears from the result instead of becoming a zero row.

        Args:
            series: P&L values indexed by timestamp
            include_zero_values: Keep zero-valued rows in the daily sums

        Returns:
            Series indexed by normalized date, one entry per day with data

        Raises:
            EmptySeriesError: If no rows remain after filtering
        """
        if not include_zero_values:
            series = series[series != 0]

        series = series.dropna()
        if series.empty:
            raise EmptySeriesError("No P&L rows to aggregate")

        index = pd.DatetimeIndex(series.index)
        daily = series.groupby(index.normalize()).sum()
        daily.index = pd.DatetimeIndex(daily.index, name=DATE_INDEX_NAME)
        daily.name = series.name
        return daily

    @staticmethod
    def combine(series_by_column: Mapping[str, pd.Series]) -> pd.DataFrame:
        """
        Align daily series on the union of their dates.

        Dates a column lacks are NaN, never zero.

        Args:
            series_by_column: Daily series keyed by output column name

        Returns:
            DataFrame with one row per date and one column per series
        """
        if not series_by_column:
            return pd.DataFrame(index=pd.DatetimeIndex([], name=DATE_INDEX_NAME))

        table = pd.concat(
            {name: s for name, s in series_by_column.items()}, axis=1, sort=True
        )
        table.index.name = DATE_INDEX_NAME
        return table

    @staticmethod
    def total_by_day(table: pd.DataFrame) -> pd.Series:
        """
        Sum a combined daily table across columns, skipping absent cells.

        Returns:
            Single series named 'total', one entry per date in the table
        """
        total = table.sum(axis=1, skipna=True, min_count=1).dropna()
        total.name = TOTAL_COLUMN
        return total
