"""Shared aggregation of monthly donation records.

Both dashboards start from the same grouped view of the data: the
sorted months, the categories ranked by total, and a wide month ×
category table of summed counts.  :func:`aggregate_records` builds that
view once so the waffle and stream layouts never regroup the raw rows
themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

import pandas as pd

from .config import CATEGORY_ORDER
from .records import RECORD_COLUMNS, Record, ensure_columns, records_to_frame


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: int


@dataclass(frozen=True, eq=False)
class Aggregation:
    """Grouped view of the records.

    Attributes
    ----------
    months : List[pd.Timestamp]
        Distinct months in ascending order.
    categories : List[str]
        Distinct categories, descending by total; equal totals keep the
        canonical category order.
    counts : pd.DataFrame
        Wide table indexed by month with one column per category (in
        ``categories`` order).  Pairs missing from the input are 0.
    totals : List[CategoryTotal]
        Per-category totals in ``categories`` order.
    """

    months: List[pd.Timestamp] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    counts: pd.DataFrame = field(default_factory=pd.DataFrame)
    totals: List[CategoryTotal] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.months

    def count(self, month: pd.Timestamp, category: str) -> int:
        """Summed count for one (month, category) pair; 0 when absent."""
        month = pd.Timestamp(month)
        if month not in self.counts.index or category not in self.counts.columns:
            return 0
        return int(self.counts.at[month, category])

    def month_totals(self) -> pd.Series:
        """Sum across categories for each month."""
        if self.is_empty:
            return pd.Series(dtype="int64")
        return self.counts.sum(axis=1)

    def total_for(self, category: str) -> int:
        for item in self.totals:
            if item.category == category:
                return item.total
        return 0


def category_rank(
    totals: pd.Series, canonical: Sequence[str] = CATEGORY_ORDER
) -> List[str]:
    """Order categories by descending total, ties by canonical position.

    Categories outside ``canonical`` sort after every canonical one with
    the same total, alphabetically among themselves.
    """
    position = {name: i for i, name in enumerate(canonical)}
    fallback = len(position)

    def key(name: str):
        return (-int(totals[name]), position.get(name, fallback), name)

    return sorted(totals.index, key=key)


def aggregate_records(
    records: Iterable[Record] | pd.DataFrame,
    canonical: Sequence[str] = CATEGORY_ORDER,
) -> Aggregation:
    """Group records by month and category.

    Parameters
    ----------
    records : Iterable[Record] or pd.DataFrame
        ``Record`` values, or a frame with ``month``, ``category`` and
        ``count`` columns.
    canonical : Sequence[str], optional
        Category order used to break ties between equal totals.

    Returns
    -------
    Aggregation
        An empty ``Aggregation`` for empty input.

    Raises
    ------
    ValueError
        If any record carries a negative count.
    """
    if isinstance(records, pd.DataFrame):
        df = records
        ensure_columns(df, RECORD_COLUMNS)
    else:
        df = records_to_frame(records)

    if df.empty:
        return Aggregation()

    if (df["count"] < 0).any():
        raise ValueError("Record counts must be non-negative.")

    df = df.assign(month=pd.to_datetime(df["month"]))

    # Duplicate (month, category) rows are summed
    counts = df.pivot_table(
        index="month",
        columns="category",
        values="count",
        aggfunc="sum",
        fill_value=0,
    ).sort_index()

    totals = counts.sum(axis=0)
    categories = category_rank(totals, canonical)
    counts = counts[categories].astype("int64")
    counts.columns.name = None

    return Aggregation(
        months=list(counts.index),
        categories=categories,
        counts=counts,
        totals=[CategoryTotal(c, int(totals[c])) for c in categories],
    )
