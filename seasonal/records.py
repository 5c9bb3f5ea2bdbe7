"""Load and validate monthly donation records.

The dashboards read a long-format table with one row per
``(month, type)`` pair and a count column ``n``.  Rows are validated at
this boundary so the aggregation and layout code can rely on clean
values:

* ``month`` must parse as a date and is normalised to the first of its
  month.
* ``type`` must be one of the configured categories.
* ``n`` must be a non-negative whole number.

Rows failing any check are skipped and reported through ``logging``
rather than aborting the load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .config import (
    CATEGORY_COLUMNS,
    CATEGORY_ORDER,
    COUNT_COLUMNS,
    DEFAULT_SEP,
    MONTH_COLUMNS,
)

logger = logging.getLogger(__name__)

RECORD_COLUMNS: List[str] = ["month", "category", "count"]


@dataclass(frozen=True)
class Record:
    """One monthly count for a single clothing category."""

    month: pd.Timestamp
    category: str
    count: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def ensure_columns(df: pd.DataFrame, required: List[str]) -> None:
    """Raise an error if the DataFrame lacks any of the required columns."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise KeyError(f"Missing expected columns: {missing}")


def _pick_column(df: pd.DataFrame, candidates: Sequence[str]) -> str:
    for name in candidates:
        if name in df.columns:
            return name
    raise KeyError(f"Missing expected columns: one of {list(candidates)}")


def empty_frame() -> pd.DataFrame:
    """Return an empty record frame with the expected dtypes."""
    return pd.DataFrame(
        {
            "month": pd.Series(dtype="datetime64[ns]"),
            "category": pd.Series(dtype="object"),
            "count": pd.Series(dtype="int64"),
        }
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def clean_records(
    raw: pd.DataFrame, *, categories: Optional[Iterable[str]] = None
) -> pd.DataFrame:
    """Validate a raw table and return it in canonical record form.

    Parameters
    ----------
    raw : pd.DataFrame
        Table with a month column, a ``type``/``category`` column and an
        ``n``/``count`` column.
    categories : Iterable[str], optional
        Allowed category names; defaults to ``CATEGORY_ORDER``.

    Returns
    -------
    pd.DataFrame
        Columns ``month`` (first-of-month timestamps), ``category`` and
        ``count`` (int64).  Malformed rows are dropped.
    """
    month_col = _pick_column(raw, MONTH_COLUMNS)
    category_col = _pick_column(raw, CATEGORY_COLUMNS)
    count_col = _pick_column(raw, COUNT_COLUMNS)

    if raw.empty:
        return empty_frame()

    allowed = set(categories if categories is not None else CATEGORY_ORDER)

    month = pd.to_datetime(raw[month_col], errors="coerce")
    category = raw[category_col].astype("string").str.strip()
    count = pd.to_numeric(raw[count_col], errors="coerce")

    bad_month = month.isna()
    bad_category = ~category.isin(allowed).fillna(False).astype(bool)
    bad_count = count.isna() | (count < 0) | (count % 1 != 0)

    drop = bad_month | bad_category | bad_count
    if drop.any():
        logger.warning(
            "Skipping %d malformed row(s): %d bad month, %d unknown category, "
            "%d bad count",
            int(drop.sum()),
            int(bad_month.sum()),
            int(bad_category.sum()),
            int(bad_count.sum()),
        )

    keep = ~drop
    df = pd.DataFrame(
        {
            "month": month[keep].dt.to_period("M").dt.to_timestamp(),
            "category": category[keep].astype(str),
            "count": count[keep].astype("int64"),
        }
    )
    return df.reset_index(drop=True)


def load_records_frame(
    source: str | Path, sep: str = DEFAULT_SEP
) -> pd.DataFrame:
    """Read the monthly CSV and return the validated record frame."""
    raw = pd.read_csv(source, sep=sep)
    df = clean_records(raw)
    logger.info("Loaded %d record(s) from %s", len(df), source)
    return df


# ---------------------------------------------------------------------------
# Record conversion
# ---------------------------------------------------------------------------


def frame_to_records(df: pd.DataFrame) -> List[Record]:
    """Convert a validated record frame into ``Record`` values."""
    ensure_columns(df, RECORD_COLUMNS)
    return [
        Record(month=pd.Timestamp(m), category=str(c), count=int(n))
        for m, c, n in zip(df["month"], df["category"], df["count"])
    ]


def records_to_frame(records: Iterable[Record]) -> pd.DataFrame:
    """Convert ``Record`` values into a record frame."""
    rows = [
        {"month": r.month, "category": r.category, "count": r.count}
        for r in records
    ]
    if not rows:
        return empty_frame()
    df = pd.DataFrame(rows, columns=RECORD_COLUMNS)
    df["month"] = pd.to_datetime(df["month"])
    return df


def load_records(source: str | Path, sep: str = DEFAULT_SEP) -> List[Record]:
    """Read the monthly CSV into a list of validated ``Record`` values."""
    return frame_to_records(load_records_frame(source, sep=sep))
