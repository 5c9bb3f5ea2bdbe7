"""
Monthly export: turn the visit-level donation workbook into seasonal.csv.

Each row of the source sheet is one visit with a date, demographic
fields and one count column per clothing type (``tops`` through
``accessories`` after name cleaning).  The export melts those columns
to long format, drops visits on or after the cutoff date, floors dates
to the month and sums counts per (month, type).  The result is the
``month,type,n`` table both dashboards read.
"""

import argparse
import logging
import re
from pathlib import Path
from typing import List, Tuple

import pandas as pd

from .config import (
    DEFAULT_CUTOFF,
    RAW_DATE_COLUMN,
    RAW_SHEET,
    RAW_TYPE_SPAN,
    RAW_WORKBOOK,
    SEASONAL_CSV,
)
from .data_manager import atomic_to_csv
from .records import ensure_columns
from .workbook import excel_serial_to_datetime, read_sheet

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS: List[str] = ["month", "type", "n"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def clean_name(name: str) -> str:
    """Snake-case a column header (``"Visit Date"`` -> ``"visit_date"``)."""
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", str(name).strip())
    name = re.sub(r"[^0-9a-zA-Z]+", "_", name).strip("_").lower()
    return name or "column"


def clean_names(df: pd.DataFrame) -> pd.DataFrame:
    """Snake-case all headers, de-duplicating repeats with a numeric suffix."""
    seen: dict[str, int] = {}
    names: List[str] = []
    for col in df.columns:
        base = clean_name(col)
        seen[base] = seen.get(base, 0) + 1
        names.append(base if seen[base] == 1 else f"{base}_{seen[base]}")
    out = df.copy()
    out.columns = names
    return out


def type_label(name: str) -> str:
    """``"collared_shirts"`` -> ``"Collared Shirts"``."""
    return name.replace("_", " ").title()


def type_columns(df: pd.DataFrame, span: Tuple[str, str] = RAW_TYPE_SPAN) -> List[str]:
    """Return the inclusive run of columns between ``span[0]`` and ``span[1]``."""
    first, last = span
    ensure_columns(df, [first, last])
    cols = list(df.columns)
    start, stop = cols.index(first), cols.index(last)
    if start > stop:
        raise ValueError(f"Type column {first!r} must come before {last!r}.")
    return cols[start : stop + 1]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_visits(source: str | Path, sheet: str | None = RAW_SHEET) -> pd.DataFrame:
    """Read the raw visit sheet from an ``.xlsx`` workbook or a CSV file."""
    source_str = str(source)
    if source_str.lower().endswith(".csv"):
        raw = pd.read_csv(source, dtype=str, keep_default_na=False)
    else:
        raw = read_sheet(source, sheet)
    return clean_names(raw)


# ---------------------------------------------------------------------------
# Transformation
# ---------------------------------------------------------------------------


def visits_to_monthly(
    visits: pd.DataFrame,
    *,
    date_col: str = RAW_DATE_COLUMN,
    span: Tuple[str, str] = RAW_TYPE_SPAN,
    cutoff: str | None = DEFAULT_CUTOFF,
) -> pd.DataFrame:
    """Aggregate visit-level counts to monthly totals per clothing type.

    Parameters
    ----------
    visits : pd.DataFrame
        Visit rows with cleaned column names.
    date_col : str, optional
        Visit date column; Excel serial numbers and date strings are both
        accepted.
    span : Tuple[str, str], optional
        First and last (inclusive) per-type count columns.
    cutoff : str, optional
        Visits on or after this date are dropped; ``None`` keeps all.

    Returns
    -------
    pd.DataFrame
        Columns ``month`` (``YYYY-MM-DD``, first of month), ``type`` and
        ``n``, sorted by month then type.
    """
    ensure_columns(visits, [date_col])
    types = type_columns(visits, span)

    df = visits[[date_col, *types]].copy()
    df["date"] = excel_serial_to_datetime(df[date_col])
    undated = int(df["date"].isna().sum())
    if undated:
        logger.warning("Dropping %d visit(s) with an unparseable date", undated)
    df = df.dropna(subset=["date"])

    if cutoff is not None:
        df = df[df["date"] < pd.Timestamp(cutoff)]

    long = df.melt(
        id_vars=["date"], value_vars=types, var_name="type", value_name="n"
    )
    long["n"] = pd.to_numeric(long["n"], errors="coerce").fillna(0)
    long["month"] = long["date"].dt.to_period("M").dt.to_timestamp()
    long["type"] = long["type"].map(type_label)

    monthly = (
        long.groupby(["month", "type"], as_index=False)["n"]
        .sum()
        .sort_values(["month", "type"])
        .reset_index(drop=True)
    )
    monthly["n"] = monthly["n"].round().astype("int64")
    monthly["month"] = monthly["month"].dt.strftime("%Y-%m-%d")
    return monthly[OUTPUT_COLUMNS]


def run_export(
    source: str | Path = RAW_WORKBOOK,
    output: str | Path = SEASONAL_CSV,
    *,
    sheet: str | None = RAW_SHEET,
    cutoff: str | None = DEFAULT_CUTOFF,
) -> pd.DataFrame:
    """Read the workbook, aggregate by month and write the CSV."""
    visits = load_visits(source, sheet)
    if visits.empty:
        raise ValueError(f"No visit rows found in {source}.")
    monthly = visits_to_monthly(visits, cutoff=cutoff)
    atomic_to_csv(monthly, Path(output))
    logger.info("Wrote %d monthly row(s) to %s", len(monthly), output)
    return monthly


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Aggregate visit-level clothing donations into the monthly "
            "month,type,n table used by the dashboards."
        )
    )
    parser.add_argument(
        "--source",
        default=str(RAW_WORKBOOK),
        help="Path or URL to the visit workbook (.xlsx) or a CSV export.",
    )
    parser.add_argument(
        "--sheet",
        default=RAW_SHEET,
        help=f"Worksheet holding the visits (default: '{RAW_SHEET}').",
    )
    parser.add_argument(
        "--cutoff",
        default=DEFAULT_CUTOFF,
        help=f"Drop visits on or after this date (default: {DEFAULT_CUTOFF}).",
    )
    parser.add_argument(
        "--output",
        default=str(SEASONAL_CSV),
        help="Where to write the monthly CSV (default: data/seasonal.csv).",
    )
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    monthly = run_export(
        args.source, args.output, sheet=args.sheet, cutoff=args.cutoff
    )

    months = monthly["month"].nunique()
    print("\n--- MONTHLY EXPORT COMPLETE ---")
    print(f"Months: {months} | Rows: {len(monthly)} | Items: {int(monthly['n'].sum())}")
    print(f"Saved output to {args.output}")
    print(monthly.head(10))


if __name__ == "__main__":
    main()
