"""Data manager for loading the monthly donation table.

Both dashboards read the same ``seasonal.csv``.  Loading is memoized on
the file path and its modification time, so every session of a running
app shares one parsed copy until the file is regenerated by
``seasonal.prepare``.  Writes go through :func:`atomic_to_csv` so a
dashboard never sees a half-written export.
"""

import logging
from functools import lru_cache
from pathlib import Path

import pandas as pd

from .config import DEFAULT_SEP, SEASONAL_CSV
from .records import load_records_frame

logger = logging.getLogger(__name__)


def atomic_to_csv(df: pd.DataFrame, path: Path) -> None:
    """Write a DataFrame to CSV atomically.

    The CSV is first written to a temporary file in the same directory
    and then renamed to the final location.  This avoids leaving a
    partially written file if the process is interrupted mid-write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    df.to_csv(tmp_path, index=False)
    tmp_path.replace(path)


@lru_cache(maxsize=4)
def _read_dataset(path: Path, mtime_ns: int, sep: str) -> pd.DataFrame:
    """Parse and validate the CSV; cached per (path, mtime)."""
    return load_records_frame(path, sep=sep)


def load_dataset(
    source: str | Path = SEASONAL_CSV,
    *,
    sep: str = DEFAULT_SEP,
    force_reload: bool = False,
) -> pd.DataFrame:
    """
    Load the validated record frame, reusing the cached copy when possible.

    Parameters
    ----------
    source : str or Path, optional
        CSV path; defaults to ``data/seasonal.csv`` at the repository root.
    sep : str, optional
        Column delimiter.
    force_reload : bool, optional
        If ``True``, drop cached frames and re-read the file.

    Returns
    -------
    pd.DataFrame
        Columns ``month``, ``category`` and ``count``.  Callers receive a
        copy and may modify it freely.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    """
    path = Path(source).expanduser().resolve()
    if not path.exists():
        logger.error("Data file not found: %s", path)
        raise FileNotFoundError(f"Data file not found at {path}")

    if force_reload:
        _read_dataset.cache_clear()

    mtime_ns = path.stat().st_mtime_ns
    logger.info("Loading donation records from %s", path)
    return _read_dataset(path, mtime_ns, sep).copy()
