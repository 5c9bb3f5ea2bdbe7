"""Shared fixtures for the seasonal dashboard tests."""

import pandas as pd
import pytest

from seasonal.aggregate import aggregate_records
from seasonal.records import Record


def month(value: str) -> pd.Timestamp:
    return pd.Timestamp(value)


@pytest.fixture
def scenario_records() -> list[Record]:
    """Two months: January with Tops and Pants, February with Tops only."""
    return [
        Record(month("2025-01-01"), "Tops", 50),
        Record(month("2025-01-01"), "Pants", 20),
        Record(month("2025-02-01"), "Tops", 10),
    ]


@pytest.fixture
def scenario_agg(scenario_records):
    return aggregate_records(scenario_records)


@pytest.fixture
def season_frame() -> pd.DataFrame:
    """Three months across four categories in record-frame form."""
    rows = [
        ("2025-01-01", "Tops", 112),
        ("2025-01-01", "Pants", 64),
        ("2025-01-01", "Sweaters", 88),
        ("2025-01-01", "Shorts", 2),
        ("2025-02-01", "Tops", 120),
        ("2025-02-01", "Pants", 71),
        ("2025-02-01", "Sweaters", 76),
        ("2025-03-01", "Tops", 58),
        ("2025-03-01", "Pants", 33),
        ("2025-03-01", "Shorts", 3),
    ]
    df = pd.DataFrame(rows, columns=["month", "category", "count"])
    df["month"] = pd.to_datetime(df["month"])
    return df


@pytest.fixture
def season_agg(season_frame):
    return aggregate_records(season_frame)


@pytest.fixture
def seasonal_csv(tmp_path):
    """A small monthly CSV in the dashboard input format."""
    path = tmp_path / "seasonal.csv"
    path.write_text(
        "month,type,n\n"
        "2025-01-01,Tops,50\n"
        "2025-01-01,Pants,20\n"
        "2025-02-01,Tops,10\n",
        encoding="utf-8",
    )
    return path
