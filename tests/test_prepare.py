"""Tests for the monthly export."""

import pandas as pd
import pytest

from seasonal.prepare import (
    clean_name,
    clean_names,
    main,
    run_export,
    type_columns,
    type_label,
    visits_to_monthly,
)
from seasonal.records import load_records_frame

VISITS_CSV = (
    "Visit Date,Demographics,Tops,Pants,Collared Shirts,Accessories,Notes\n"
    "2025-01-03,Undergraduate,4,1,,2,x\n"
    "2025-01-20,Graduate,6,,3,0,\n"
    "2025-02-11,Staff,2,2,1,1,\n"
    "2025-10-02,Undergraduate,9,9,9,9,late\n"
    "bad date,Graduate,5,5,5,5,\n"
)


@pytest.fixture
def visits():
    df = pd.DataFrame(
        {
            "visit_date": ["2025-01-03", "2025-01-20", "2025-02-11", "2025-10-02"],
            "tops": ["4", "6", "2", "9"],
            "pants": ["1", "", "2", "9"],
            "collared_shirts": ["", "3", "1", "9"],
            "accessories": ["2", "0", "1", "9"],
        }
    )
    return df


class TestNames:
    def test_clean_name(self):
        assert clean_name("Visit Date") == "visit_date"
        assert clean_name("Collared Shirts") == "collared_shirts"
        assert clean_name("VisitDate") == "visit_date"
        assert clean_name("  ") == "column"

    def test_clean_names_deduplicates(self):
        df = pd.DataFrame([[1, 2]], columns=["Tops", "tops"])
        assert list(clean_names(df).columns) == ["tops", "tops_2"]

    def test_type_label(self):
        assert type_label("collared_shirts") == "Collared Shirts"
        assert type_label("tops") == "Tops"

    def test_type_columns_span(self, visits):
        assert type_columns(visits) == ["tops", "pants", "collared_shirts", "accessories"]

    def test_type_columns_missing(self):
        with pytest.raises(KeyError):
            type_columns(pd.DataFrame(columns=["tops"]))


class TestVisitsToMonthly:
    """Test aggregation of visits to monthly totals."""

    def test_monthly_totals(self, visits):
        monthly = visits_to_monthly(visits)
        assert list(monthly.columns) == ["month", "type", "n"]
        jan = monthly[monthly["month"] == "2025-01-01"].set_index("type")["n"]
        assert jan.to_dict() == {
            "Accessories": 2,
            "Collared Shirts": 3,
            "Pants": 1,
            "Tops": 10,
        }

    def test_cutoff_drops_late_visits(self, visits):
        monthly = visits_to_monthly(visits)
        assert "2025-10-01" not in set(monthly["month"])
        assert set(monthly["month"]) == {"2025-01-01", "2025-02-01"}

    def test_no_cutoff(self, visits):
        monthly = visits_to_monthly(visits, cutoff=None)
        assert "2025-10-01" in set(monthly["month"])

    def test_zero_rows_are_kept(self, visits):
        """Test that months emit a row for every type, even when zero."""
        monthly = visits_to_monthly(visits)
        assert len(monthly) == 2 * 4

    def test_excel_serial_dates(self, visits):
        visits = visits.assign(visit_date=["45660", "45677", "45699", "45932"])
        monthly = visits_to_monthly(visits)
        assert set(monthly["month"]) == {"2025-01-01", "2025-02-01"}


class TestRunExport:
    """Test the end-to-end export from a CSV source."""

    def test_csv_source(self, tmp_path):
        source = tmp_path / "visits.csv"
        source.write_text(VISITS_CSV, encoding="utf-8")
        output = tmp_path / "out" / "seasonal.csv"

        monthly = run_export(source, output)

        assert output.exists()
        assert monthly["n"].sum() == 4 + 1 + 2 + 6 + 3 + 0 + 2 + 2 + 1 + 1
        records = load_records_frame(output)
        assert len(records) == len(monthly)
        assert set(records["category"]) == {"Tops", "Pants", "Collared Shirts", "Accessories"}

    def test_empty_source(self, tmp_path):
        source = tmp_path / "visits.csv"
        source.write_text("Visit Date,Tops,Accessories\n", encoding="utf-8")
        with pytest.raises(ValueError):
            run_export(source, tmp_path / "seasonal.csv")

    def test_main(self, tmp_path, capsys):
        source = tmp_path / "visits.csv"
        source.write_text(VISITS_CSV, encoding="utf-8")
        output = tmp_path / "seasonal.csv"

        main(["--source", str(source), "--output", str(output)])

        assert output.exists()
        assert "MONTHLY EXPORT COMPLETE" in capsys.readouterr().out
