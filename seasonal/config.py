"""
Configuration constants for the seasonal donation dashboards.
"""

from pathlib import Path
from typing import Dict, List, Literal, Tuple

# ======================================================
#  DATA SOURCES / CONSTANTS
# ======================================================
REPO_ROOT: Path = Path(__file__).resolve().parent.parent

# Monthly long-format export read by both dashboards
SEASONAL_CSV: Path = REPO_ROOT / "data" / "seasonal.csv"

DEFAULT_SEP: str = ","

# Accepted spellings for each input column (first match wins)
MONTH_COLUMNS: List[str] = ["month"]
CATEGORY_COLUMNS: List[str] = ["type", "category"]
COUNT_COLUMNS: List[str] = ["n", "count"]

# Canonical display order (waffle stacking, tie-breaks on equal totals)
CATEGORY_ORDER: List[str] = [
    "Tops",
    "Pants",
    "Sweaters",
    "Dresses",
    "Collared Shirts",
    "Accessories",
    "Skirts",
    "Outerwear",
    "Shorts",
    "Shoes",
]

CATEGORY_COLORS: Dict[str, str] = {
    "Tops": "#4e79a7",
    "Pants": "#f28e2b",
    "Sweaters": "#e15759",
    "Dresses": "#76b7b2",
    "Collared Shirts": "#59a14f",
    "Accessories": "#edc948",
    "Skirts": "#b07aa1",
    "Outerwear": "#ff9da7",
    "Shorts": "#9c755f",
    "Shoes": "#bab0ac",
}

FALLBACK_COLOR: str = "#999999"

# ======================================================
#  WAFFLE
# ======================================================
UNIT: int = 10  # items per square
WAFFLE_COLUMNS: int = 3

CELL_SIZE: int = 16
CELL_GAP: int = 2

# ======================================================
#  STREAM
# ======================================================
StreamOrder = Literal["total", "inside_out"]
DEFAULT_STREAM_ORDER: StreamOrder = "total"

STREAM_WIDTH: int = 520
STREAM_HEIGHT: int = 440

# ======================================================
#  EMPHASIS (opacity) VALUES
# ======================================================
CELL_OPACITY_IDLE: float = 0.85
CELL_OPACITY_CATEGORY_ON: float = 0.95
CELL_OPACITY_CATEGORY_OFF: float = 0.1
CELL_OPACITY_MONTH_ON: float = 0.9
CELL_OPACITY_MONTH_OFF: float = 0.15

LABEL_OPACITY_ON: float = 1.0
MONTH_LABEL_OPACITY_OFF: float = 0.3
BAR_LABEL_OPACITY_OFF: float = 0.35

BAR_OPACITY_ON: float = 0.85
BAR_OPACITY_OFF: float = 0.15

BAND_OPACITY_ON: float = 0.85
BAND_OPACITY_OFF: float = 0.12

# ======================================================
#  ANNOTATIONS
# ======================================================
# (text, color, category, month indices into the sorted month list)
ANNOTATION_SPECS: List[Tuple[str, str, str | None, Tuple[int, ...]]] = [
    ("Sweaters peak in the cold months", CATEGORY_COLORS["Sweaters"], "Sweaters", ()),
    ("Tops are the most popular year-round", CATEGORY_COLORS["Tops"], "Tops", ()),
    ("Things slow down during breaks", "#333", None, (2, 4, 5, 6)),
    ("September back-to-school rush", "#333", None, (8,)),
]

# ======================================================
#  PREPARATION (visit-level workbook -> seasonal.csv)
# ======================================================
RAW_WORKBOOK: Path = REPO_ROOT / "data" / "loop-data-ldw-2026.xlsx"
RAW_SHEET: str = "Data (Jan-Oct 25)"
RAW_DATE_COLUMN: str = "visit_date"
# First and last wide type column (inclusive) after name cleaning
RAW_TYPE_SPAN: Tuple[str, str] = ("tops", "accessories")
DEFAULT_CUTOFF: str = "2025-10-01"
