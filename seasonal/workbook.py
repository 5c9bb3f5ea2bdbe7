"""Minimal xlsx reader for the visit-level donation workbook.

The workbook is parsed straight from its zip/XML parts, so no Excel
engine is needed.  Cell values come back as strings; dates are left as
Excel serial numbers and converted by :func:`excel_serial_to_datetime`.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from io import BytesIO
from pathlib import Path
from typing import Dict, List
from zipfile import ZipFile

import pandas as pd
import requests

logger = logging.getLogger(__name__)

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
DOC_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

# Day zero of the 1900 date system (accounts for the 1900 leap-year bug)
EXCEL_EPOCH = "1899-12-30"


def resolve_workbook_stream(source: str | Path) -> BytesIO | Path:
    """
    Return a file-like object (for URLs) or Path (for local files) for the workbook.
    """
    source_str = str(source)
    if source_str.lower().startswith(("http://", "https://")):
        logger.info("Downloading workbook from %s", source_str)
        response = requests.get(source_str, timeout=30)
        response.raise_for_status()
        return BytesIO(response.content)

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Workbook not found at {path}")
    return path


def _shared_strings(zf: ZipFile) -> List[str]:
    """Shared-string table; rich-text runs are joined into one string."""
    if "xl/sharedStrings.xml" not in zf.namelist():
        return []
    table = ET.fromstring(zf.read("xl/sharedStrings.xml"))
    return [
        "".join(run.text or "" for run in item.iter(f"{{{MAIN_NS}}}t"))
        for item in table.iterfind(f"{{{MAIN_NS}}}si")
    ]


def _sheet_targets(zf: ZipFile) -> Dict[str, str]:
    """Sheet name to worksheet part, in workbook order."""
    rels = ET.fromstring(zf.read("xl/_rels/workbook.xml.rels"))
    targets = {
        rel.get("Id"): rel.get("Target", "").lstrip("/")
        for rel in rels.iterfind(f"{{{REL_NS}}}Relationship")
    }

    book = ET.fromstring(zf.read("xl/workbook.xml"))
    sheets: Dict[str, str] = {}
    for node in book.iterfind(f"{{{MAIN_NS}}}sheets/{{{MAIN_NS}}}sheet"):
        part = targets[node.get(f"{{{DOC_REL_NS}}}id")]
        sheets[node.get("name")] = part if part.startswith("xl/") else f"xl/{part}"
    return sheets


def _column_index(ref: str) -> int:
    """Zero-based column of a cell reference such as ``AA3``."""
    index = 0
    for letter in ref.rstrip("0123456789").upper():
        index = index * 26 + ord(letter) - 64
    return index - 1


def _cell_text(cell: ET.Element, shared: List[str]) -> str:
    if cell.get("t") == "inlineStr":
        return "".join(run.text or "" for run in cell.iter(f"{{{MAIN_NS}}}t"))

    raw = cell.findtext(f"{{{MAIN_NS}}}v")
    if raw is None:
        return ""
    if cell.get("t") != "s":
        return raw
    if raw.isdigit() and int(raw) < len(shared):
        return shared[int(raw)]
    logger.warning("Unresolved shared string index %r", raw)
    return raw


def _worksheet_rows(zf: ZipFile, part: str, shared: List[str]) -> List[List[str]]:
    """Rows of a worksheet as string lists, padded where cells are skipped."""
    sheet = ET.fromstring(zf.read(part))
    rows: List[List[str]] = []
    for row in sheet.iter(f"{{{MAIN_NS}}}row"):
        values: Dict[int, str] = {}
        for position, cell in enumerate(row.iterfind(f"{{{MAIN_NS}}}c")):
            ref = cell.get("r")
            values[_column_index(ref) if ref else position] = _cell_text(cell, shared)
        if values:
            rows.append([values.get(i, "") for i in range(max(values) + 1)])
    return rows


def read_sheet(source: str | Path, sheet: str | None = None) -> pd.DataFrame:
    """Read one worksheet into a DataFrame of strings.

    The first row holding any non-empty cell is used as the header.

    Parameters
    ----------
    source : str or Path
        Local path or HTTP(S) URL of an ``.xlsx`` file.
    sheet : str, optional
        Sheet name; defaults to the first sheet in the workbook.

    Raises
    ------
    KeyError
        If ``sheet`` is not in the workbook.
    """
    stream = resolve_workbook_stream(source)
    with ZipFile(stream) as zf:
        shared = _shared_strings(zf)
        paths = _sheet_targets(zf)
        if not paths:
            return pd.DataFrame()
        name = sheet if sheet is not None else next(iter(paths))
        if name not in paths:
            raise KeyError(f"Sheet {name!r} not found; available: {list(paths)}")
        rows = _worksheet_rows(zf, paths[name], shared)

    rows = [r for r in rows if any(str(v).strip() for v in r)]
    if not rows:
        return pd.DataFrame()

    header, body = rows[0], rows[1:]
    width = max(len(header), *(len(r) for r in body)) if body else len(header)
    header = header + [""] * (width - len(header))
    columns = [h if h else f"column_{i}" for i, h in enumerate(header)]
    data = [r + [""] * (width - len(r)) for r in body]
    logger.info("Read %d row(s) from sheet %r", len(data), name)
    return pd.DataFrame(data, columns=columns)


def excel_serial_to_datetime(values: pd.Series) -> pd.Series:
    """Convert Excel serial day numbers (or date strings) to timestamps.

    Numeric values are treated as days since the 1900-system epoch;
    anything else is parsed as a date string.  Unparseable entries
    become ``NaT``.
    """
    numeric = pd.to_numeric(values, errors="coerce")
    from_serial = pd.to_datetime(numeric, unit="D", origin=EXCEL_EPOCH, errors="coerce")
    from_text = pd.to_datetime(values.where(numeric.isna()), errors="coerce")
    return from_serial.fillna(from_text)
