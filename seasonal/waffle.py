"""Waffle chart layout: one panel of unit squares per month.

Each square stands for ``unit`` items.  Squares are counted per
category with half-up rounding, so a panel's squares times ``unit``
only approximates the month's true total when a month has many small
categories; ``WafflePanel.total`` keeps the exact count for display.
Squares fill a grid of ``columns`` columns from the bottom row up,
left to right, grouped by category in the canonical display order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import pandas as pd

from .aggregate import Aggregation
from .config import CATEGORY_ORDER, UNIT, WAFFLE_COLUMNS
from .interaction import IDLE, InteractionState, cell_opacity, month_label_opacity


@dataclass(frozen=True)
class WaffleCell:
    row: int  # 0 is the bottom row
    col: int
    category: str
    opacity: float = 1.0


@dataclass(frozen=True)
class WafflePanel:
    month: pd.Timestamp
    cells: List[WaffleCell]
    rows: int
    total: int
    unit_total: int
    breakdown: Dict[str, int] = field(default_factory=dict)
    opacity: float = 1.0


@dataclass(frozen=True)
class WaffleLayout:
    panels: List[WafflePanel] = field(default_factory=list)
    max_rows: int = 0
    columns: int = WAFFLE_COLUMNS
    unit: int = UNIT

    @property
    def is_ready(self) -> bool:
        return bool(self.panels)

    def panel_for(self, month: pd.Timestamp) -> WafflePanel | None:
        month = pd.Timestamp(month)
        for panel in self.panels:
            if panel.month == month:
                return panel
        return None


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def unit_count(count: int, unit: int = UNIT) -> int:
    return round_half_up(count / unit)


def cell_position(index: int, columns: int) -> tuple[int, int]:
    """Return ``(row, col)`` for a flattened cell index."""
    return index // columns, index % columns


def display_order(
    categories: Sequence[str], order: Sequence[str] = CATEGORY_ORDER
) -> List[str]:
    """Canonical order first, then any other categories as given."""
    known = [c for c in order if c in categories]
    extra = [c for c in categories if c not in order]
    return known + extra


def layout_panel(
    month: pd.Timestamp,
    counts: Dict[str, int],
    state: InteractionState = IDLE,
    *,
    columns: int = WAFFLE_COLUMNS,
    unit: int = UNIT,
    order: Sequence[str] = CATEGORY_ORDER,
) -> WafflePanel:
    """Lay out the squares for one month."""
    cells: List[WaffleCell] = []
    breakdown: Dict[str, int] = {}
    for category in display_order(list(counts), order):
        count = int(counts.get(category, 0))
        if count:
            breakdown[category] = count
        opacity = cell_opacity(state, category, month)
        for _ in range(unit_count(count, unit)):
            row, col = cell_position(len(cells), columns)
            cells.append(WaffleCell(row, col, category, opacity))

    return WafflePanel(
        month=pd.Timestamp(month),
        cells=cells,
        rows=math.ceil(len(cells) / columns),
        total=sum(int(v) for v in counts.values()),
        unit_total=len(cells) * unit,
        breakdown=breakdown,
        opacity=month_label_opacity(state, month),
    )


def layout_waffle(
    agg: Aggregation,
    state: InteractionState = IDLE,
    *,
    columns: int = WAFFLE_COLUMNS,
    unit: int = UNIT,
    order: Sequence[str] = CATEGORY_ORDER,
) -> WaffleLayout:
    """Build the waffle panels for every month of an aggregation.

    Parameters
    ----------
    agg : Aggregation
        Output of :func:`seasonal.aggregate.aggregate_records`.
    state : InteractionState, optional
        Current hover state; only affects the opacity values.
    columns : int, default ``WAFFLE_COLUMNS``
        Squares per row.
    unit : int, default ``UNIT``
        Items represented by one square.
    order : Sequence[str], optional
        Canonical stacking order of categories inside a panel.

    Returns
    -------
    WaffleLayout
        Empty (``is_ready`` is False) when the aggregation is empty.
    """
    if columns <= 0:
        raise ValueError("columns must be a positive integer.")
    if unit <= 0:
        raise ValueError("unit must be a positive integer.")

    if agg.is_empty:
        return WaffleLayout(columns=columns, unit=unit)

    panels = [
        layout_panel(
            month,
            {c: int(agg.counts.at[month, c]) for c in agg.categories},
            state,
            columns=columns,
            unit=unit,
            order=order,
        )
        for month in agg.months
    ]
    return WaffleLayout(
        panels=panels,
        max_rows=max(p.rows for p in panels),
        columns=columns,
        unit=unit,
    )


def hovered_panel(layout: WaffleLayout, state: InteractionState) -> WafflePanel | None:
    """Return the panel for the tooltip when exactly one month is highlighted."""
    if not state.has_months or len(state.months) != 1:
        return None
    (month,) = state.months
    return layout.panel_for(month)
