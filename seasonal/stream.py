"""Streamgraph layout with a silhouette baseline.

For every month the category stack is shifted down by half of that
month's total, so each month's stack is centered on zero.  The layout
only produces anchor points ``(month, low, high)`` per category; the
smooth curve through them is drawn by the renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import pandas as pd

from .aggregate import Aggregation
from .config import DEFAULT_STREAM_ORDER, StreamOrder
from .interaction import IDLE, InteractionState, band_opacity


@dataclass(frozen=True)
class StreamPoint:
    month: pd.Timestamp
    low: float
    high: float


@dataclass(frozen=True)
class StreamBand:
    category: str
    points: List[StreamPoint]
    opacity: float = 1.0


@dataclass(frozen=True)
class StreamLayout:
    bands: List[StreamBand] = field(default_factory=list)
    months: List[pd.Timestamp] = field(default_factory=list)
    domain: Tuple[float, float] = (0.0, 0.0)

    @property
    def is_ready(self) -> bool:
        return bool(self.bands)

    def band_for(self, category: str) -> StreamBand | None:
        for band in self.bands:
            if band.category == category:
                return band
        return None


# ---------------------------------------------------------------------------
# Stack order
# ---------------------------------------------------------------------------


def inside_out_order(counts: pd.DataFrame) -> List[str]:
    """Order columns so the earliest-peaking series sit in the middle.

    Series are visited by the month of their peak value (ties keep column
    order) and each is added to whichever side, above or below, is
    currently lighter.  The result lists the bottom side reversed
    followed by the top side.
    """
    categories = list(counts.columns)
    peaks = {c: int(counts[c].to_numpy().argmax()) for c in categories}
    sums = {c: float(counts[c].sum()) for c in categories}
    visit = sorted(categories, key=lambda c: peaks[c])

    top = bottom = 0.0
    tops: List[str] = []
    bottoms: List[str] = []
    for category in visit:
        if top < bottom:
            top += sums[category]
            tops.append(category)
        else:
            bottom += sums[category]
            bottoms.append(category)
    return bottoms[::-1] + tops


def stack_order(agg: Aggregation, order: StreamOrder) -> List[str]:
    if order == "total":
        return list(agg.categories)
    if order == "inside_out":
        return inside_out_order(agg.counts[agg.categories])
    raise ValueError(f"Unknown stream order: {order!r}")


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def silhouette_stack(
    counts: pd.DataFrame, order: Sequence[str]
) -> dict[str, List[Tuple[float, float]]]:
    """Return ``(low, high)`` per month for each column in ``order``.

    Each month starts at ``-total / 2`` and stacks upward in ``order``.
    """
    values = counts[list(order)].astype(float)
    offset = -values.sum(axis=1) / 2.0
    below = values.cumsum(axis=1).shift(1, axis=1).fillna(0.0)
    lows = below.add(offset, axis=0)
    highs = lows + values
    return {
        category: list(zip(lows[category].tolist(), highs[category].tolist()))
        for category in order
    }


def layout_stream(
    agg: Aggregation,
    state: InteractionState = IDLE,
    *,
    order: StreamOrder = DEFAULT_STREAM_ORDER,
) -> StreamLayout:
    """Stack the aggregated counts into centered bands.

    Parameters
    ----------
    agg : Aggregation
        Output of :func:`seasonal.aggregate.aggregate_records`.
    state : InteractionState, optional
        Current hover state; only affects band opacity.
    order : {"total", "inside_out"}, default "total"
        ``"total"`` stacks categories by descending total from the bottom.
        ``"inside_out"`` keeps large, early-peaking categories near the
        center.

    Returns
    -------
    StreamLayout
        Empty (``is_ready`` is False) when the aggregation is empty.
    """
    if agg.is_empty:
        if order not in ("total", "inside_out"):
            raise ValueError(f"Unknown stream order: {order!r}")
        return StreamLayout()

    keys = stack_order(agg, order)
    stacked = silhouette_stack(agg.counts, keys)

    bands = [
        StreamBand(
            category=category,
            points=[
                StreamPoint(month, low, high)
                for month, (low, high) in zip(agg.months, stacked[category])
            ],
            opacity=band_opacity(state, category),
        )
        for category in keys
    ]

    lows = [p.low for band in bands for p in band.points]
    highs = [p.high for band in bands for p in band.points]
    return StreamLayout(
        bands=bands,
        months=list(agg.months),
        domain=(min(lows), max(highs)),
    )
