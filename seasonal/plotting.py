from typing import Iterable, List, Optional, Tuple

import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from .aggregate import CategoryTotal
from .config import (
    CATEGORY_COLORS,
    CELL_GAP,
    CELL_SIZE,
    FALLBACK_COLOR,
    STREAM_HEIGHT,
    STREAM_WIDTH,
)
from .interaction import (
    IDLE,
    InteractionState,
    bar_label_opacity,
    bar_opacity,
)
from .stream import StreamLayout
from .waffle import WaffleCell, WaffleLayout, WafflePanel


# ============================================================
# Configuration / constants
# ============================================================

# Trace roles, stored in ``trace.meta`` so hover callbacks can tell
# waffle squares, stream bands and totals bars apart.
WAFFLE_META = "waffle"
STREAM_META = "stream"
TOTALS_META = "totals"

HOVER_TEMPLATE_CELL = (
    "<b>%{customdata[1]}</b><br>"
    "%{customdata[2]}"
    "<extra></extra>"
)

HOVER_TEMPLATE_BAR = "%{y}: %{x:,}<extra></extra>"

HOVER_TEMPLATE_BAND = "%{fullData.name}<extra></extra>"

# Panels are separated by one empty column of squares
PANEL_GAP_COLUMNS = 1

LABEL_FONT = dict(size=12, color="#333")
MUTED_FONT = dict(size=10, color="#888")


# ============================================================
# Helper functions
# ============================================================


def _resolve_color(category: str, palette: Optional[dict] = None) -> str:
    """
    Get the color for a category, falling back to a neutral grey.
    """
    return {**CATEGORY_COLORS, **(palette or {})}.get(category, FALLBACK_COLOR)


def month_label(month: pd.Timestamp) -> str:
    return pd.Timestamp(month).strftime("%b")


def _month_key(month: pd.Timestamp) -> str:
    return pd.Timestamp(month).strftime("%Y-%m-%d")


def _panel_breakdown(panel: WafflePanel) -> str:
    lines = [f"{category}: {n:,}" for category, n in panel.breakdown.items()]
    return "<br>".join(lines) if lines else "No items"


def _category_points(
    layout: WaffleLayout, category: str
) -> List[Tuple[int, WafflePanel, WaffleCell]]:
    """All squares of one category, in panel then packing order."""
    return [
        (pi, panel, cell)
        for pi, panel in enumerate(layout.panels)
        for cell in panel.cells
        if cell.category == category
    ]


def _waffle_categories(layout: WaffleLayout) -> List[str]:
    seen: List[str] = []
    for panel in layout.panels:
        for cell in panel.cells:
            if cell.category not in seen:
                seen.append(cell.category)
    return seen


def _panel_x(panel_index: int, columns: int) -> int:
    return panel_index * (columns + PANEL_GAP_COLUMNS)


def hover_target(trace, point_index: Optional[int]) -> Optional[Tuple[str, object]]:
    """
    Translate a hovered point into a highlight request.

    Returns ``("months", [month])`` for a waffle square, ``("category",
    name)`` for a totals bar or stream band, or ``None`` if the trace is
    not interactive.
    """
    meta = getattr(trace, "meta", None)
    if meta == STREAM_META:
        return ("category", trace.name)
    if point_index is None:
        return None
    if meta == WAFFLE_META:
        month = trace.customdata[point_index][0]
        return ("months", [pd.Timestamp(month)])
    if meta == TOTALS_META:
        return ("category", trace.y[point_index])
    return None


def apply_hover(
    state: InteractionState, trace, point_inds: Iterable[int]
) -> InteractionState:
    """Return the state after the pointer enters ``point_inds`` of ``trace``."""
    point_inds = list(point_inds)
    if not point_inds:
        return state
    target = hover_target(trace, point_inds[0])
    if target is None:
        return state
    kind, value = target
    if kind == "category":
        return state.hover_category(value)
    return state.hover_months(value)


# ============================================================
# Totals bar chart (shared by both dashboards)
# ============================================================


def _bar_texts(totals: List[CategoryTotal], state: InteractionState) -> List[str]:
    return [
        f"{t.total:,}" if state.category_active(t.category) else "" for t in totals
    ]


def _add_totals_bar(
    fig: go.Figure,
    totals: List[CategoryTotal],
    state: InteractionState,
    *,
    row: int,
    col: int,
) -> None:
    """Horizontal bars of per-category totals, largest at the top."""
    fig.add_trace(
        go.Bar(
            x=[t.total for t in totals],
            y=[t.category for t in totals],
            orientation="h",
            marker=dict(
                color=[_resolve_color(t.category) for t in totals],
                opacity=[bar_opacity(state, t.category) for t in totals],
            ),
            text=_bar_texts(totals, state),
            textposition="outside",
            textfont=dict(size=11, color="#666"),
            cliponaxis=False,
            hovertemplate=HOVER_TEMPLATE_BAR,
            meta=TOTALS_META,
            name="Total",
            showlegend=False,
        ),
        row=row,
        col=col,
    )
    fig.update_yaxes(
        autorange="reversed",
        showticklabels=False,
        showgrid=False,
        row=row,
        col=col,
    )
    fig.update_xaxes(
        visible=False,
        rangemode="tozero",
        row=row,
        col=col,
    )
    # Category names as annotations so each can fade independently
    axis = "" if col == 1 else str(col)
    for t in totals:
        fig.add_annotation(
            name=f"bar-label-{t.category}",
            x=1.02,
            xref=f"x{axis} domain",
            y=t.category,
            yref=f"y{axis}",
            text=t.category,
            showarrow=False,
            xanchor="left",
            font=LABEL_FONT,
            opacity=bar_label_opacity(state, t.category),
        )


def _apply_totals_emphasis(
    fig: go.Figure, totals: List[CategoryTotal], state: InteractionState
) -> None:
    for trace in fig.data:
        if trace.meta == TOTALS_META:
            trace.marker.opacity = [bar_opacity(state, t.category) for t in totals]
            trace.text = _bar_texts(totals, state)
    for ann in fig.layout.annotations:
        if ann.name and ann.name.startswith("bar-label-"):
            ann.opacity = bar_label_opacity(state, ann.name[len("bar-label-"):])


# ============================================================
# Waffle chart
# ============================================================


def _month_total_text(panel: WafflePanel, state: InteractionState) -> str:
    if state.has_months and state.month_active(panel.month):
        return f"{panel.total:,} items"
    return ""


def create_waffle_plot(
    layout: WaffleLayout,
    totals: List[CategoryTotal],
    state: InteractionState = IDLE,
    *,
    year_label: Optional[str] = None,
) -> go.Figure:
    """
    Build the waffle calendar with the totals bar chart beside it.

    Parameters
    ----------
    layout : WaffleLayout
        Panels from :func:`seasonal.waffle.layout_waffle`, already carrying
        the opacities for ``state``.
    totals : List[CategoryTotal]
        Category totals in display order (descending).
    state : InteractionState, optional
        Current hover state; used for the totals bars and month labels.
    year_label : str, optional
        Title for the month axis.

    Returns
    -------
    go.Figure
        Empty figure when the layout has no panels.
    """
    if not layout.is_ready:
        return go.Figure()

    columns = layout.columns
    n_panels = len(layout.panels)
    grid_cols = n_panels * (columns + PANEL_GAP_COLUMNS) - PANEL_GAP_COLUMNS
    pitch = CELL_SIZE + CELL_GAP
    waffle_width = grid_cols * pitch
    bar_width = 220
    label_space = 60

    fig = make_subplots(
        rows=1,
        cols=2,
        column_widths=[waffle_width, bar_width],
        horizontal_spacing=0.04,
        subplot_titles=("", "<b>Total</b>"),
    )

    # ------------------------------------------------------------------
    # 1. One marker trace per category
    # ------------------------------------------------------------------
    for category in _waffle_categories(layout):
        points = _category_points(layout, category)
        fig.add_trace(
            go.Scatter(
                x=[_panel_x(pi, columns) + cell.col for pi, _, cell in points],
                y=[cell.row for _, _, cell in points],
                mode="markers",
                marker=dict(
                    symbol="square",
                    size=CELL_SIZE,
                    color=_resolve_color(category),
                    opacity=[cell.opacity for _, _, cell in points],
                    line=dict(width=0),
                ),
                customdata=[
                    [
                        _month_key(panel.month),
                        f"{month_label(panel.month)} {panel.month.year}",
                        _panel_breakdown(panel),
                    ]
                    for _, panel, _ in points
                ],
                hovertemplate=HOVER_TEMPLATE_CELL,
                name=category,
                meta=WAFFLE_META,
                showlegend=False,
            ),
            row=1,
            col=1,
        )

    # ------------------------------------------------------------------
    # 2. Month labels and hovered-month totals under each panel
    # ------------------------------------------------------------------
    for pi, panel in enumerate(layout.panels):
        center = _panel_x(pi, columns) + (columns - 1) / 2
        active = panel.opacity >= 1.0
        fig.add_annotation(
            name=f"month-{_month_key(panel.month)}",
            x=center,
            xref="x",
            y=-0.6,
            yref="y",
            yanchor="top",
            text=(
                f"<b>{month_label(panel.month)}</b>"
                if active and state.has_months
                else month_label(panel.month)
            ),
            showarrow=False,
            font=LABEL_FONT,
            opacity=panel.opacity,
        )
        fig.add_annotation(
            name=f"month-total-{_month_key(panel.month)}",
            x=center,
            xref="x",
            y=-1.6,
            yref="y",
            yanchor="top",
            text=_month_total_text(panel, state),
            showarrow=False,
            font=MUTED_FONT,
        )

    fig.update_xaxes(
        visible=False,
        range=[-0.5, grid_cols - 0.5],
        row=1,
        col=1,
    )
    fig.update_yaxes(
        visible=False,
        range=[-0.5, max(layout.max_rows, 1) - 0.5],
        scaleanchor="x",
        scaleratio=1,
        row=1,
        col=1,
    )

    # ------------------------------------------------------------------
    # 3. Totals bar chart / legend on the right
    # ------------------------------------------------------------------
    _add_totals_bar(fig, totals, state, row=1, col=2)

    # ------------------------------------------------------------------
    # 4. Global layout tweaks
    # ------------------------------------------------------------------
    fig.update_layout(
        height=max(layout.max_rows, 1) * pitch + label_space + 80,
        width=waffle_width + bar_width + 260,
        margin=dict(t=40, l=30, r=160, b=label_space),
        plot_bgcolor="white",
        paper_bgcolor="white",
        bargap=0.3,
        hovermode="closest",
        title=dict(
            text=f"1 square = {layout.unit} items",
            font=dict(size=13, color="#666"),
            x=0.01,
        ),
    )
    if year_label:
        fig.add_annotation(
            x=0.5,
            xref="x domain",
            y=-1.6,
            yref="y",
            yshift=-20,
            text=year_label,
            showarrow=False,
            font=dict(size=13, color="#999"),
        )
    return fig


def apply_waffle_emphasis(
    fig: go.Figure,
    layout: WaffleLayout,
    totals: List[CategoryTotal],
    state: InteractionState,
) -> None:
    """
    Push the opacities of a recomputed layout into an existing figure.

    Works on both ``go.Figure`` and ``go.FigureWidget``; geometry is left
    untouched.
    """
    for trace in fig.data:
        if trace.meta == WAFFLE_META:
            trace.marker.opacity = [
                cell.opacity for _, _, cell in _category_points(layout, trace.name)
            ]

    panels = {f"month-{_month_key(p.month)}": p for p in layout.panels}
    totals_by_name = {f"month-total-{_month_key(p.month)}": p for p in layout.panels}
    for ann in fig.layout.annotations:
        if ann.name in panels:
            panel = panels[ann.name]
            label = month_label(panel.month)
            ann.opacity = panel.opacity
            ann.text = (
                f"<b>{label}</b>" if panel.opacity >= 1.0 and state.has_months else label
            )
        elif ann.name in totals_by_name:
            ann.text = _month_total_text(totals_by_name[ann.name], state)

    _apply_totals_emphasis(fig, totals, state)


# ============================================================
# Streamgraph
# ============================================================


def _band_stroke(category: str, state: InteractionState) -> str:
    return "white" if state.category == category else "rgba(0,0,0,0)"


def create_stream_plot(
    layout: StreamLayout,
    totals: List[CategoryTotal],
    state: InteractionState = IDLE,
    *,
    year_label: Optional[str] = None,
) -> go.Figure:
    """
    Build the streamgraph with the totals bar chart beside it.

    Each band is a closed polygon through its ``high`` anchors left to
    right and its ``low`` anchors back, smoothed with a spline.
    """
    if not layout.is_ready:
        return go.Figure()

    fig = make_subplots(
        rows=1,
        cols=2,
        column_widths=[0.78, 0.22],
        horizontal_spacing=0.05,
        subplot_titles=("", "<b>Total</b>"),
    )

    months = list(layout.months)
    for band in layout.bands:
        highs = [p.high for p in band.points]
        lows = [p.low for p in band.points]
        fig.add_trace(
            go.Scatter(
                x=months + months[::-1],
                y=highs + lows[::-1],
                mode="lines+markers",
                fill="toself",
                fillcolor=_resolve_color(band.category),
                line=dict(
                    shape="spline",
                    smoothing=0.8,
                    width=0.5,
                    color=_band_stroke(band.category, state),
                ),
                marker=dict(size=6, opacity=0),
                opacity=band.opacity,
                hoveron="points+fills",
                hovertemplate=HOVER_TEMPLATE_BAND,
                name=band.category,
                meta=STREAM_META,
                showlegend=False,
            ),
            row=1,
            col=1,
        )

    low, high = layout.domain
    fig.update_xaxes(
        tickvals=months,
        ticktext=[month_label(m) for m in months],
        showgrid=True,
        gridcolor="#ddd",
        griddash="dot",
        title_text=year_label,
        title_font=dict(size=13, color="#999"),
        tickfont=dict(size=12, color="#666"),
        zeroline=False,
        row=1,
        col=1,
    )
    fig.update_yaxes(
        visible=False,
        range=[low, high],
        row=1,
        col=1,
    )

    _add_totals_bar(fig, totals, state, row=1, col=2)

    fig.update_layout(
        height=STREAM_HEIGHT,
        width=STREAM_WIDTH + 300,
        margin=dict(t=30, l=40, r=140, b=50),
        plot_bgcolor="white",
        paper_bgcolor="white",
        bargap=0.3,
        hovermode="closest",
    )
    return fig


def apply_stream_emphasis(
    fig: go.Figure,
    layout: StreamLayout,
    totals: List[CategoryTotal],
    state: InteractionState,
) -> None:
    """Update band, bar and label opacities in place."""
    for trace in fig.data:
        if trace.meta == STREAM_META:
            band = layout.band_for(trace.name)
            if band is not None:
                trace.opacity = band.opacity
                trace.line.color = _band_stroke(band.category, state)
    _apply_totals_emphasis(fig, totals, state)


def format_year_span(months) -> str:
    """``"2025"`` for a single year, ``"2024–2025"`` for a span."""
    years = sorted({pd.Timestamp(m).year for m in months})
    if not years:
        return ""
    if len(years) == 1:
        return str(years[0])
    return f"{years[0]}–{years[-1]}"
