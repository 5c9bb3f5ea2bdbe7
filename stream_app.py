import logging
from pathlib import Path

import plotly.graph_objects as go
from shiny import reactive, render
from shiny.express import ui
from shinywidgets import render_plotly

# Import organized modules
from seasonal.aggregate import Aggregation, aggregate_records
from seasonal.config import DEFAULT_STREAM_ORDER
from seasonal.data_manager import load_dataset
from seasonal.interaction import IDLE
from seasonal.plotting import (
    apply_hover,
    apply_stream_emphasis,
    create_stream_plot,
    format_year_span,
)
from seasonal.stream import layout_stream

logger = logging.getLogger(__name__)

# ======================================================
#  REACTIVE STATE
# ======================================================
records_store = reactive.Value(None)
hover_state = reactive.Value(IDLE)


@reactive.effect
def _load_records():
    try:
        records_store.set(load_dataset())
    except FileNotFoundError as exc:
        logger.warning("Stream dashboard waiting for data: %s", exc)


@reactive.calc
def aggregation() -> Aggregation:
    df = records_store.get()
    if df is None:
        return Aggregation()
    return aggregate_records(df)


def _on_hover(trace, points, _selector):
    with reactive.isolate():
        current = hover_state.get()
    hover_state.set(apply_hover(current, trace, points.point_inds))


def _on_unhover(trace, points, _selector):
    if points.point_inds:
        hover_state.set(IDLE)


# ======================================================
#  UI LAYOUT
# ======================================================
css_file = Path(__file__).parent / "css" / "theme.css"

ui.include_css(css_file)

ui.page_opts(
    title="Seasonal donations: streamgraph",
    fillable=False,
    full_width=True,
    id="page",
    lang="en",
)


@render.ui
def status():
    if aggregation().is_empty:
        return ui.div("Loading...", class_="loading")
    return None


with ui.div(style="display:flex; justify-content:center;"):

    @render_plotly
    def stream_plot():
        agg = aggregation()
        if agg.is_empty:
            return None

        with reactive.isolate():
            state = hover_state.get()
        fig = create_stream_plot(
            layout_stream(agg, state, order=DEFAULT_STREAM_ORDER),
            agg.totals,
            state,
            year_label=format_year_span(agg.months),
        )
        widget = go.FigureWidget(fig)
        for trace in widget.data:
            trace.on_hover(_on_hover)
            trace.on_unhover(_on_unhover)
        return widget


@reactive.effect
def _apply_emphasis():
    state = hover_state.get()
    agg = aggregation()
    widget = getattr(stream_plot, "widget", None)
    if agg.is_empty or widget is None:
        return

    layout = layout_stream(agg, state, order=DEFAULT_STREAM_ORDER)
    with widget.batch_update():
        apply_stream_emphasis(widget, layout, agg.totals, state)
