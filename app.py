import logging
from pathlib import Path

import plotly.graph_objects as go
from shiny import reactive, render
from shiny.express import input, ui
from shiny.session import get_current_session
from shinywidgets import render_plotly

# Import organized modules
from seasonal.aggregate import Aggregation, aggregate_records
from seasonal.config import UNIT, WAFFLE_COLUMNS
from seasonal.data_manager import load_dataset
from seasonal.interaction import IDLE, ANNOTATIONS, annotation_active
from seasonal.plotting import (
    apply_hover,
    apply_waffle_emphasis,
    create_waffle_plot,
    format_year_span,
)
from seasonal.waffle import hovered_panel, layout_waffle

logger = logging.getLogger(__name__)

# ======================================================
#  REACTIVE STATE
# ======================================================
records_store = reactive.Value(None)
hover_state = reactive.Value(IDLE)


@reactive.effect
def _load_records():
    # Input not available yet is a loading state, not an error
    try:
        records_store.set(load_dataset())
    except FileNotFoundError as exc:
        logger.warning("Waffle dashboard waiting for data: %s", exc)


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

ui.tags.script(
    """
    Shiny.addCustomMessageHandler("annotation_active", function(msg) {
      document.querySelectorAll(".annotation").forEach(function(el, i) {
        el.classList.toggle("active", msg.active.indexOf(i) !== -1);
      });
    });
    """
)

ui.page_opts(
    title="Seasonal donations",
    fillable=False,
    full_width=True,
    id="page",
    lang="en",
)

ui.div(f"1 square = {UNIT} items", class_="subtitle")


@render.ui
def status():
    if aggregation().is_empty:
        return ui.div("Loading...", class_="loading")
    return None


with ui.div(style="display:flex; justify-content:center;"):

    @render_plotly
    def waffle_plot():
        agg = aggregation()
        if agg.is_empty:
            return None

        with reactive.isolate():
            state = hover_state.get()
        fig = create_waffle_plot(
            layout_waffle(agg, state, columns=WAFFLE_COLUMNS, unit=UNIT),
            agg.totals,
            state,
            year_label=format_year_span(agg.months),
        )
        widget = go.FigureWidget(fig)
        for trace in widget.data:
            trace.on_hover(_on_hover)
            trace.on_unhover(_on_unhover)
        return widget


@render.ui
def month_detail():
    agg = aggregation()
    if agg.is_empty:
        return None
    state = hover_state.get()
    panel = hovered_panel(layout_waffle(agg, state, columns=WAFFLE_COLUMNS, unit=UNIT), state)
    if panel is None:
        return None
    parts = [f"{cat} {count:,}" for cat, count in panel.breakdown.items()]
    return ui.div(
        ui.tags.strong(f"{panel.month:%B %Y}: {panel.total:,} items"),
        ui.tags.span(" \u00b7 " + ", ".join(parts)),
        class_="month-detail",
    )


with ui.div(class_="annotations"):
    for index, annotation in enumerate(ANNOTATIONS):
        ui.span(
            annotation.text,
            class_="annotation",
            style=f"border-color:{annotation.color}; color:{annotation.color};",
            onmouseenter=(
                f"Shiny.setInputValue('annotation_enter', {index}, "
                "{priority: 'event'})"
            ),
            onmouseleave=(
                f"Shiny.setInputValue('annotation_leave', {index}, "
                "{priority: 'event'})"
            ),
        )


@reactive.effect
@reactive.event(input.annotation_enter)
def _annotation_enter():
    annotation = ANNOTATIONS[int(input.annotation_enter())]
    hover_state.set(hover_state.get().hover_annotation(annotation, aggregation().months))


@reactive.effect
@reactive.event(input.annotation_leave)
def _annotation_leave():
    hover_state.set(IDLE)


@reactive.effect
async def _apply_emphasis():
    # Opacity-only update; geometry comes from the initial render
    state = hover_state.get()
    agg = aggregation()
    if agg.is_empty:
        return

    widget = getattr(waffle_plot, "widget", None)
    if widget is not None:
        layout = layout_waffle(agg, state, columns=WAFFLE_COLUMNS, unit=UNIT)
        with widget.batch_update():
            apply_waffle_emphasis(widget, layout, agg.totals, state)

    session = get_current_session()
    if session is not None:
        active = [
            i
            for i, annotation in enumerate(ANNOTATIONS)
            if annotation_active(annotation, state, agg.months)
        ]
        await session.send_custom_message("annotation_active", {"active": active})
