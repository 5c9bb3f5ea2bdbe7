"""Tests for the plotly figure builders."""

import pandas as pd
import plotly.graph_objects as go

from seasonal.interaction import IDLE, InteractionState
from seasonal.plotting import (
    STREAM_META,
    TOTALS_META,
    WAFFLE_META,
    apply_hover,
    apply_stream_emphasis,
    apply_waffle_emphasis,
    create_stream_plot,
    create_waffle_plot,
    format_year_span,
    hover_target,
    month_label,
)
from seasonal.stream import layout_stream
from seasonal.waffle import layout_waffle

JAN = pd.Timestamp("2025-01-01")
FEB = pd.Timestamp("2025-02-01")


def _traces(fig, meta):
    return [trace for trace in fig.data if trace.meta == meta]


def _annotation(fig, name):
    return next(a for a in fig.layout.annotations if a.name == name)


class TestWafflePlot:
    """Test the waffle figure."""

    def test_one_trace_per_category(self, scenario_agg):
        fig = create_waffle_plot(layout_waffle(scenario_agg), scenario_agg.totals)
        waffle = _traces(fig, WAFFLE_META)
        assert [t.name for t in waffle] == ["Tops", "Pants"]
        assert len(waffle[0].x) == 6  # 5 in January, 1 in February
        assert len(waffle[1].x) == 2

    def test_square_positions(self, scenario_agg):
        fig = create_waffle_plot(layout_waffle(scenario_agg, columns=3), scenario_agg.totals)
        tops = _traces(fig, WAFFLE_META)[0]
        # January occupies x 0..2; February starts after one gap column
        assert list(tops.x) == [0, 1, 2, 0, 1, 4]
        assert list(tops.y) == [0, 0, 0, 1, 1, 0]
        assert tops.marker.color == "#4e79a7"

    def test_totals_bar(self, scenario_agg):
        fig = create_waffle_plot(layout_waffle(scenario_agg), scenario_agg.totals)
        (bar,) = _traces(fig, TOTALS_META)
        assert list(bar.y) == ["Tops", "Pants"]
        assert list(bar.x) == [60, 20]
        assert list(bar.text) == ["60", "20"]

    def test_month_labels(self, scenario_agg):
        fig = create_waffle_plot(layout_waffle(scenario_agg), scenario_agg.totals)
        assert _annotation(fig, "month-2025-01-01").text == "Jan"
        assert _annotation(fig, "month-total-2025-01-01").text == ""

    def test_empty_layout_gives_empty_figure(self):
        from seasonal.aggregate import aggregate_records

        fig = create_waffle_plot(layout_waffle(aggregate_records([])), [])
        assert len(fig.data) == 0

    def test_apply_emphasis_for_category(self, scenario_agg):
        fig = create_waffle_plot(layout_waffle(scenario_agg), scenario_agg.totals)
        state = InteractionState.for_category("Tops")
        apply_waffle_emphasis(fig, layout_waffle(scenario_agg, state), scenario_agg.totals, state)

        tops, pants = _traces(fig, WAFFLE_META)
        assert set(tops.marker.opacity) == {0.95}
        assert set(pants.marker.opacity) == {0.1}
        (bar,) = _traces(fig, TOTALS_META)
        assert list(bar.marker.opacity) == [0.85, 0.15]
        assert list(bar.text) == ["60", ""]
        assert _annotation(fig, "bar-label-Pants").opacity == 0.35

    def test_apply_emphasis_for_month(self, scenario_agg):
        fig = create_waffle_plot(layout_waffle(scenario_agg), scenario_agg.totals)
        state = InteractionState.for_months([JAN])
        apply_waffle_emphasis(fig, layout_waffle(scenario_agg, state), scenario_agg.totals, state)

        tops = _traces(fig, WAFFLE_META)[0]
        assert list(tops.marker.opacity) == [0.9] * 5 + [0.15]
        assert _annotation(fig, "month-2025-01-01").text == "<b>Jan</b>"
        assert _annotation(fig, "month-2025-02-01").opacity == 0.3
        assert _annotation(fig, "month-total-2025-01-01").text == "70 items"
        assert _annotation(fig, "month-total-2025-02-01").text == ""

        apply_waffle_emphasis(fig, layout_waffle(scenario_agg), scenario_agg.totals, IDLE)
        assert set(tops.marker.opacity) == {0.85}
        assert _annotation(fig, "month-2025-01-01").text == "Jan"


class TestHover:
    """Test mapping hovered points to state changes."""

    def test_waffle_square_highlights_month(self, scenario_agg):
        fig = create_waffle_plot(layout_waffle(scenario_agg), scenario_agg.totals)
        tops = _traces(fig, WAFFLE_META)[0]
        assert hover_target(tops, 5) == ("months", [FEB])
        state = apply_hover(IDLE, tops, [5])
        assert state == InteractionState.for_months([FEB])

    def test_bar_highlights_category(self, scenario_agg):
        fig = create_waffle_plot(layout_waffle(scenario_agg), scenario_agg.totals)
        (bar,) = _traces(fig, TOTALS_META)
        state = apply_hover(InteractionState.for_months([JAN]), bar, [1])
        assert state == InteractionState.for_category("Pants")

    def test_stream_band_highlights_category(self, season_agg):
        fig = create_stream_plot(layout_stream(season_agg), season_agg.totals)
        band = _traces(fig, STREAM_META)[2]
        assert apply_hover(IDLE, band, [0]) == InteractionState.for_category(band.name)

    def test_no_points_keeps_state(self, scenario_agg):
        fig = create_waffle_plot(layout_waffle(scenario_agg), scenario_agg.totals)
        state = InteractionState.for_category("Tops")
        assert apply_hover(state, fig.data[0], []) is state

    def test_unknown_trace_is_ignored(self):
        trace = go.Scatter(x=[1], y=[1])
        assert hover_target(trace, 0) is None
        assert apply_hover(IDLE, trace, [0]) is IDLE


class TestStreamPlot:
    """Test the streamgraph figure."""

    def test_one_closed_band_per_category(self, season_agg):
        layout = layout_stream(season_agg)
        fig = create_stream_plot(layout, season_agg.totals)
        bands = _traces(fig, STREAM_META)
        assert [t.name for t in bands] == season_agg.categories
        n = len(season_agg.months)
        assert len(bands[0].x) == 2 * n
        assert bands[0].fill == "toself"
        assert bands[0].line.shape == "spline"

    def test_band_outline_follows_anchors(self, scenario_agg):
        fig = create_stream_plot(layout_stream(scenario_agg), scenario_agg.totals)
        tops = _traces(fig, STREAM_META)[0]
        assert list(tops.y) == [15.0, 5.0, -5.0, -35.0]

    def test_axis_range_matches_domain(self, scenario_agg):
        fig = create_stream_plot(layout_stream(scenario_agg), scenario_agg.totals)
        assert tuple(fig.layout.yaxis.range) == (-35.0, 35.0)
        assert list(fig.layout.xaxis.ticktext) == ["Jan", "Feb"]

    def test_apply_emphasis(self, season_agg):
        fig = create_stream_plot(layout_stream(season_agg), season_agg.totals)
        state = InteractionState.for_category("Pants")
        apply_stream_emphasis(fig, layout_stream(season_agg, state), season_agg.totals, state)
        opacities = {t.name: t.opacity for t in _traces(fig, STREAM_META)}
        assert opacities["Pants"] == 0.85
        assert opacities["Tops"] == 0.12

    def test_empty_layout_gives_empty_figure(self):
        from seasonal.aggregate import aggregate_records

        fig = create_stream_plot(layout_stream(aggregate_records([])), [])
        assert len(fig.data) == 0


class TestLabels:
    def test_month_label(self):
        assert month_label(pd.Timestamp("2025-09-01")) == "Sep"

    def test_format_year_span(self):
        assert format_year_span([JAN, FEB]) == "2025"
        assert format_year_span([pd.Timestamp("2024-12-01"), JAN]) == "2024–2025"
        assert format_year_span([]) == ""
