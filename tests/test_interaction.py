"""Tests for hover state transitions and emphasis rules."""

import pandas as pd

from seasonal.interaction import (
    ANNOTATIONS,
    IDLE,
    Annotation,
    InteractionState,
    annotation_active,
    band_opacity,
    bar_label_opacity,
    bar_opacity,
    cell_opacity,
    month_label_opacity,
)

MONTHS = [pd.Timestamp(f"2025-{m:02d}-01") for m in range(1, 10)]


class TestTransitions:
    """Test state changes on hover events."""

    def test_starts_idle(self):
        assert IDLE.is_idle
        assert InteractionState() == IDLE

    def test_hover_category(self):
        state = IDLE.hover_category("Tops")
        assert state.has_category
        assert state.category == "Tops"
        assert state.months == frozenset()

    def test_hover_months(self):
        state = IDLE.hover_months([MONTHS[0], MONTHS[2]])
        assert state.has_months
        assert state.months == frozenset({MONTHS[0], MONTHS[2]})
        assert state.category is None

    def test_new_highlight_replaces_old(self):
        state = IDLE.hover_category("Tops").hover_category("Pants")
        assert state.category == "Pants"

    def test_category_clears_months(self):
        state = IDLE.hover_months([MONTHS[1]]).hover_category("Tops")
        assert state == InteractionState.for_category("Tops")

    def test_months_clear_category(self):
        state = IDLE.hover_category("Tops").hover_months([MONTHS[1]])
        assert state.category is None
        assert state.has_months

    def test_exit_returns_to_idle(self):
        assert IDLE.hover_category("Tops").hover_exit() == IDLE
        assert IDLE.hover_months([MONTHS[0]]).hover_exit() == IDLE

    def test_empty_month_set_is_idle(self):
        assert InteractionState.for_months([]) == IDLE

    def test_months_accept_strings(self):
        state = IDLE.hover_months(["2025-03-01"])
        assert state.month_active(MONTHS[2])


class TestEmphasis:
    """Test opacity rules."""

    def test_tops_scenario(self):
        """Test hovering Tops, then a month, then leaving."""
        state = IDLE.hover_category("Tops")
        assert state == InteractionState.for_category("Tops")
        assert cell_opacity(state, "Pants", MONTHS[0]) == 0.1
        assert cell_opacity(state, "Tops", MONTHS[0]) == 0.95
        assert bar_opacity(state, "Pants") == 0.15

        state = state.hover_months([MONTHS[0]])
        assert state.has_months
        # Tops is no longer singled out; emphasis now follows the month
        assert cell_opacity(state, "Tops", MONTHS[0]) == cell_opacity(state, "Pants", MONTHS[0])
        assert bar_opacity(state, "Tops") == bar_opacity(state, "Pants") == 0.85

    def test_idle_values(self):
        assert cell_opacity(IDLE, "Tops", MONTHS[0]) == 0.85
        assert month_label_opacity(IDLE, MONTHS[0]) == 1.0
        assert bar_opacity(IDLE, "Tops") == 0.85
        assert bar_label_opacity(IDLE, "Tops") == 1.0
        assert band_opacity(IDLE, "Tops") == 0.85

    def test_month_highlight_values(self):
        state = IDLE.hover_months([MONTHS[3]])
        assert cell_opacity(state, "Tops", MONTHS[3]) == 0.9
        assert cell_opacity(state, "Tops", MONTHS[4]) == 0.15
        assert month_label_opacity(state, MONTHS[4]) == 0.3

    def test_category_highlight_labels(self):
        state = IDLE.hover_category("Skirts")
        assert bar_label_opacity(state, "Tops") == 0.35
        assert band_opacity(state, "Tops") == 0.12
        assert band_opacity(state, "Skirts") == 0.85


class TestAnnotations:
    """Test annotation-driven highlights."""

    def test_configured_annotations(self):
        assert len(ANNOTATIONS) == 4
        assert ANNOTATIONS[0].category == "Sweaters"
        assert ANNOTATIONS[2].month_indices == (2, 4, 5, 6)

    def test_category_annotation(self):
        state = IDLE.hover_annotation(ANNOTATIONS[1], MONTHS)
        assert state == InteractionState.for_category("Tops")

    def test_month_annotation(self):
        state = IDLE.hover_annotation(ANNOTATIONS[2], MONTHS)
        assert state.months == frozenset(MONTHS[i] for i in (2, 4, 5, 6))

    def test_out_of_range_indices_ignored(self):
        state = IDLE.hover_annotation(ANNOTATIONS[3], MONTHS[:3])
        assert state == IDLE

    def test_unbound_annotation_keeps_state(self):
        plain = Annotation("Note", "#000")
        state = IDLE.hover_category("Tops")
        assert state.hover_annotation(plain, MONTHS) is state

    def test_annotation_active(self):
        sweaters, tops, breaks, september = ANNOTATIONS
        state = IDLE.hover_category("Sweaters")
        assert annotation_active(sweaters, state, MONTHS)
        assert not annotation_active(tops, state, MONTHS)
        assert not annotation_active(breaks, state, MONTHS)

        state = IDLE.hover_months([MONTHS[8]])
        assert annotation_active(september, state, MONTHS)
        assert not annotation_active(breaks, state, MONTHS)
        assert not annotation_active(sweaters, state, MONTHS)

    def test_no_annotation_active_when_idle(self):
        assert not any(annotation_active(a, IDLE, MONTHS) for a in ANNOTATIONS)
