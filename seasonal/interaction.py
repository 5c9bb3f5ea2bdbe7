"""Hover state shared by the dashboards.

A session is always in exactly one of three states:

* ``idle`` -- nothing hovered,
* ``category`` -- one clothing category is highlighted,
* ``months`` -- one or more month panels are highlighted.

Category and month highlights are mutually exclusive: entering one
replaces whatever was active, and any hover exit returns to idle.  The
state only drives per-element opacity; it never changes geometry or
counts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Literal, Optional, Sequence, Tuple

import pandas as pd

from .config import (
    ANNOTATION_SPECS,
    BAND_OPACITY_OFF,
    BAND_OPACITY_ON,
    BAR_LABEL_OPACITY_OFF,
    BAR_OPACITY_OFF,
    BAR_OPACITY_ON,
    CELL_OPACITY_CATEGORY_OFF,
    CELL_OPACITY_CATEGORY_ON,
    CELL_OPACITY_IDLE,
    CELL_OPACITY_MONTH_OFF,
    CELL_OPACITY_MONTH_ON,
    LABEL_OPACITY_ON,
    MONTH_LABEL_OPACITY_OFF,
)

StateKind = Literal["idle", "category", "months"]


@dataclass(frozen=True)
class InteractionState:
    kind: StateKind = "idle"
    category: Optional[str] = None
    months: FrozenSet[pd.Timestamp] = field(default_factory=frozenset)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def idle(cls) -> "InteractionState":
        return cls()

    @classmethod
    def for_category(cls, category: str) -> "InteractionState":
        return cls(kind="category", category=category)

    @classmethod
    def for_months(cls, months: Iterable) -> "InteractionState":
        selected = frozenset(pd.Timestamp(m) for m in months)
        if not selected:
            return cls()
        return cls(kind="months", months=selected)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def hover_category(self, category: str) -> "InteractionState":
        return InteractionState.for_category(category)

    def hover_months(self, months: Iterable) -> "InteractionState":
        return InteractionState.for_months(months)

    def hover_exit(self) -> "InteractionState":
        return InteractionState.idle()

    def hover_annotation(
        self, annotation: "Annotation", months: Sequence[pd.Timestamp]
    ) -> "InteractionState":
        """Highlight whatever the annotation is bound to.

        ``months`` is the sorted month list the annotation's indices refer
        to; indices past its end are ignored.
        """
        if annotation.category is not None:
            return self.hover_category(annotation.category)
        if annotation.month_indices:
            return self.hover_months(
                months[i] for i in annotation.month_indices if 0 <= i < len(months)
            )
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def is_idle(self) -> bool:
        return self.kind == "idle"

    @property
    def has_category(self) -> bool:
        return self.kind == "category"

    @property
    def has_months(self) -> bool:
        return self.kind == "months"

    def category_active(self, category: str) -> bool:
        """True unless another category is highlighted."""
        return not self.has_category or self.category == category

    def month_active(self, month: pd.Timestamp) -> bool:
        """True unless other months are highlighted."""
        return not self.has_months or pd.Timestamp(month) in self.months


IDLE = InteractionState.idle()


# ---------------------------------------------------------------------------
# Emphasis rules
# ---------------------------------------------------------------------------


def cell_opacity(
    state: InteractionState, category: str, month: pd.Timestamp
) -> float:
    """Opacity of one waffle square."""
    if state.has_category:
        return (
            CELL_OPACITY_CATEGORY_ON
            if category == state.category
            else CELL_OPACITY_CATEGORY_OFF
        )
    if state.has_months:
        return (
            CELL_OPACITY_MONTH_ON
            if state.month_active(month)
            else CELL_OPACITY_MONTH_OFF
        )
    return CELL_OPACITY_IDLE


def month_label_opacity(state: InteractionState, month: pd.Timestamp) -> float:
    return LABEL_OPACITY_ON if state.month_active(month) else MONTH_LABEL_OPACITY_OFF


def bar_opacity(state: InteractionState, category: str) -> float:
    return BAR_OPACITY_ON if state.category_active(category) else BAR_OPACITY_OFF


def bar_label_opacity(state: InteractionState, category: str) -> float:
    return LABEL_OPACITY_ON if state.category_active(category) else BAR_LABEL_OPACITY_OFF


def band_opacity(state: InteractionState, category: str) -> float:
    return BAND_OPACITY_ON if state.category_active(category) else BAND_OPACITY_OFF


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Annotation:
    """Hoverable caption bound to a category or to a set of months."""

    text: str
    color: str
    category: Optional[str] = None
    month_indices: Tuple[int, ...] = ()


ANNOTATIONS: Tuple[Annotation, ...] = tuple(
    Annotation(text, color, category, tuple(indices))
    for text, color, category, indices in ANNOTATION_SPECS
)


def annotation_active(
    annotation: Annotation,
    state: InteractionState,
    months: Sequence[pd.Timestamp],
) -> bool:
    """Whether an annotation should render in its active style."""
    if annotation.category is not None and state.has_category:
        return state.category == annotation.category
    if annotation.month_indices and state.has_months:
        return any(
            pd.Timestamp(months[i]) in state.months
            for i in annotation.month_indices
            if 0 <= i < len(months)
        )
    return False
