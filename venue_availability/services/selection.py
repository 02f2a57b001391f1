"""
Calendar selection state machine.

SelectionState is an immutable value. Every gesture goes through
`transition(state, event, context)`, which returns a new state plus an
optional `date_clicked` effect (a plain click outside selection mode).
Nothing here does I/O, so the API can hold the state client-side and post
it back with each event.

Range, drag and shift gestures only ever add to the selection. It is emptied
by CLEAR, replaced by SELECT_ALL / SELECT_RANGE, and cleared by the
controller after a successful bulk operation.
"""
from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, field_serializer

from venue_availability.models.venue import BookingType
from venue_availability.services.dates import date_range


class SelectionType(str, enum.Enum):
    single = "single"
    range  = "range"
    multi  = "multi"
    drag   = "drag"


class Gesture(str, enum.Enum):
    TOGGLE_MODE  = "toggle_mode"
    CLICK        = "click"
    CTRL_CLICK   = "ctrl_click"
    SHIFT_CLICK  = "shift_click"
    DRAG_START   = "drag_start"
    DRAG_MOVE    = "drag_move"
    DRAG_END     = "drag_end"
    TOUCH_START  = "touch_start"
    TOUCH_MOVE   = "touch_move"
    TOUCH_END    = "touch_end"
    EXPAND       = "expand"
    COLLAPSE     = "collapse"
    TOGGLE_HOUR  = "toggle_hour"
    CLEAR        = "clear"
    SELECT_ALL   = "select_all"
    SELECT_RANGE = "select_range"


class SelectionState(BaseModel):
    selected_dates: frozenset[str] = frozenset()
    selected_hour_slots: frozenset[str] = frozenset()
    is_selection_mode: bool = False
    last_selected_date: Optional[str] = None
    selection_type: SelectionType = SelectionType.single
    expanded_date: Optional[str] = None
    drag_start_date: Optional[str] = None
    drag_current_date: Optional[str] = None

    model_config = {"frozen": True}

    @field_serializer("selected_dates", "selected_hour_slots")
    def _sorted(self, v: frozenset[str]) -> list[str]:
        return sorted(v)


class SelectionEvent(BaseModel):
    gesture: Gesture
    date: Optional[str] = None          # clicked / dragged cell
    datetime: Optional[str] = None      # TOGGLE_HOUR target
    button: int = 0                     # mouse button for DRAG_START
    dates: list[str] = []               # SELECT_ALL
    range_start: Optional[str] = None   # SELECT_RANGE
    range_end: Optional[str] = None


class SelectionContext(BaseModel):
    """What the calendar currently shows. Past cells and cells outside the view ignore gestures."""
    today: str
    view_start: Optional[str] = None
    view_end: Optional[str] = None
    booking_mode: BookingType = BookingType.hourly

    def selectable(self, date_str: Optional[str]) -> bool:
        if not date_str or date_str < self.today:
            return False
        if self.view_start and date_str < self.view_start:
            return False
        if self.view_end and date_str > self.view_end:
            return False
        return True

    @property
    def has_hours(self) -> bool:
        return self.booking_mode in (BookingType.hourly, BookingType.both)


class SelectionOutcome(BaseModel):
    state: SelectionState
    date_clicked: Optional[str] = None


# ── Helpers ───────────────────────────────────────────────────────────────────

def _toggle(items: frozenset[str], item: str) -> frozenset[str]:
    return items - {item} if item in items else items | {item}


def _toggle_date(state: SelectionState, date_str: str) -> SelectionState:
    return state.model_copy(update={
        "selected_dates":     _toggle(state.selected_dates, date_str),
        "last_selected_date": date_str,
        "selection_type":     SelectionType.multi,
    })


def _toggle_expanded(state: SelectionState, date_str: str) -> SelectionState:
    expanded = None if state.expanded_date == date_str else date_str
    return state.model_copy(update={"expanded_date": expanded})


def _union_range(state: SelectionState, a: str, b: str, kind: SelectionType) -> SelectionState:
    return state.model_copy(update={
        "selected_dates":     state.selected_dates | frozenset(date_range(a, b)),
        "selection_type":     kind,
        "last_selected_date": b,
        "drag_start_date":    None,
        "drag_current_date":  None,
    })


def clear_selection(state: SelectionState) -> SelectionState:
    return state.model_copy(update={
        "selected_dates":      frozenset(),
        "selected_hour_slots": frozenset(),
        "last_selected_date":  None,
        "drag_start_date":     None,
        "drag_current_date":   None,
    })


# ── Transition ────────────────────────────────────────────────────────────────

_DRAG_STARTS = (Gesture.DRAG_START, Gesture.TOUCH_START)
_DRAG_MOVES  = (Gesture.DRAG_MOVE, Gesture.TOUCH_MOVE)
_DRAG_ENDS   = (Gesture.DRAG_END, Gesture.TOUCH_END)


def transition(
    state: SelectionState,
    event: SelectionEvent,
    context: SelectionContext,
) -> SelectionOutcome:
    """Apply one gesture. A gesture whose precondition fails returns the state unchanged."""
    g = event.gesture
    date_str = event.date
    multi = state.is_selection_mode

    if g == Gesture.TOGGLE_MODE:
        enabled = not multi
        return SelectionOutcome(state=state.model_copy(update={
            "is_selection_mode": enabled,
            "selection_type":    SelectionType.multi if enabled else SelectionType.single,
        }))

    if g == Gesture.CLEAR:
        return SelectionOutcome(state=clear_selection(state))

    if g == Gesture.COLLAPSE:
        return SelectionOutcome(state=state.model_copy(update={"expanded_date": None}))

    if g == Gesture.TOGGLE_HOUR:
        if not state.expanded_date or not event.datetime:
            return SelectionOutcome(state=state)
        return SelectionOutcome(state=state.model_copy(update={
            "selected_hour_slots": _toggle(state.selected_hour_slots, event.datetime),
            "selection_type":      SelectionType.multi,
        }))

    if g == Gesture.SELECT_ALL:
        picked = frozenset(d for d in event.dates if context.selectable(d))
        return SelectionOutcome(state=state.model_copy(update={
            "selected_dates": picked,
            "selection_type": SelectionType.multi,
        }))

    if g == Gesture.SELECT_RANGE:
        if not event.range_start or not event.range_end:
            return SelectionOutcome(state=state)
        return SelectionOutcome(state=state.model_copy(update={
            "selected_dates": frozenset(
                d for d in date_range(event.range_start, event.range_end) if context.selectable(d)
            ),
            "selection_type": SelectionType.range,
        }))

    if g == Gesture.EXPAND:
        if not context.has_hours or not context.selectable(date_str):
            return SelectionOutcome(state=state)
        return SelectionOutcome(state=_toggle_expanded(state, date_str))

    # drag_move only tracks the pointer; it doesn't need the cell to be selectable
    if g in _DRAG_MOVES:
        if state.drag_start_date and date_str:
            return SelectionOutcome(state=state.model_copy(update={"drag_current_date": date_str}))
        return SelectionOutcome(state=state)

    if not context.selectable(date_str):
        return SelectionOutcome(state=state)

    if g == Gesture.CLICK:
        if not multi:
            new_state = _toggle_expanded(state, date_str) if context.has_hours else state.model_copy(
                update={"expanded_date": None}
            )
            return SelectionOutcome(state=new_state, date_clicked=date_str)
        new_state = _toggle_date(state, date_str)
        if context.has_hours:
            new_state = _toggle_expanded(new_state, date_str)
        return SelectionOutcome(state=new_state)

    if not multi:
        return SelectionOutcome(state=state)

    if g == Gesture.CTRL_CLICK:
        return SelectionOutcome(state=_toggle_date(state, date_str))

    if g == Gesture.SHIFT_CLICK:
        if not state.last_selected_date:
            # nothing to extend from; behaves like a plain click
            return transition(state, event.model_copy(update={"gesture": Gesture.CLICK}), context)
        return SelectionOutcome(
            state=_union_range(state, state.last_selected_date, date_str, SelectionType.range)
        )

    if g in _DRAG_STARTS:
        if g == Gesture.DRAG_START and event.button != 0:
            return SelectionOutcome(state=state)
        return SelectionOutcome(state=state.model_copy(update={
            "drag_start_date":   date_str,
            "drag_current_date": date_str,
        }))

    if g in _DRAG_ENDS:
        if not state.drag_start_date:
            return SelectionOutcome(state=state)
        return SelectionOutcome(
            state=_union_range(state, state.drag_start_date, date_str, SelectionType.drag)
        )

    return SelectionOutcome(state=state)


def drag_preview(state: SelectionState) -> list[str]:
    """Dates between the drag anchor and the pointer, for highlighting mid-drag."""
    if not state.drag_start_date or not state.drag_current_date:
        return []
    return date_range(state.drag_start_date, state.drag_current_date)
