import pytest

from venue_availability.models.venue import BookingType
from venue_availability.services.selection import (
    Gesture,
    SelectionContext,
    SelectionEvent,
    SelectionState,
    SelectionType,
    drag_preview,
    transition,
)

CTX = SelectionContext(today="2025-01-06", view_start="2025-01-01", view_end="2025-01-31")
DAILY = CTX.model_copy(update={"booking_mode": BookingType.daily})


def ev(gesture, date=None, **kw):
    return SelectionEvent(gesture=gesture, date=date, **kw)


def run(state, *events, ctx=CTX):
    for e in events:
        state = transition(state, e, ctx).state
    return state


@pytest.fixture
def multi():
    return run(SelectionState(), ev(Gesture.TOGGLE_MODE))


# ── Mode ──────────────────────────────────────────────────────────────────────

def test_toggle_mode_sets_selection_type():
    on = run(SelectionState(), ev(Gesture.TOGGLE_MODE))
    assert on.is_selection_mode and on.selection_type == SelectionType.multi
    off = run(on, ev(Gesture.TOGGLE_MODE))
    assert not off.is_selection_mode and off.selection_type == SelectionType.single


# ── Clicks ────────────────────────────────────────────────────────────────────

def test_plain_click_outside_selection_mode_reports_date_click():
    outcome = transition(SelectionState(), ev(Gesture.CLICK, "2025-01-10"), CTX)
    assert outcome.date_clicked == "2025-01-10"
    assert outcome.state.selected_dates == frozenset()
    assert outcome.state.expanded_date == "2025-01-10"


def test_plain_click_on_daily_venue_does_not_expand():
    outcome = transition(SelectionState(), ev(Gesture.CLICK, "2025-01-10"), DAILY)
    assert outcome.date_clicked == "2025-01-10"
    assert outcome.state.expanded_date is None


def test_plain_click_in_selection_mode_toggles_and_expands(multi):
    state = run(multi, ev(Gesture.CLICK, "2025-01-10"))
    assert state.selected_dates == {"2025-01-10"}
    assert state.expanded_date == "2025-01-10"
    state = run(state, ev(Gesture.CLICK, "2025-01-10"))
    assert state.selected_dates == frozenset()
    assert state.expanded_date is None


@pytest.mark.parametrize("date", ["2025-01-05", "2025-02-03"])
def test_past_or_out_of_view_cells_are_ignored(multi, date):
    outcome = transition(multi, ev(Gesture.CLICK, date), CTX)
    assert outcome.state == multi
    assert outcome.date_clicked is None


def test_ctrl_click_requires_selection_mode():
    state = run(SelectionState(), ev(Gesture.CTRL_CLICK, "2025-01-10"))
    assert state.selected_dates == frozenset()


def test_ctrl_click_toggles_membership(multi):
    state = run(multi, ev(Gesture.CTRL_CLICK, "2025-01-10"), ev(Gesture.CTRL_CLICK, "2025-01-12"))
    assert state.selected_dates == {"2025-01-10", "2025-01-12"}
    assert state.selection_type == SelectionType.multi
    assert state.expanded_date is None
    state = run(state, ev(Gesture.CTRL_CLICK, "2025-01-10"))
    assert state.selected_dates == {"2025-01-12"}


def test_shift_click_unions_range(multi):
    state = run(
        multi,
        ev(Gesture.CTRL_CLICK, "2025-01-20"),
        ev(Gesture.CTRL_CLICK, "2025-01-10"),
        ev(Gesture.SHIFT_CLICK, "2025-01-08"),
    )
    assert state.selected_dates == {"2025-01-20", "2025-01-08", "2025-01-09", "2025-01-10"}
    assert state.selection_type == SelectionType.range
    assert state.last_selected_date == "2025-01-08"


def test_shift_click_without_anchor_acts_as_click(multi):
    state = run(multi, ev(Gesture.SHIFT_CLICK, "2025-01-10"))
    assert state.selected_dates == {"2025-01-10"}


# ── Union law ─────────────────────────────────────────────────────────────────

def test_range_then_ctrl_click_keeps_range(multi):
    state = run(
        multi,
        ev(Gesture.DRAG_START, "2025-01-07"),
        ev(Gesture.DRAG_MOVE, "2025-01-08"),
        ev(Gesture.DRAG_END, "2025-01-09"),
        ev(Gesture.CTRL_CLICK, "2025-01-15"),
    )
    assert state.selected_dates == {"2025-01-07", "2025-01-08", "2025-01-09", "2025-01-15"}


def test_second_drag_adds_to_first(multi):
    state = run(
        multi,
        ev(Gesture.DRAG_START, "2025-01-07"), ev(Gesture.DRAG_END, "2025-01-08"),
        ev(Gesture.DRAG_START, "2025-01-20"), ev(Gesture.DRAG_END, "2025-01-21"),
    )
    assert state.selected_dates == {"2025-01-07", "2025-01-08", "2025-01-20", "2025-01-21"}
    assert state.selection_type == SelectionType.drag
    assert state.drag_start_date is None


# ── Drag / touch ──────────────────────────────────────────────────────────────

def test_drag_backwards_selects_inclusive_range(multi):
    state = run(multi, ev(Gesture.DRAG_START, "2025-01-12"), ev(Gesture.DRAG_END, "2025-01-10"))
    assert state.selected_dates == {"2025-01-10", "2025-01-11", "2025-01-12"}
    assert state.last_selected_date == "2025-01-10"


def test_drag_needs_left_button(multi):
    state = run(multi, ev(Gesture.DRAG_START, "2025-01-10", button=2), ev(Gesture.DRAG_END, "2025-01-12"))
    assert state.selected_dates == frozenset()


def test_drag_end_without_start_is_ignored(multi):
    assert run(multi, ev(Gesture.DRAG_END, "2025-01-12")) == multi


def test_drag_preview_follows_pointer(multi):
    state = run(multi, ev(Gesture.DRAG_START, "2025-01-10"), ev(Gesture.DRAG_MOVE, "2025-01-12"))
    assert drag_preview(state) == ["2025-01-10", "2025-01-11", "2025-01-12"]
    assert state.selected_dates == frozenset()


def test_touch_behaves_like_drag(multi):
    state = run(
        multi,
        ev(Gesture.TOUCH_START, "2025-01-10"),
        ev(Gesture.TOUCH_MOVE, "2025-01-11"),
        ev(Gesture.TOUCH_END, "2025-01-11"),
    )
    assert state.selected_dates == {"2025-01-10", "2025-01-11"}


# ── Hours ─────────────────────────────────────────────────────────────────────

def test_expand_toggles_single_expanded_date():
    state = run(SelectionState(), ev(Gesture.EXPAND, "2025-01-10"))
    assert state.expanded_date == "2025-01-10"
    state = run(state, ev(Gesture.EXPAND, "2025-01-11"))
    assert state.expanded_date == "2025-01-11"
    state = run(state, ev(Gesture.EXPAND, "2025-01-11"))
    assert state.expanded_date is None


def test_expand_is_ignored_for_daily_venues():
    state = run(SelectionState(), ev(Gesture.EXPAND, "2025-01-10"), ctx=DAILY)
    assert state.expanded_date is None


def test_toggle_hour_needs_expanded_date():
    state = run(SelectionState(), ev(Gesture.TOGGLE_HOUR, datetime="2025-01-10T10:00"))
    assert state.selected_hour_slots == frozenset()


def test_hour_slots_survive_changing_expansion():
    state = run(
        SelectionState(),
        ev(Gesture.EXPAND, "2025-01-10"),
        ev(Gesture.TOGGLE_HOUR, datetime="2025-01-10T10:00"),
        ev(Gesture.EXPAND, "2025-01-11"),
        ev(Gesture.TOGGLE_HOUR, datetime="2025-01-11T15:00"),
        ev(Gesture.COLLAPSE),
    )
    assert state.selected_hour_slots == {"2025-01-10T10:00", "2025-01-11T15:00"}
    assert state.expanded_date is None


# ── Clear / replace ───────────────────────────────────────────────────────────

def test_clear_empties_everything(multi):
    state = run(
        multi,
        ev(Gesture.CTRL_CLICK, "2025-01-10"),
        ev(Gesture.EXPAND, "2025-01-10"),
        ev(Gesture.TOGGLE_HOUR, datetime="2025-01-10T10:00"),
        ev(Gesture.DRAG_START, "2025-01-12"),
        ev(Gesture.CLEAR),
    )
    assert state.selected_dates == frozenset()
    assert state.selected_hour_slots == frozenset()
    assert state.last_selected_date is None
    assert state.drag_start_date is None
    assert state.is_selection_mode


def test_select_all_replaces_with_selectable_dates(multi):
    state = run(
        multi,
        ev(Gesture.CTRL_CLICK, "2025-01-20"),
        ev(Gesture.SELECT_ALL, dates=["2025-01-04", "2025-01-07", "2025-01-08"]),
    )
    assert state.selected_dates == {"2025-01-07", "2025-01-08"}


def test_select_range_replaces_selection(multi):
    state = run(
        multi,
        ev(Gesture.CTRL_CLICK, "2025-01-20"),
        ev(Gesture.SELECT_RANGE, range_start="2025-01-09", range_end="2025-01-07"),
    )
    assert state.selected_dates == {"2025-01-07", "2025-01-08", "2025-01-09"}
    assert state.selection_type == SelectionType.range


def test_state_serializes_sorted_lists():
    state = SelectionState(selected_dates=frozenset({"2025-01-09", "2025-01-07"}))
    assert state.model_dump(mode="json")["selected_dates"] == ["2025-01-07", "2025-01-09"]


def test_select_range_drops_past_and_out_of_view_dates(multi):
    state = run(multi, ev(Gesture.SELECT_RANGE, range_start="2025-01-04", range_end="2025-01-07"))
    assert state.selected_dates == {"2025-01-06", "2025-01-07"}

    state = run(multi, ev(Gesture.SELECT_RANGE, range_start="2025-01-30", range_end="2025-02-02"))
    assert state.selected_dates == {"2025-01-30", "2025-01-31"}
