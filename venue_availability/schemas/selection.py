from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from venue_availability.services.selection import SelectionContext, SelectionEvent, SelectionState


class SelectionEventRequest(BaseModel):
    """The client holds the selection; it posts it back with every gesture."""
    state: SelectionState = SelectionState()
    event: SelectionEvent
    context: SelectionContext


class SelectionEventResponse(BaseModel):
    state: SelectionState
    date_clicked: Optional[str] = None
    drag_preview: list[str] = []
