from __future__ import annotations

from fastapi import APIRouter

from venue_availability.schemas.selection import SelectionEventRequest, SelectionEventResponse
from venue_availability.services.selection import drag_preview, transition

router = APIRouter(prefix="/selection", tags=["selection"])


@router.post("/events", response_model=SelectionEventResponse)
async def apply_selection_event(body: SelectionEventRequest):
    outcome = transition(body.state, body.event, body.context)
    return SelectionEventResponse(
        state=outcome.state,
        date_clicked=outcome.date_clicked,
        drag_preview=drag_preview(outcome.state),
    )
