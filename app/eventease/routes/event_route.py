from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from eventease.controller.event_controller import (
    create_event_controller,
    delete_event_controller,
    get_event_controller,
    get_organizer_stats_controller,
    list_events_controller,
    search_events_controller,
    update_event_controller,
)
from eventease.controller.registration_controller import (
    get_event_registrations_controller,
    get_seat_availability_controller,
)
from eventease.controller.ws_manager import event_manager
from eventease.database import get_db
from eventease.deps import get_current_organizer, get_current_session, require_owner
from eventease.errors import NotFound
from eventease.response_model import ResponseModel
from eventease.schema.event_schema import EventIn, EventUpdate, serialize_event
from eventease.schema.registration_schema import serialize_registration
from eventease.session import SessionPrincipal

router = APIRouter()


async def owned_event(db: Session, event_id: str, principal: SessionPrincipal):
    event = await get_event_controller(db, event_id)
    if not event:
        raise NotFound(f"Event {event_id} not found")
    require_owner(principal, event)
    return event


# ----------------------- ADD Event -----------------------
@router.post("/add", response_description="Create a new event")
async def add_event_data(
    event_in: EventIn,
    principal: SessionPrincipal = Depends(get_current_organizer),
    db: Session = Depends(get_db),
):
    event_data = event_in.model_dump()
    event_data["organizer_id"] = principal.uid
    event_data["organizer_name"] = principal.display_name
    new_event = await create_event_controller(db, event_data)
    return ResponseModel(serialize_event(new_event), "Event created successfully")


# ----------------------- GET Events (filtered) -----------------------
@router.get("/all", response_description="Retrieve events")
async def get_events(
    organizer_id: Optional[str] = None,
    is_published: Optional[bool] = None,
    from_date: Optional[datetime] = None,
    category_id: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
):
    events = await list_events_controller(
        db,
        organizer_id=organizer_id,
        is_published=is_published,
        from_date=from_date,
        category_id=category_id,
        limit=limit,
    )
    return ResponseModel([serialize_event(event) for event in events], "Events retrieved successfully")


# ----------------------- SEARCH Events -----------------------
@router.get("/search/{keyword}", response_description="Events matching a keyword")
async def search_events(
    keyword: str,
    from_date: Optional[datetime] = None,
    category_id: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
):
    events = await search_events_controller(
        db, keyword, from_date=from_date, category_id=category_id, limit=limit
    )
    return ResponseModel([serialize_event(event) for event in events], "Events filtered successfully")


# ----------------------- Organizer dashboard -----------------------
@router.get("/organizer/stats", response_description="Organizer dashboard figures")
async def get_organizer_stats(
    principal: SessionPrincipal = Depends(get_current_organizer),
    db: Session = Depends(get_db),
):
    stats = await get_organizer_stats_controller(db, principal.uid)
    return ResponseModel(stats, "Organizer stats retrieved successfully")


# ----------------------- WEBSOCKET -----------------------
@router.websocket("/ws/events")
async def websocket_events(websocket: WebSocket):
    await event_manager.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        event_manager.disconnect(websocket)


# ----------------------- GET Event -----------------------
@router.get("/{event_id}", response_description="Retrieve one event")
async def get_event(event_id: str, db: Session = Depends(get_db)):
    event = await get_event_controller(db, event_id)
    if not event:
        raise NotFound(f"Event {event_id} not found")
    return ResponseModel(serialize_event(event), "Event retrieved successfully")


# ------------------ Update Event ------------------
@router.put("/update/{event_id}", response_description="Updated event successfully")
async def update_event(
    event_id: str,
    update_data: EventUpdate,
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    await owned_event(db, event_id, principal)
    updated_event = await update_event_controller(db, event_id, update_data.model_dump(exclude_unset=True))
    return ResponseModel(serialize_event(updated_event), "Event updated successfully")


# ------------------ Delete Event ------------------
@router.delete("/{event_id}", response_description="Deleted event successfully")
async def delete_event(
    event_id: str,
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    await owned_event(db, event_id, principal)
    deleted_event = await delete_event_controller(db, event_id)
    return ResponseModel(deleted_event, "Event deleted successfully")


# ------------------ Registrations of an Event ------------------
@router.get("/{event_id}/registrations", response_description="Registrations for one event")
async def get_event_registrations(
    event_id: str,
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    await owned_event(db, event_id, principal)
    registrations = await get_event_registrations_controller(db, event_id)
    return ResponseModel(
        [serialize_registration(registration) for registration in registrations],
        "Registrations retrieved successfully",
    )


# ------------------ Seat availability ------------------
@router.get("/{event_id}/seats", response_description="Remaining seats")
async def get_event_seats(event_id: str, db: Session = Depends(get_db)):
    seats = await get_seat_availability_controller(db, event_id)
    return ResponseModel(seats, "Retrieved event seats")


__all__ = ["router"]
