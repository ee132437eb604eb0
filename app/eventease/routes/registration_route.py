from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from eventease.controller.event_controller import get_event_controller
from eventease.controller.registration_controller import (
    cancel_registration_controller,
    check_in_by_ticket_controller,
    check_in_controller,
    get_registration_by_ticket_controller,
    get_user_registrations_controller,
    register_for_event_controller,
    require_registration,
    submit_feedback_controller,
)
from eventease.controller.ticket_controller import build_ticket_qr, get_ticket_controller
from eventease.controller.ticket_sender import send_ticket_email
from eventease.controller.ws_manager import registration_manager
from eventease import constant_file
from eventease.database import get_db
from eventease.deps import get_current_session, require_owner
from eventease.errors import Forbidden, NotFound
from eventease.response_model import ResponseModel
from eventease.schema.event_schema import serialize_event
from eventease.schema.registration_schema import FeedbackIn, serialize_registration
from eventease.session import SessionPrincipal

router = APIRouter()


async def require_event_staff(db: Session, event_id: str, principal: SessionPrincipal):
    event = await get_event_controller(db, event_id)
    if not event:
        raise NotFound(f"Event {event_id} not found")
    require_owner(principal, event)
    return event


def require_holder(principal: SessionPrincipal, registration):
    if registration.user_id != principal.uid:
        raise Forbidden("This registration belongs to someone else")


# ----------------------- Register for an Event -----------------------
@router.post("/register/{event_id}", response_description="Register for an event")
async def register_for_event(
    event_id: str,
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    registration = await register_for_event_controller(db, event_id, principal)

    if constant_file.send_emails:
        event = await get_event_controller(db, event_id)
        location = "Online" if event.is_virtual else f"{event.address}, {event.city}, {event.country}"
        await send_ticket_email(
            email=registration.user_email,
            user_name=registration.user_name,
            event_title=event.title,
            event_location=location,
            start_date=event.start_date,
            ticket_id=registration.ticket_id,
            qr_data=build_ticket_qr(registration.ticket_id),
        )

    return ResponseModel(
        {
            "registration_id": registration.id,
            "ticket_id": registration.ticket_id,
            "registration": serialize_registration(registration),
        },
        "Registration successful",
    )


# ----------------------- My registrations -----------------------
@router.get("/mine", response_description="Registrations of the signed-in user")
async def get_my_registrations(
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    registrations = await get_user_registrations_controller(db, principal.uid)
    data = []
    for registration in registrations:
        event = await get_event_controller(db, registration.event_id)
        entry = serialize_registration(registration)
        entry["event"] = serialize_event(event) if event else None
        data.append(entry)
    return ResponseModel(data, "Registrations retrieved successfully")


# ----------------------- Ticket view -----------------------
@router.get("/ticket/{ticket_id}", response_description="Ticket with QR code")
async def get_ticket(
    ticket_id: str,
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    registration = await get_registration_by_ticket_controller(db, ticket_id)
    if not registration:
        raise NotFound(f"Ticket {ticket_id} not found")
    if registration.user_id != principal.uid:
        await require_event_staff(db, registration.event_id, principal)

    ticket = await get_ticket_controller(db, ticket_id)
    return ResponseModel(ticket, "Ticket retrieved successfully")


# ----------------------- Feedback -----------------------
@router.put("/feedback/{registration_id}", response_description="Leave feedback")
async def submit_feedback(
    registration_id: str,
    feedback: FeedbackIn,
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    registration = await require_registration(db, registration_id)
    require_holder(principal, registration)
    registration = await submit_feedback_controller(db, registration_id, feedback.rating, feedback.comment)
    return ResponseModel(serialize_registration(registration), "Feedback submitted successfully")


# ----------------------- Check-in -----------------------
@router.put("/check_in/{registration_id}", response_description="Check in an attendee")
async def check_in(
    registration_id: str,
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    registration = await require_registration(db, registration_id)
    await require_event_staff(db, registration.event_id, principal)
    registration = await check_in_controller(db, registration_id)
    return ResponseModel(serialize_registration(registration), "Attendee checked in")


@router.put("/scan/{ticket_id}", response_description="Check in from a scanned ticket")
async def scan_ticket(
    ticket_id: str,
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    registration = await get_registration_by_ticket_controller(db, ticket_id)
    if not registration:
        raise NotFound(f"Ticket {ticket_id} not found")
    await require_event_staff(db, registration.event_id, principal)
    registration = await check_in_by_ticket_controller(db, ticket_id)
    return ResponseModel(serialize_registration(registration), "Ticket verified")


# ----------------------- Cancel -----------------------
@router.put("/cancel/{registration_id}", response_description="Cancel a registration")
async def cancel_registration(
    registration_id: str,
    principal: SessionPrincipal = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    registration = await require_registration(db, registration_id)
    if registration.user_id != principal.uid:
        await require_event_staff(db, registration.event_id, principal)
    registration = await cancel_registration_controller(db, registration_id)
    return ResponseModel(serialize_registration(registration), "Registration cancelled")


# ----------------------- WEBSOCKET -----------------------
@router.websocket("/ws/registrations")
async def websocket_registrations(websocket: WebSocket):
    await registration_manager.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        registration_manager.disconnect(websocket)


__all__ = ["router"]
