import logging
import secrets
import time
from typing import List, Optional

from sqlalchemy.orm import Session

from eventease.models.registration_model import Registration
from eventease.schema.registration_schema import serialize_registration
from eventease.controller.event_controller import get_event_controller
from eventease.controller.ws_manager import registration_manager
from eventease.database import backend_errors, server_timestamp
from eventease.errors import CapacityExceeded, NotFound, RegistrationClosed, ValidationError

logger = logging.getLogger(__name__)


def generate_ticket_id():
    """
    Time-based ticket number with a random suffix, e.g. TKT-1760870400000-9F2C01AB.

    Uniqueness is probabilistic only; the unique ticket_id column turns a
    collision into a storage error rather than a duplicate ticket.
    """
    return f"TKT-{int(time.time() * 1000)}-{secrets.token_hex(4).upper()}"


# ------------------ Capacity ------------------
async def count_confirmed_registrations(db: Session, event_id: str) -> int:
    with backend_errors(db, "counting registrations"):
        return (
            db.query(Registration)
            .filter(Registration.event_id == event_id, Registration.status == "confirmed")
            .count()
        )


async def get_seat_availability_controller(db: Session, event_id: str) -> dict:
    event = await get_event_controller(db, event_id)
    if not event:
        raise NotFound(f"Event {event_id} not found")
    confirmed = await count_confirmed_registrations(db, event_id)
    return {
        "capacity": event.capacity,
        "confirmed": confirmed,
        "remaining": max(event.capacity - confirmed, 0),
    }


# ------------------ Register for an Event ------------------
async def register_for_event_controller(db: Session, event_id: str, user) -> Registration:
    """
    Claim one seat of `event_id` for the signed-in `user`.

    The confirmed count and the insert are two separate storage calls with no
    lock between them: two attempts racing for the last seat can both pass
    the check and both be written, leaving more confirmed registrations than
    the event's capacity.
    """
    event = await get_event_controller(db, event_id)
    if not event:
        raise NotFound(f"Event {event_id} not found")

    if event.registration_deadline < server_timestamp():
        raise RegistrationClosed(f"Registration for '{event.title}' closed on {event.registration_deadline:%Y-%m-%d}")

    confirmed = await count_confirmed_registrations(db, event_id)
    if confirmed >= event.capacity:
        logger.info(f"Event {event_id} is full ({confirmed}/{event.capacity}), rejecting {user.uid}")
        raise CapacityExceeded(f"'{event.title}' has reached its capacity of {event.capacity}")

    new_registration = Registration(
        event_id=event_id,
        user_id=user.uid,
        user_email=user.email,
        user_name=user.display_name,
        registration_date=server_timestamp(),
        ticket_id=generate_ticket_id(),
        status="confirmed",
        payment_status="unpaid" if event.price > 0 else "paid",
    )
    with backend_errors(db, "registering for event"):
        db.add(new_registration)
        db.commit()
        db.refresh(new_registration)
    logger.info(f"Ticket {new_registration.ticket_id} issued to {user.uid} for event {event_id}")

    await registration_manager.broadcast({
        "event": "new_registration",
        "data": serialize_registration(new_registration),
    })
    return new_registration


async def register(db: Session, event_id: str, user) -> str:
    """Register `user` for `event_id` and return the ticket id."""
    registration = await register_for_event_controller(db, event_id, user)
    return registration.ticket_id


# ------------------ Retrieve Registrations ------------------
async def get_registration_controller(db: Session, registration_id: str) -> Optional[Registration]:
    with backend_errors(db, "getting registration"):
        return db.query(Registration).filter(Registration.id == registration_id).first()


async def get_registration_by_ticket_controller(db: Session, ticket_id: str) -> Optional[Registration]:
    with backend_errors(db, "getting ticket"):
        return db.query(Registration).filter(Registration.ticket_id == ticket_id).first()


async def get_user_registrations_controller(db: Session, user_id: str) -> List[Registration]:
    with backend_errors(db, "getting user registrations"):
        return (
            db.query(Registration)
            .filter(Registration.user_id == user_id)
            .order_by(Registration.registration_date.desc())
            .all()
        )


async def get_event_registrations_controller(db: Session, event_id: str) -> List[Registration]:
    with backend_errors(db, "getting event registrations"):
        return (
            db.query(Registration)
            .filter(Registration.event_id == event_id)
            .order_by(Registration.registration_date.desc())
            .all()
        )


async def require_registration(db: Session, registration_id: str) -> Registration:
    registration = await get_registration_controller(db, registration_id)
    if not registration:
        raise NotFound(f"Registration {registration_id} not found")
    return registration


# ------------------ Feedback ------------------
async def submit_feedback_controller(db: Session, registration_id: str, rating, comment: Optional[str] = "") -> Registration:
    # bool is an int subclass, but True is not a rating
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer from 1 to 5")

    registration = await require_registration(db, registration_id)
    if registration.status == "cancelled":
        raise ValidationError("Cancelled registrations cannot leave feedback")
    event = await get_event_controller(db, registration.event_id)
    now = server_timestamp()
    if event is not None and event.start_date > now:
        raise ValidationError("Feedback opens once the event has started")

    # A second submission replaces the first
    with backend_errors(db, "submitting feedback"):
        registration.feedback_rating = rating
        registration.feedback_comment = comment or ""
        registration.feedback_submitted_at = now
        db.commit()
        db.refresh(registration)
    logger.info(f"Feedback {rating}/5 recorded for registration {registration_id}")
    return registration


# ------------------ Check-in ------------------
async def check_in_controller(db: Session, registration_id: str) -> Registration:
    registration = await require_registration(db, registration_id)
    # Only pending or confirmed registrations can be checked in
    if registration.status == "cancelled":
        raise ValidationError(f"Registration {registration_id} was cancelled")
    with backend_errors(db, "checking in attendee"):
        registration.check_in_time = server_timestamp()
        registration.status = "confirmed"
        db.commit()
        db.refresh(registration)
    logger.info(f"Registration {registration_id} checked in")
    return registration


async def check_in_by_ticket_controller(db: Session, ticket_id: str) -> Registration:
    """Check in the holder of a scanned QR ticket."""
    registration = await get_registration_by_ticket_controller(db, ticket_id)
    if not registration:
        raise NotFound(f"Ticket {ticket_id} not found")
    return await check_in_controller(db, registration.id)


# ------------------ Cancel ------------------
async def cancel_registration_controller(db: Session, registration_id: str) -> Registration:
    registration = await require_registration(db, registration_id)
    event = await get_event_controller(db, registration.event_id)
    with backend_errors(db, "cancelling registration"):
        registration.status = "cancelled"
        if registration.payment_status == "paid" and event is not None and event.price > 0:
            registration.payment_status = "refunded"
        db.commit()
        db.refresh(registration)
    logger.info(f"Registration {registration_id} cancelled")
    return registration
