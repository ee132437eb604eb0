import logging
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import or_, func, case
from sqlalchemy.orm import Session

from eventease.models.event_model import Event
from eventease.models.registration_model import Registration
from eventease.schema.event_schema import EventCreate, event_columns, serialize_event, to_naive_utc
from eventease.controller.ws_manager import event_manager
from eventease.database import backend_errors, server_timestamp
from eventease.errors import NotFound, validation_error_from

logger = logging.getLogger(__name__)

# Server-assigned fields a caller can never write
PROTECTED_FIELDS = ("id", "created_at", "updated_at")


def validate_event_document(document: dict) -> EventCreate:
    try:
        return EventCreate.model_validate(document)
    except PydanticValidationError as e:
        raise validation_error_from(e) from e


# ------------------ Create Event ------------------
async def create_event_controller(db: Session, event_data: dict) -> Event:
    document = validate_event_document(
        {k: v for k, v in event_data.items() if k not in PROTECTED_FIELDS}
    )
    now = server_timestamp()
    new_event = Event(**event_columns(document), created_at=now, updated_at=now)

    with backend_errors(db, "creating event"):
        db.add(new_event)
        db.commit()
        db.refresh(new_event)
    logger.info(f"Event {new_event.id} created by organizer {new_event.organizer_id}")

    if new_event.is_published:
        await event_manager.broadcast({"event": "new_event", "data": serialize_event(new_event)})

    return new_event


async def create_event(db: Session, event_data: dict) -> str:
    """Create an event and return its generated id."""
    new_event = await create_event_controller(db, event_data)
    return new_event.id


# ------------------ Retrieve Event by id ------------------
async def get_event_controller(db: Session, event_id: str) -> Optional[Event]:
    with backend_errors(db, "getting event"):
        return db.query(Event).filter(Event.id == event_id).first()


# ------------------ Update Event ------------------
async def update_event_controller(db: Session, event_id: str, update_data: dict) -> Event:
    event = await get_event_controller(db, event_id)
    if not event:
        raise NotFound(f"Event {event_id} not found")

    # Merge onto the stored document, then re-check the invariants on the result
    document = serialize_event(event)
    for key in PROTECTED_FIELDS:
        document.pop(key)
    document.update({k: v for k, v in update_data.items() if k not in PROTECTED_FIELDS})
    merged = validate_event_document(document)

    with backend_errors(db, "updating event"):
        for key, val in event_columns(merged).items():
            setattr(event, key, val)
        event.updated_at = max(server_timestamp(), event.updated_at)
        db.commit()
        db.refresh(event)
    logger.info(f"Event {event.id} updated ({', '.join(sorted(update_data)) or 'no fields'})")

    if event.is_published:
        await event_manager.broadcast({"event": "event_updated", "data": serialize_event(event)})

    return event


# ------------------ Delete Event ------------------
async def delete_event_controller(db: Session, event_id: str) -> dict:
    event = await get_event_controller(db, event_id)
    if not event:
        raise NotFound(f"Event {event_id} not found")

    deleted = serialize_event(event)
    with backend_errors(db, "deleting event"):
        db.delete(event)
        db.commit()
    logger.info(f"Event {event_id} deleted")

    await event_manager.broadcast({"event": "event_deleted", "data": {"id": event_id}})
    return deleted


# ------------------ Retrieve Events with filters ------------------
def filtered_events_query(
    db: Session,
    organizer_id: Optional[str] = None,
    is_published: Optional[bool] = None,
    from_date: Optional[datetime] = None,
    category_id: Optional[str] = None,
):
    query = db.query(Event)
    if organizer_id:
        query = query.filter(Event.organizer_id == organizer_id)
    if is_published is not None:
        query = query.filter(Event.is_published == is_published)
    if from_date:
        query = query.filter(Event.start_date >= to_naive_utc(from_date))
    if category_id:
        query = query.filter(Event.category_id == category_id)
    return query


async def list_events_controller(
    db: Session,
    organizer_id: Optional[str] = None,
    is_published: Optional[bool] = None,
    from_date: Optional[datetime] = None,
    category_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Event]:
    """
    Events matching every given filter, earliest start first.

    At most `limit` rows are returned and there is no continuation token, so
    two calls may overlap or skip rows if events change in between.
    """
    query = filtered_events_query(db, organizer_id, is_published, from_date, category_id)
    query = query.order_by(Event.start_date.asc())
    if limit:
        query = query.limit(limit)
    with backend_errors(db, "getting events"):
        return query.all()


# ------------------ Keyword search ------------------
async def search_events_controller(
    db: Session,
    keyword: str,
    is_published: Optional[bool] = True,
    from_date: Optional[datetime] = None,
    category_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Event]:
    # autoescape keeps % and _ in the keyword literal
    keyword = keyword.strip()
    query = filtered_events_query(db, None, is_published, from_date, category_id).filter(
        or_(
            Event.title.icontains(keyword, autoescape=True),
            Event.description.icontains(keyword, autoescape=True),
            Event.city.icontains(keyword, autoescape=True),
            Event.country.icontains(keyword, autoescape=True),
            Event.category_name.icontains(keyword, autoescape=True),
        )
    )
    query = query.order_by(Event.start_date.asc())
    if limit:
        query = query.limit(limit)
    with backend_errors(db, "searching events"):
        return query.all()


# ------------------ Organizer dashboard ------------------
async def get_organizer_stats_controller(db: Session, organizer_id: str) -> dict:
    now = server_timestamp()
    with backend_errors(db, "getting organizer stats"):
        event_stats = (
            db.query(
                func.count(Event.id).label("total_events"),
                func.sum(case((Event.start_date > now, 1), else_=0)).label("upcoming_events"),
                func.sum(case((Event.is_published.is_(False), 1), else_=0)).label("draft_events"),
            )
            .filter(Event.organizer_id == organizer_id)
            .first()
        )
        registration_stats = (
            db.query(
                func.count(Registration.id).label("total_registrations"),
                func.sum(
                    case((Registration.payment_status == "paid", Event.price), else_=0.0)
                ).label("total_revenue"),
            )
            .join(Event, Registration.event_id == Event.id)
            .filter(
                Event.organizer_id == organizer_id,
                Registration.status == "confirmed",
            )
            .first()
        )

    return {
        "total_events": event_stats.total_events or 0,
        "upcoming_events": int(event_stats.upcoming_events or 0),
        "draft_events": int(event_stats.draft_events or 0),
        "total_registrations": registration_stats.total_registrations or 0,
        "total_revenue": float(registration_stats.total_revenue or 0.0),
    }
