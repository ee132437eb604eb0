import base64
import logging
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_H
from sqlalchemy.orm import Session

from eventease.controller.event_controller import get_event_controller
from eventease.controller.registration_controller import get_registration_by_ticket_controller
from eventease.schema.event_schema import serialize_event
from eventease.schema.registration_schema import serialize_registration
from eventease.errors import NotFound

logger = logging.getLogger(__name__)


def build_ticket_qr(ticket_id: str) -> str:
    """PNG of a QR code holding the ticket id, base64 encoded."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, box_size=10, border=4)
    qr.add_data(ticket_id)
    qr.make(fit=True)
    qr_img = qr.make_image()

    buffered = BytesIO()
    qr_img.save(buffered, format="PNG")
    return base64.b64encode(buffered.getvalue()).decode("utf-8")


async def get_ticket_controller(db: Session, ticket_id: str) -> dict:
    """Everything the ticket view shows: the registration, its event and the QR image."""
    registration = await get_registration_by_ticket_controller(db, ticket_id)
    if not registration:
        raise NotFound(f"Ticket {ticket_id} not found")

    event = await get_event_controller(db, registration.event_id)
    if not event:
        raise NotFound(f"Event {registration.event_id} for ticket {ticket_id} not found")

    return {
        "ticket_id": ticket_id,
        "registration": serialize_registration(registration),
        "event": serialize_event(event),
        "qr_data": build_ticket_qr(ticket_id),
    }
