from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from eventease.controller.user_controller import resolve_session
from eventease.database import get_db
from eventease.errors import Forbidden
from eventease.session import SessionPrincipal


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_session(
    token: Optional[str] = Depends(bearer_token),
    db: Session = Depends(get_db),
) -> SessionPrincipal:
    return await resolve_session(db, token)


async def get_current_organizer(
    principal: SessionPrincipal = Depends(get_current_session),
) -> SessionPrincipal:
    if not principal.is_organizer:
        raise Forbidden("Only organizers can manage events")
    return principal


def require_owner(principal: SessionPrincipal, event):
    """Organizers manage their own events; admins manage any."""
    if not principal.is_admin and event.organizer_id != principal.uid:
        raise Forbidden("Only the event's organizer can do this")
