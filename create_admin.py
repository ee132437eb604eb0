#!/usr/bin/env python3
"""
Script to provision an admin account.
Admins cannot sign up through the API; run this once per admin.

    python create_admin.py admin@example.com "Site Admin"
"""
import asyncio
import getpass
import logging
import sys

from eventease.controller.user_controller import register_user, retrieve_user_by_email
from eventease.database import Base, SessionLocal, engine
from eventease.errors import EventEaseError
from eventease.models.user_model import User
from eventease.models.auth_session_model import AuthSession
from eventease.models.otp_records_model import OTPRecord
from eventease.models.event_model import Event
from eventease.models.registration_model import Registration

logger = logging.getLogger("create_admin")


async def create_admin(email: str, display_name: str, password: str):
    """Create the admin, or promote an existing account with that email"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = await retrieve_user_by_email(db, email)
        if user:
            user.role = "admin"
            db.commit()
            logger.info(f"Promoted {email} to admin")
            return user.uid

        principal = await register_user(db, email, password, display_name, role="admin")
        logger.info(f"Created admin {email}")
        return principal.uid
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(2)
    try:
        asyncio.run(create_admin(sys.argv[1], sys.argv[2], getpass.getpass("Password: ")))
    except EventEaseError as e:
        logger.error(f"Failed to create admin: {e.message}")
        sys.exit(1)
