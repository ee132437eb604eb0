#!/usr/bin/env python3
"""
Script to create database tables
Run this after the database is created to set up all tables
"""
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from eventease.database import Base, engine
from eventease.models.user_model import User
from eventease.models.auth_session_model import AuthSession
from eventease.models.otp_records_model import OTPRecord
from eventease.models.event_model import Event
from eventease.models.registration_model import Registration

logger = logging.getLogger("create_tables")


def create_tables():
    """Create all database tables"""
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Error creating tables: {e}")
        return False


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(0 if create_tables() else 1)
