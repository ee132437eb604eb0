from contextlib import contextmanager
from datetime import datetime, timezone
import logging
import uuid

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from eventease.constant_file import DATABASE_URL
from eventease.errors import BackendUnavailable

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# SQLAlchemy setup
engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def generate_id():
    """Document id for new events, registrations and users."""
    return uuid.uuid4().hex


def server_timestamp():
    # Naive UTC, which is what the DateTime columns store on every backend
    return datetime.now(timezone.utc).replace(tzinfo=None)


@contextmanager
def backend_errors(db, action: str):
    """Roll back and surface storage failures as BackendUnavailable."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error {action}: {e}")
        raise BackendUnavailable(f"Error {action}") from e


# Dependency for FastAPI routes
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
