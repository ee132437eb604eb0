from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from eventease.database import Base, generate_id

USER_ROLES = ("admin", "organizer", "participant")


class User(Base):
    __tablename__ = "users"

    uid = Column(String(32), primary_key=True, default=generate_id)
    email = Column(String, nullable=False, unique=True, index=True)
    display_name = Column(String, nullable=False)
    role = Column(String(16), nullable=False, default="participant")
    password_hash = Column(String, nullable=False)
    photo_url = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")
