from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Boolean, JSON
from sqlalchemy.orm import relationship
from eventease.database import Base, generate_id


class Event(Base):
    __tablename__ = "events"

    id = Column(String(32), primary_key=True, default=generate_id)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False)

    # Location, flattened from the {"location": {...}} sub-document
    address = Column(String, nullable=False, default="")
    city = Column(String, nullable=False, default="")
    state = Column(String, nullable=True)
    country = Column(String, nullable=False, default="")
    postal_code = Column(String, nullable=True)
    virtual_link = Column(String, nullable=True)
    is_virtual = Column(Boolean, nullable=False, default=False)

    organizer_id = Column(String(32), nullable=False, index=True)
    organizer_name = Column(String, nullable=False)
    image_url = Column(String, nullable=True)

    capacity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    currency = Column(String(3), nullable=False, default="USD")

    # Category, flattened from the {"type": {...}} sub-document
    category_id = Column(String, nullable=False, index=True)
    category_name = Column(String, nullable=False)
    category_color = Column(String, nullable=False)

    tags = Column(JSON, nullable=False, default=list)
    is_published = Column(Boolean, nullable=False, default=False, index=True)
    registration_deadline = Column(DateTime, nullable=False)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    # Relationships
    registrations = relationship("Registration", back_populates="event", cascade="all, delete-orphan")
