from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime, timezone


def to_naive_utc(value):
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class EventLocation(BaseModel):
    address: str = ""
    city: str = ""
    state: Optional[str] = None
    country: str = ""
    postal_code: Optional[str] = None
    virtual_link: Optional[str] = None
    is_virtual: bool = False

    @model_validator(mode="after")
    def check_physical_address(self):
        if not self.is_virtual:
            missing = [name for name in ("address", "city", "country") if not getattr(self, name).strip()]
            if missing:
                raise ValueError(f"In-person events require {', '.join(missing)}")
        return self


class EventType(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    color: str = "#3B82F6"


class EventIn(BaseModel):
    """Event fields an organizer submits; the organizer identity comes from the session."""
    title: str = Field(..., min_length=1)
    description: str = ""
    start_date: datetime
    end_date: datetime
    location: EventLocation
    image_url: Optional[str] = None
    capacity: int = Field(..., ge=1)
    price: float = Field(0.0, ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    type: EventType
    tags: List[str] = Field(default_factory=list)
    is_published: bool = False
    registration_deadline: datetime

    class Config:
        extra = "ignore"

    @field_validator("start_date", "end_date", "registration_deadline", mode="after")
    @classmethod
    def normalize_timestamps(cls, value):
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventCreate(EventIn):
    organizer_id: str = Field(..., min_length=1)
    organizer_name: str = Field(..., min_length=1)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[EventLocation] = None
    image_url: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    type: Optional[EventType] = None
    tags: Optional[List[str]] = None
    is_published: Optional[bool] = None
    registration_deadline: Optional[datetime] = None

    class Config:
        extra = "ignore"

    @field_validator("start_date", "end_date", "registration_deadline", mode="after")
    @classmethod
    def normalize_timestamps(cls, value):
        return to_naive_utc(value)


# ------------------ Mapping between table rows and event documents ------------------
def event_columns(document: EventCreate) -> dict:
    """Flatten a validated event document into Event column values."""
    data = document.model_dump()
    location = data.pop("location")
    category = data.pop("type")
    data.update(location)
    data["category_id"] = category["id"]
    data["category_name"] = category["name"]
    data["category_color"] = category["color"]
    return data


def serialize_event(event) -> dict:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "start_date": event.start_date,
        "end_date": event.end_date,
        "location": {
            "address": event.address,
            "city": event.city,
            "state": event.state,
            "country": event.country,
            "postal_code": event.postal_code,
            "virtual_link": event.virtual_link,
            "is_virtual": event.is_virtual,
        },
        "organizer_id": event.organizer_id,
        "organizer_name": event.organizer_name,
        "image_url": event.image_url,
        "capacity": event.capacity,
        "price": event.price,
        "currency": event.currency,
        "type": {
            "id": event.category_id,
            "name": event.category_name,
            "color": event.category_color,
        },
        "tags": list(event.tags or []),
        "is_published": event.is_published,
        "registration_deadline": event.registration_deadline,
        "created_at": event.created_at,
        "updated_at": event.updated_at,
    }
