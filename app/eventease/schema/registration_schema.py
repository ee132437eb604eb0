from pydantic import BaseModel, Field
from typing import Optional


class FeedbackIn(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = ""

    class Config:
        extra = "ignore"


def serialize_registration(registration) -> dict:
    feedback = None
    if registration.feedback_submitted_at is not None:
        feedback = {
            "rating": registration.feedback_rating,
            "comment": registration.feedback_comment,
            "submitted_at": registration.feedback_submitted_at,
        }
    return {
        "id": registration.id,
        "event_id": registration.event_id,
        "user_id": registration.user_id,
        "user_email": registration.user_email,
        "user_name": registration.user_name,
        "registration_date": registration.registration_date,
        "ticket_id": registration.ticket_id,
        "status": registration.status,
        "payment_status": registration.payment_status,
        "check_in_time": registration.check_in_time,
        "feedback": feedback,
    }
