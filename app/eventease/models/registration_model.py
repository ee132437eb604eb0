from sqlalchemy import CheckConstraint, Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from eventease.database import Base, generate_id

REGISTRATION_STATUSES = ("confirmed", "cancelled", "pending")
PAYMENT_STATUSES = ("paid", "unpaid", "refunded")


def one_of(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(value) for value in values)})"


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        CheckConstraint(one_of("status", REGISTRATION_STATUSES), name="ck_registrations_status"),
        CheckConstraint(one_of("payment_status", PAYMENT_STATUSES), name="ck_registrations_payment_status"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    event_id = Column(String(32), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    # Denormalized copy of the participant's identity at registration time
    user_id = Column(String(32), nullable=False, index=True)
    user_email = Column(String, nullable=False)
    user_name = Column(String, nullable=False)

    registration_date = Column(DateTime, nullable=False)
    ticket_id = Column(String, nullable=False, unique=True, index=True)
    status = Column(String(16), nullable=False, default="confirmed")
    payment_status = Column(String(16), nullable=True)
    check_in_time = Column(DateTime, nullable=True)

    # Feedback sub-record; all three are set together or not at all
    feedback_rating = Column(Integer, nullable=True)
    feedback_comment = Column(Text, nullable=True)
    feedback_submitted_at = Column(DateTime, nullable=True)

    # Relationships
    event = relationship("Event", back_populates="registrations")
