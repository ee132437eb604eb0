from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from eventease.database import Base


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    token = Column(String(64), primary_key=True)
    uid = Column(String(32), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)

    # Relationships
    user = relationship("User", back_populates="sessions")
