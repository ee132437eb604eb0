from sqlalchemy import Column, Integer, String, DateTime
from eventease.database import Base


class OTPRecord(Base):
    __tablename__ = "otp_records"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(32), nullable=False, index=True)   # uid of the user resetting the password

    otp = Column(String(6), nullable=False)
    failed_attempts = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False)
