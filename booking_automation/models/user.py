import uuid
from sqlalchemy import Column, String, DateTime, func
from booking_automation.database import Base


class User(Base):
    """Account identity shared by clients and therapists"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), index=True)
    full_name = Column(String(255))
    phone = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), default=func.now())
