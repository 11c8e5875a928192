import uuid
from sqlalchemy import Column, String, DateTime, Text, Boolean, JSON, ForeignKey, func
from booking_automation.database import Base


class Notification(Base):
    """In-app notification for one recipient"""
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), index=True)
    type = Column(String(50), index=True)  # booking_confirmed, booking_cancelled, session_link, ...
    title = Column(String(255))
    message = Column(Text)
    link = Column(String(500), nullable=True)
    meta = Column("metadata", JSON, default=dict)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=func.now(), index=True)
