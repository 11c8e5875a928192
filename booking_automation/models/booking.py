import uuid
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, false, func
from sqlalchemy.orm import relationship
from booking_automation.database import Base


class Booking(Base):
    """A scheduled session between a client and a therapist"""
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    client_id = Column(String(36), ForeignKey("users.id"), index=True)
    therapist_id = Column(String(36), ForeignKey("therapists.id"), index=True)
    scheduled_at = Column(DateTime(timezone=True), index=True)
    service_type = Column(String(100))
    session_mode = Column(String(20), default="video")  # video | audio | chat | in_person
    status = Column(String(20), default="pending", index=True)  # pending | confirmed | cancelled | completed

    # Written by the meeting link generator; room_id mirrors video_room_id
    video_room_id = Column(String(100), nullable=True)
    room_id = Column(String(100), nullable=True)
    meeting_url = Column(String(500), nullable=True)

    feedback_requested = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    # Relationships
    client = relationship("User", foreign_keys=[client_id])
    therapist = relationship("Therapist", foreign_keys=[therapist_id])
    reminders = relationship("ScheduledReminder", back_populates="booking", cascade="all, delete-orphan")
