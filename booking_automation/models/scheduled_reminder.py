import uuid
from sqlalchemy import Column, String, DateTime, Text, Boolean, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from booking_automation.database import Base


class ScheduledReminder(Base):
    """Pending reminder for a booking, picked up by the reminder dispatch job"""
    __tablename__ = "scheduled_reminders"
    __table_args__ = (
        UniqueConstraint("booking_id", "reminder_type", name="uq_scheduled_reminders_booking_type"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    booking_id = Column(String(36), ForeignKey("bookings.id"), index=True)
    send_at = Column(DateTime(timezone=True), index=True)
    reminder_type = Column(String(10))  # "24h" or "1h"
    client_id = Column(String(36), ForeignKey("users.id"))
    therapist_id = Column(String(36), ForeignKey("therapists.id"))
    message = Column(Text)
    include_meeting_link = Column(Boolean, default=False)
    status = Column(String(20), default="pending", index=True)  # pending | sent | failed
    sent_at = Column(DateTime(timezone=True), nullable=True)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=func.now())

    # Relationships
    booking = relationship("Booking", back_populates="reminders")
