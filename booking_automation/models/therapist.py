import uuid
from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship
from booking_automation.database import Base


class Therapist(Base):
    """Therapist profile, linked to the user account that receives notifications"""
    __tablename__ = "therapists"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    phone = Column(String(20), nullable=True)

    # Relationships
    user = relationship("User")
