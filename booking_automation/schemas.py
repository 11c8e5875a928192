from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, field_validator
from booking_automation.services.clock import parse_scheduled_at

SessionMode = Literal["video", "audio", "chat", "in_person"]
CancellingParty = Literal["client", "therapist"]


class BookingAutomationData(BaseModel):
    """Everything the notification workflows need to know about one booking"""

    booking_id: str
    client_id: str
    therapist_id: str
    scheduled_at: datetime
    client_email: str
    client_phone: Optional[str] = None
    client_name: str
    therapist_name: str
    therapist_phone: Optional[str] = None
    service_type: str
    session_mode: SessionMode
    meeting_url: Optional[str] = None

    @field_validator("scheduled_at", mode="before")
    @classmethod
    def _scheduled_at_utc(cls, value) -> datetime:
        return parse_scheduled_at(value)


class CancelRequest(BaseModel):
    cancelled_by: CancellingParty
    reason: Optional[str] = None


class NotificationOut(BaseModel):
    id: str
    type: str
    title: str
    message: str
    link: Optional[str] = None
    metadata: dict = {}
    is_read: bool
    created_at: Optional[datetime] = None


class ConfirmationResponse(BaseModel):
    booking_id: str
    meeting_url: Optional[str] = None
    reminders_scheduled: list[str]
