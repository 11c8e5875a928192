"""
Meeting link generation for video and audio sessions
"""
import logging
import time
from typing import Callable
from sqlalchemy.orm import Session
from booking_automation.config import settings
from booking_automation.models import Booking

logger = logging.getLogger(__name__)

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def build_room_id(booking_id: str, now_ms: int) -> str:
    return f"session-{booking_id[:8]}-{to_base36(now_ms)}"


class MeetingLinkGenerator:
    """Creates a room for a booking and stores its join URL"""

    def __init__(self, base_url: str, clock: Callable[[], int] = epoch_millis):
        self.base_url = base_url.rstrip("/")
        self.clock = clock

    def meeting_url(self, room_id: str) -> str:
        return f"{self.base_url}/video-call/{room_id}"

    def generate(self, db: Session, booking_id: str) -> str:
        """
        Generate a room id for the booking and persist it.

        The URL is returned even when the booking update fails, since it is
        derived from the inputs alone.
        """
        room_id = build_room_id(booking_id, self.clock())
        url = self.meeting_url(room_id)

        try:
            updated = (
                db.query(Booking)
                .filter(Booking.id == booking_id)
                .update(
                    {
                        Booking.video_room_id: room_id,
                        Booking.room_id: room_id,
                        Booking.meeting_url: url,
                    },
                    synchronize_session="fetch",
                )
            )
            db.commit()
            if not updated:
                logger.error("Failed to update booking %s with meeting URL: booking not found", booking_id)
        except Exception as e:
            db.rollback()
            logger.error("Failed to update booking %s with meeting URL: %s", booking_id, e)

        return url


def get_meeting_link_generator() -> MeetingLinkGenerator:
    return MeetingLinkGenerator(settings.app_base_url)
