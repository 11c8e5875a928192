"""
Reminder scheduling
Persists one pending reminder per offset for the reminder dispatch job
"""
import logging
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from booking_automation.models import ScheduledReminder
from booking_automation.schemas import BookingAutomationData
from booking_automation.services.clock import as_utc, format_session_time, utcnow
from booking_automation.services.settle import settle_all

logger = logging.getLogger(__name__)

REMINDER_OFFSETS = {
    "24h": timedelta(hours=24),
    "1h": timedelta(hours=1),
}


def reminder_message(data: BookingAutomationData, reminder_type: str) -> str:
    if reminder_type == "24h":
        return (
            f"Reminder: Your therapy session with {data.therapist_name} is tomorrow "
            f"at {format_session_time(data.scheduled_at, '%I:%M %p')}"
        )
    link_text = f"Join here: {data.meeting_url}" if data.meeting_url else "Meeting link will be sent shortly."
    return f"Your session starts in 1 hour. {link_text}"


def _persist_reminder(
    db: Session,
    data: BookingAutomationData,
    reminder_type: str,
    send_at: datetime,
) -> ScheduledReminder | None:
    existing = (
        db.query(ScheduledReminder)
        .filter(
            ScheduledReminder.booking_id == data.booking_id,
            ScheduledReminder.reminder_type == reminder_type,
        )
        .first()
    )
    if existing:
        logger.info("%s reminder already scheduled for booking %s", reminder_type, data.booking_id)
        return None

    reminder = ScheduledReminder(
        booking_id=data.booking_id,
        send_at=send_at,
        reminder_type=reminder_type,
        client_id=data.client_id,
        therapist_id=data.therapist_id,
        message=reminder_message(data, reminder_type),
        include_meeting_link=reminder_type == "1h",
        status="pending",
    )
    try:
        db.add(reminder)
        db.commit()
        db.refresh(reminder)
    except Exception:
        db.rollback()
        raise

    logger.info("Scheduled %s reminder for booking %s at %s", reminder_type, data.booking_id, send_at.isoformat())
    return reminder


def schedule_reminders(
    db: Session,
    data: BookingAutomationData,
    now: datetime | None = None,
) -> list[ScheduledReminder]:
    """
    Schedule the 24-hour and 1-hour reminders for a confirmed booking.

    Offsets that already lie in the past are skipped. Each insert is
    independent; failures are logged and never raised.
    """
    now = as_utc(now) if now else utcnow()
    scheduled_time = as_utc(data.scheduled_at)

    tasks = []
    for reminder_type, offset in REMINDER_OFFSETS.items():
        send_at = scheduled_time - offset
        if send_at <= now:
            logger.debug("Skipping %s reminder for booking %s: already past", reminder_type, data.booking_id)
            continue
        tasks.append((
            f"{reminder_type} reminder",
            lambda reminder_type=reminder_type, send_at=send_at: _persist_reminder(db, data, reminder_type, send_at),
        ))

    results = settle_all(tasks)
    return [result.value for result in results if result.ok and result.value is not None]
