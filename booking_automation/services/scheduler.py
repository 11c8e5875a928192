"""
APScheduler Service
Dispatches due session reminders and sends feedback requests
"""
import logging
from datetime import datetime, timedelta
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload
from booking_automation.config import settings
from booking_automation.database import SessionLocal
from booking_automation.models import Booking, ScheduledReminder, Therapist
from booking_automation.services.booking_lifecycle import (
    LONG_TIME_FORMAT,
    send_feedback_request,
    send_session_reminder_sms,
)
from booking_automation.services.clock import as_utc, format_session_time, utcnow
from booking_automation.services.dispatchers import send_email
from booking_automation.services.notification_sink import notify
from booking_automation.services.remote_functions import FunctionInvoker

logger = logging.getLogger(__name__)

REMINDER_MINUTES_BEFORE = {"24h": 24 * 60, "1h": 60}
FEEDBACK_WINDOW = timedelta(days=2)


def _deliver_reminder(
    db: Session,
    reminder: ScheduledReminder,
    booking: Booking,
    invoker: FunctionInvoker | None,
):
    """In-app notification is required; SMS and email are best-effort"""
    client = booking.client
    therapist_user = booking.therapist.user if booking.therapist else None
    therapist_name = (therapist_user.full_name if therapist_user else None) or "your therapist"
    meeting_url = booking.meeting_url if reminder.include_meeting_link else None

    message = reminder.message
    if meeting_url and meeting_url not in message:
        message = f"{message} Join here: {meeting_url}"

    title = (
        "Your session is tomorrow" if reminder.reminder_type == "24h"
        else "Your session starts in 1 hour"
    )
    notify(
        db,
        reminder.client_id,
        "booking_reminder",
        title,
        message,
        link=meeting_url or "/dashboard",
        metadata={"booking_id": booking.id, "reminder_type": reminder.reminder_type},
    )

    if client and client.phone:
        send_session_reminder_sms(
            client.phone,
            client.full_name or "there",
            therapist_name,
            booking.scheduled_at,
            meeting_url,
            REMINDER_MINUTES_BEFORE.get(reminder.reminder_type, 60),
            invoker=invoker,
        )

    if client and client.email:
        subject = (
            "Reminder: Your therapy session is tomorrow" if reminder.reminder_type == "24h"
            else "Starting Soon: Your therapy session begins in 1 hour"
        )
        send_email(
            client.email,
            subject,
            "session_reminder",
            {
                "clientName": client.full_name,
                "therapistName": therapist_name,
                "scheduledAt": format_session_time(booking.scheduled_at, LONG_TIME_FORMAT),
                "meetingUrl": meeting_url or "",
                "reminderType": reminder.reminder_type,
            },
            invoker=invoker,
        )


def dispatch_due_reminders(
    db: Session,
    now: datetime | None = None,
    invoker: FunctionInvoker | None = None,
) -> dict:
    """
    Send every pending reminder whose send_at has passed.

    Reminders for bookings that are no longer confirmed are marked failed.
    """
    now = as_utc(now) if now else utcnow()
    due = (
        db.query(ScheduledReminder)
        .options(
            joinedload(ScheduledReminder.booking).joinedload(Booking.client),
            joinedload(ScheduledReminder.booking).joinedload(Booking.therapist).joinedload(Therapist.user),
        )
        .filter(
            ScheduledReminder.status == "pending",
            ScheduledReminder.send_at <= now,
        )
        .order_by(ScheduledReminder.send_at)
        .all()
    )

    sent = 0
    failed = 0
    for reminder in due:
        booking = reminder.booking
        if booking is None or booking.status != "confirmed":
            reminder.status = "failed"
            reminder.last_error = f"booking {booking.status if booking else 'missing'}"
            db.commit()
            failed += 1
            continue

        if as_utc(booking.scheduled_at) <= now:
            reminder.status = "failed"
            reminder.last_error = "session already started"
            db.commit()
            failed += 1
            logger.warning(
                "Skipping %s reminder for booking %s: session already started",
                reminder.reminder_type,
                booking.id,
            )
            continue

        try:
            _deliver_reminder(db, reminder, booking, invoker)
            reminder.status = "sent"
            reminder.sent_at = now
            reminder.last_error = None
            db.commit()
            sent += 1
            logger.info("Reminder %s sent for booking %s", reminder.reminder_type, booking.id)
        except Exception as e:
            db.rollback()
            reminder.status = "failed"
            reminder.last_error = str(e)
            db.commit()
            failed += 1
            logger.error("Error sending reminder %s for booking %s: %s", reminder.id, reminder.booking_id, e)

    if due:
        logger.info("Reminders processed: %d sent, %d failed", sent, failed)
    return {"sent": sent, "failed": failed}


def request_feedback_for_completed(db: Session, now: datetime | None = None) -> int:
    """Send feedback requests for sessions completed in the last two days"""
    now = as_utc(now) if now else utcnow()
    bookings = (
        db.query(Booking)
        .filter(
            Booking.status == "completed",
            Booking.scheduled_at < now,
            Booking.scheduled_at >= now - FEEDBACK_WINDOW,
            or_(Booking.feedback_requested.is_(False), Booking.feedback_requested.is_(None)),
        )
        .all()
    )

    requested = 0
    for booking in bookings:
        if send_feedback_request(db, booking.id) is not None:
            booking.feedback_requested = True
            db.commit()
            requested += 1
    return requested


class SchedulerService:
    """Service to manage background scheduler tasks"""

    def __init__(self):
        self.scheduler = BackgroundScheduler(timezone="UTC")
        self._setup_jobs()

    def _setup_jobs(self):
        """Setup all background jobs"""
        self.scheduler.add_job(
            self._dispatch_reminders,
            IntervalTrigger(minutes=settings.reminder_poll_minutes),
            id="session_reminders",
            name="Dispatch session reminders",
            replace_existing=True
        )

        self.scheduler.add_job(
            self._send_feedback_requests,
            IntervalTrigger(minutes=settings.feedback_poll_minutes),
            id="feedback_requests",
            name="Send feedback requests",
            replace_existing=True
        )

    def _dispatch_reminders(self):
        try:
            db = SessionLocal()
            try:
                dispatch_due_reminders(db)
            finally:
                db.close()
        except Exception as e:
            logger.error("Error in session reminders job: %s", e)

    def _send_feedback_requests(self):
        try:
            db = SessionLocal()
            try:
                requested = request_feedback_for_completed(db)
                if requested:
                    logger.info("Feedback requested for %d bookings", requested)
            finally:
                db.close()
        except Exception as e:
            logger.error("Error in feedback requests job: %s", e)

    def start(self):
        """Start the scheduler"""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")


# Global scheduler instance
_scheduler_service = None


def get_scheduler() -> SchedulerService:
    """Get or create scheduler instance"""
    global _scheduler_service
    if _scheduler_service is None:
        _scheduler_service = SchedulerService()
    return _scheduler_service


def start_scheduler():
    """Start the background scheduler"""
    scheduler = get_scheduler()
    scheduler.start()


def stop_scheduler():
    """Stop the background scheduler"""
    scheduler = get_scheduler()
    scheduler.stop()
