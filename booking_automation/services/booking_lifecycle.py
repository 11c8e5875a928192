"""
Booking lifecycle automation
Confirmation, cancellation, meeting link and feedback notifications for a
booking. The external booking API owns status changes and calls in here
afterwards.
"""
import logging
from datetime import datetime
from sqlalchemy.orm import Session, joinedload
from booking_automation.config import settings
from booking_automation.models import Booking, Notification, ScheduledReminder, Therapist
from booking_automation.schemas import BookingAutomationData
from booking_automation.services.clock import format_session_time, utcnow
from booking_automation.services.dispatchers import DispatchResult, send_email, send_sms
from booking_automation.services.meeting_links import MeetingLinkGenerator, get_meeting_link_generator
from booking_automation.services.notification_sink import notify
from booking_automation.services.reminders import schedule_reminders
from booking_automation.services.remote_functions import FunctionInvoker
from booking_automation.services.settle import Settled, settle_all

logger = logging.getLogger(__name__)

LONG_TIME_FORMAT = "%B %d, %Y at %I:%M %p"
SHORT_TIME_FORMAT = "%b %d, %I:%M %p"
NO_REASON = "No reason provided"
LINKED_SESSION_MODES = ("video", "audio")


class BookingNotFoundError(LookupError):
    def __init__(self, booking_id: str):
        super().__init__(f"Booking not found: {booking_id}")
        self.booking_id = booking_id


class BookingCancelledError(Exception):
    def __init__(self, booking_id: str):
        super().__init__(f"Booking {booking_id} is cancelled")
        self.booking_id = booking_id


def build_automation_data(booking: Booking) -> BookingAutomationData:
    """Collect the notification fields for a stored booking and its parties"""
    client = booking.client
    therapist = booking.therapist
    therapist_user = therapist.user if therapist else None

    return BookingAutomationData(
        booking_id=booking.id,
        client_id=booking.client_id,
        therapist_id=booking.therapist_id,
        scheduled_at=booking.scheduled_at,
        client_email=client.email if client else "",
        client_phone=client.phone if client else None,
        client_name=(client.full_name if client else None) or "Client",
        therapist_name=(therapist_user.full_name if therapist_user else None) or "Therapist",
        therapist_phone=therapist.phone if therapist else None,
        service_type=booking.service_type or "",
        session_mode=booking.session_mode or "video",
        meeting_url=booking.meeting_url,
    )


def _therapist_user_id(db: Session, therapist_id: str) -> str | None:
    row = db.query(Therapist.user_id).filter(Therapist.id == therapist_id).first()
    return row.user_id if row else None


def send_booking_confirmation(
    db: Session,
    data: BookingAutomationData,
    invoker: FunctionInvoker | None = None,
) -> list[Settled]:
    """
    Notify both parties that a booking is confirmed.

    Client in-app notification, therapist in-app notification, client email
    and client SMS run in that order. None of them can fail the confirmation.
    """
    logger.info("Sending booking confirmation for: %s", data.booking_id)
    try:
        when = format_session_time(data.scheduled_at, LONG_TIME_FORMAT)

        def notify_therapist():
            therapist_user_id = _therapist_user_id(db, data.therapist_id)
            if not therapist_user_id:
                logger.info("No linked user for therapist %s, skipping notification", data.therapist_id)
                return None
            return notify(
                db,
                therapist_user_id,
                "booking_confirmed",
                "New Booking Received",
                f"{data.client_name} has booked a session for {when}",
                link="/dashboard/therapist",
                metadata={
                    "booking_id": data.booking_id,
                    "client_name": data.client_name,
                    "scheduled_at": data.scheduled_at.isoformat(),
                },
            )

        tasks = [
            ("client notification", lambda: notify(
                db,
                data.client_id,
                "booking_confirmed",
                "Booking Confirmed",
                f"Your session with {data.therapist_name} is confirmed for {when}",
                link="/dashboard",
                metadata={
                    "booking_id": data.booking_id,
                    "therapist_name": data.therapist_name,
                    "scheduled_at": data.scheduled_at.isoformat(),
                },
            )),
            ("therapist notification", notify_therapist),
            ("confirmation email", lambda: send_email(
                data.client_email,
                f"Booking Confirmation - {settings.brand_name}",
                "booking_confirmation",
                {
                    "clientName": data.client_name,
                    "therapistName": data.therapist_name,
                    "scheduledAt": when,
                    "serviceType": data.service_type,
                    "sessionMode": data.session_mode,
                    "meetingUrl": data.meeting_url or "",
                    "bookingId": data.booking_id,
                },
                invoker=invoker,
            )),
        ]
        if data.client_phone:
            short_when = format_session_time(data.scheduled_at, SHORT_TIME_FORMAT)
            tasks.append(("confirmation sms", lambda: send_sms(
                data.client_phone,
                f"Booking Confirmed! Your session with {data.therapist_name} on {short_when}. "
                "Meeting link will be sent before the session.",
                invoker=invoker,
            )))

        results = settle_all(tasks)
    except Exception:
        logger.exception("Error sending booking confirmation for %s", data.booking_id)
        return []

    logger.info("Booking confirmation sent for %s", data.booking_id)
    return results


def send_meeting_link(
    db: Session,
    data: BookingAutomationData,
    meeting_url: str,
    invoker: FunctionInvoker | None = None,
) -> list[Settled]:
    """Send the join link to the client in-app, by email and by SMS"""
    logger.info("Sending meeting link for booking: %s", data.booking_id)
    when = format_session_time(data.scheduled_at, LONG_TIME_FORMAT)

    tasks = [
        ("link notification", lambda: notify(
            db,
            data.client_id,
            "session_link",
            "Your Session Link is Ready",
            f"Click to join your session with {data.therapist_name}",
            link=meeting_url,
            metadata={"booking_id": data.booking_id, "meeting_url": meeting_url},
        )),
        ("link email", lambda: send_email(
            data.client_email,
            f"Your Session Link - {settings.brand_name}",
            "meeting_link",
            {
                "clientName": data.client_name,
                "therapistName": data.therapist_name,
                "scheduledAt": when,
                "meetingUrl": meeting_url,
            },
            invoker=invoker,
        )),
    ]
    if data.client_phone:
        tasks.append(("link sms", lambda: send_sms(
            data.client_phone,
            f"Your session with {data.therapist_name} starts soon! Join here: {meeting_url}",
            invoker=invoker,
        )))

    return settle_all(tasks)


def send_session_reminder_sms(
    client_phone: str,
    client_name: str,
    therapist_name: str,
    scheduled_at: datetime,
    meeting_url: str | None,
    minutes_before: int,
    invoker: FunctionInvoker | None = None,
) -> DispatchResult:
    """Send the reminder SMS worded for how far away the session is"""
    time_str = format_session_time(scheduled_at, "%I:%M %p")
    brand = settings.brand_name

    if minutes_before >= 60 * 24:
        message = (
            f"Hi {client_name}, this is a reminder for your session with {therapist_name} "
            f"tomorrow at {time_str}. We look forward to seeing you! - {brand}"
        )
    elif minutes_before >= 60:
        join = f"Join here: {meeting_url}" if meeting_url else "Your meeting link will follow shortly."
        message = (
            f"Hi {client_name}, your session with {therapist_name} starts in 1 hour "
            f"at {time_str}. {join} - {brand}"
        )
    else:
        join = f"Join now: {meeting_url}" if meeting_url else "Please be ready to join."
        message = f"Hi {client_name}, your session starts in {minutes_before} minutes. {join} - {brand}"

    return send_sms(client_phone, message, invoker=invoker)


def handle_booking_cancellation(
    db: Session,
    booking_id: str,
    cancelled_by: str,
    reason: str | None = None,
    invoker: FunctionInvoker | None = None,
) -> Booking:
    """
    Cancel a booking and notify the other party.

    Raises BookingNotFoundError for an unknown booking. Unlike confirmation,
    any failure here reaches the caller.
    """
    if cancelled_by not in ("client", "therapist"):
        raise ValueError(f"cancelled_by must be 'client' or 'therapist', got {cancelled_by!r}")

    logger.info("Processing cancellation for booking: %s", booking_id)
    try:
        booking = (
            db.query(Booking)
            .options(
                joinedload(Booking.client),
                joinedload(Booking.therapist).joinedload(Therapist.user),
            )
            .filter(Booking.id == booking_id)
            .first()
        )
        if not booking:
            raise BookingNotFoundError(booking_id)

        booking.status = "cancelled"
        booking.updated_at = utcnow()
        db.commit()

        when = format_session_time(booking.scheduled_at, LONG_TIME_FORMAT)
        client = booking.client
        metadata = {"booking_id": booking_id, "reason": reason or NO_REASON}

        if cancelled_by == "client":
            therapist_user_id = booking.therapist.user_id if booking.therapist else None
            if therapist_user_id:
                notify(
                    db,
                    therapist_user_id,
                    "booking_cancelled",
                    "Booking Cancelled",
                    f"{client.full_name} has cancelled the session scheduled for {when}",
                    link="/dashboard/therapist",
                    metadata=metadata,
                )
            else:
                logger.warning("Booking %s has no therapist user to notify", booking_id)
        else:
            notify(
                db,
                client.id,
                "booking_cancelled",
                "Booking Cancelled",
                f"Your therapist has cancelled the session scheduled for {when}",
                link="/dashboard",
                metadata=metadata,
            )
            send_email(
                client.email,
                f"Session Cancelled - {settings.brand_name}",
                "booking_cancelled",
                {
                    "clientName": client.full_name,
                    "scheduledAt": when,
                    "reason": reason or "No specific reason provided",
                },
                invoker=invoker,
            )
    except Exception:
        db.rollback()
        logger.exception("Error processing cancellation for booking %s", booking_id)
        raise

    logger.info("Cancellation processed for booking %s", booking_id)
    return booking


def send_feedback_request(db: Session, booking_id: str) -> Notification | None:
    """Ask the client for feedback; a missing booking is a silent no-op"""
    try:
        booking = (
            db.query(Booking)
            .options(joinedload(Booking.client))
            .filter(Booking.id == booking_id)
            .first()
        )
        if not booking:
            return None

        notification = notify(
            db,
            booking.client_id,
            "feedback_request",
            "How was your session?",
            "We'd love to hear your feedback about your recent therapy session",
            link=f"/booking/{booking_id}/feedback",
            metadata={"booking_id": booking_id},
        )
    except Exception as e:
        logger.error("Error sending feedback request for booking %s: %s", booking_id, e)
        return None

    logger.info("Feedback request sent for booking %s", booking_id)
    return notification


def process_confirmed_booking(
    db: Session,
    booking_id: str,
    invoker: FunctionInvoker | None = None,
    link_generator: MeetingLinkGenerator | None = None,
) -> tuple[BookingAutomationData, list[ScheduledReminder]]:
    """
    Run everything that follows a confirmation: meeting link for video and
    audio sessions, confirmation fan-out, then reminders.
    """
    booking = (
        db.query(Booking)
        .options(
            joinedload(Booking.client),
            joinedload(Booking.therapist).joinedload(Therapist.user),
        )
        .filter(Booking.id == booking_id)
        .first()
    )
    if not booking:
        raise BookingNotFoundError(booking_id)
    if booking.status == "cancelled":
        raise BookingCancelledError(booking_id)

    data = build_automation_data(booking)
    if data.session_mode in LINKED_SESSION_MODES and not data.meeting_url:
        generator = link_generator or get_meeting_link_generator()
        data = data.model_copy(update={"meeting_url": generator.generate(db, booking_id)})

    send_booking_confirmation(db, data, invoker=invoker)
    reminders = schedule_reminders(db, data)
    return data, reminders
