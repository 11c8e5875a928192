from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload
from booking_automation.config import settings
from booking_automation.database import get_db
from booking_automation.models import Booking, Notification, Therapist
from booking_automation.schemas import CancelRequest, ConfirmationResponse, NotificationOut
from booking_automation.services.booking_lifecycle import (
    BookingCancelledError,
    BookingNotFoundError,
    build_automation_data,
    handle_booking_cancellation,
    process_confirmed_booking,
    send_feedback_request,
    send_meeting_link,
)
from booking_automation.services.meeting_links import get_meeting_link_generator

router = APIRouter()


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "ok", "app": settings.app_name}


@router.post("/bookings/{booking_id}/confirm", response_model=ConfirmationResponse)
def confirm_booking(booking_id: str, db: Session = Depends(get_db)):
    """
    Run the post-confirmation automation for a booking.

    - Generate a meeting link for video/audio sessions that lack one
    - Notify client and therapist
    - Schedule the 24h and 1h reminders
    """
    try:
        data, reminders = process_confirmed_booking(db, booking_id)
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Booking not found")
    except BookingCancelledError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ConfirmationResponse(
        booking_id=booking_id,
        meeting_url=data.meeting_url,
        reminders_scheduled=[reminder.reminder_type for reminder in reminders],
    )


@router.post("/bookings/{booking_id}/cancel")
def cancel_booking(booking_id: str, request: CancelRequest, db: Session = Depends(get_db)):
    """Cancel a booking and notify the other party"""
    try:
        booking = handle_booking_cancellation(db, booking_id, request.cancelled_by, request.reason)
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Booking not found")

    return {"booking_id": booking.id, "status": booking.status}


@router.post("/bookings/{booking_id}/feedback-request")
def request_feedback(booking_id: str, db: Session = Depends(get_db)):
    """Ask the client for session feedback"""
    notification = send_feedback_request(db, booking_id)
    return {"booking_id": booking_id, "sent": notification is not None}


@router.post("/bookings/{booking_id}/meeting-link")
def create_meeting_link(booking_id: str, db: Session = Depends(get_db)):
    """Generate a meeting link and send it to the client"""
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
        raise HTTPException(status_code=404, detail="Booking not found")

    data = build_automation_data(booking)
    meeting_url = get_meeting_link_generator().generate(db, booking_id)
    results = send_meeting_link(db, data, meeting_url)

    return {
        "booking_id": booking_id,
        "meeting_url": meeting_url,
        "delivered": [result.label for result in results if result.ok],
    }


@router.get("/users/{user_id}/notifications", response_model=list[NotificationOut])
def list_notifications(user_id: str, unread_only: bool = False, db: Session = Depends(get_db)):
    """Get a user's notifications, newest first"""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    notifications = query.order_by(Notification.created_at.desc()).all()
    return [
        NotificationOut(
            id=n.id,
            type=n.type,
            title=n.title,
            message=n.message,
            link=n.link,
            metadata=n.meta or {},
            is_read=n.is_read,
            created_at=n.created_at,
        )
        for n in notifications
    ]
