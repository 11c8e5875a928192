"""
In-app notification sink
"""
import logging
from sqlalchemy.orm import Session
from booking_automation.models import Notification

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    recipient_id: str,
    type: str,
    title: str,
    message: str,
    link: str | None = None,
    metadata: dict | None = None,
) -> Notification:
    """
    Write one unread notification for a user.

    Raises whatever the database raises; the session is rolled back first so
    the caller can keep using it.
    """
    notification = Notification(
        user_id=recipient_id,
        type=type,
        title=title,
        message=message,
        link=link or None,
        meta=metadata or {},
        is_read=False,
    )
    try:
        db.add(notification)
        db.commit()
        db.refresh(notification)
    except Exception:
        db.rollback()
        raise

    logger.debug("Notification %s (%s) created for user %s", notification.id, type, recipient_id)
    return notification
