from booking_automation.models.user import User
from booking_automation.models.therapist import Therapist
from booking_automation.models.booking import Booking
from booking_automation.models.notification import Notification
from booking_automation.models.scheduled_reminder import ScheduledReminder

__all__ = ["User", "Therapist", "Booking", "Notification", "ScheduledReminder"]
