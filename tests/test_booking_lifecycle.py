"""
Unit tests for booking lifecycle automation
"""
import pytest
from booking_automation.models import Booking, Notification, ScheduledReminder
from booking_automation.schemas import BookingAutomationData
from booking_automation.services import booking_lifecycle
from booking_automation.services.booking_lifecycle import (
    BookingCancelledError,
    BookingNotFoundError,
    build_automation_data,
    handle_booking_cancellation,
    process_confirmed_booking,
    send_booking_confirmation,
    send_feedback_request,
    send_meeting_link,
    send_session_reminder_sms,
)
from booking_automation.services.meeting_links import MeetingLinkGenerator


def _notifications(db, **filters):
    query = db.query(Notification)
    for column, value in filters.items():
        query = query.filter(getattr(Notification, column) == value)
    return query.all()


class TestBookingConfirmation:
    """Test confirmation fan-out"""

    def test_notifies_client_and_therapist(self, test_db_session, sample_booking, sample_therapist, invoker):
        data = build_automation_data(sample_booking)

        send_booking_confirmation(test_db_session, data, invoker=invoker)

        client_notes = _notifications(test_db_session, user_id=data.client_id)
        therapist_notes = _notifications(test_db_session, user_id=sample_therapist.user_id)
        assert len(client_notes) == 1
        assert client_notes[0].type == "booking_confirmed"
        assert client_notes[0].title == "Booking Confirmed"
        assert client_notes[0].is_read is False
        assert client_notes[0].meta["booking_id"] == data.booking_id
        assert len(therapist_notes) == 1
        assert therapist_notes[0].title == "New Booking Received"
        assert "Asha Rao" in therapist_notes[0].message

    def test_sends_email_and_sms(self, test_db_session, sample_booking, invoker):
        data = build_automation_data(sample_booking)

        send_booking_confirmation(test_db_session, data, invoker=invoker)

        emails = invoker.calls_to("send-email")
        texts = invoker.calls_to("send-sms")
        assert len(emails) == 1
        assert emails[0]["to"] == "asha@example.com"
        assert emails[0]["template"] == "booking_confirmation"
        assert emails[0]["subject"] == "Booking Confirmation - The 3 Tree"
        assert len(texts) == 1
        assert texts[0]["to"] == "+919876543210"
        assert texts[0]["message"].startswith("Booking Confirmed!")

    def test_no_phone_means_no_sms(self, test_db_session, sample_booking, sample_client, invoker):
        sample_client.phone = None
        test_db_session.commit()
        data = build_automation_data(sample_booking)

        send_booking_confirmation(test_db_session, data, invoker=invoker)

        assert invoker.calls_to("send-sms") == []

    def test_email_dispatcher_raising_does_not_fail_confirmation(
        self, test_db_session, sample_booking, invoker, monkeypatch
    ):
        def broken_email(*args, **kwargs):
            raise RuntimeError("email provider exploded")

        monkeypatch.setattr(booking_lifecycle, "send_email", broken_email)
        data = build_automation_data(sample_booking)

        results = send_booking_confirmation(test_db_session, data, invoker=invoker)

        assert len(_notifications(test_db_session, user_id=data.client_id)) == 1
        assert {r.label: r.ok for r in results}["confirmation email"] is False
        assert len(invoker.calls_to("send-sms")) == 1

    def test_failing_providers_are_tolerated(self, test_db_session, sample_booking, failing_invoker):
        data = build_automation_data(sample_booking)

        results = send_booking_confirmation(test_db_session, data, invoker=failing_invoker)

        assert all(result.ok for result in results)
        assert len(_notifications(test_db_session, user_id=data.client_id)) == 1

    def test_therapist_lookup_failure_skips_therapist(
        self, test_db_session, sample_booking, sample_therapist, invoker, monkeypatch
    ):
        def broken_lookup(db, therapist_id):
            raise RuntimeError("therapists table unavailable")

        monkeypatch.setattr(booking_lifecycle, "_therapist_user_id", broken_lookup)
        data = build_automation_data(sample_booking)

        send_booking_confirmation(test_db_session, data, invoker=invoker)

        assert len(_notifications(test_db_session, user_id=data.client_id)) == 1
        assert _notifications(test_db_session, user_id=sample_therapist.user_id) == []
        assert len(invoker.calls_to("send-email")) == 1

    def test_therapist_without_user_is_skipped(self, test_db_session, sample_booking, sample_therapist, invoker):
        sample_therapist.user_id = None
        test_db_session.commit()
        data = build_automation_data(sample_booking)

        send_booking_confirmation(test_db_session, data, invoker=invoker)

        assert test_db_session.query(Notification).count() == 1


class TestBookingCancellation:
    """Test cancellation fan-out"""

    def test_client_cancellation_notifies_therapist_only(
        self, test_db_session, sample_booking, sample_therapist, invoker
    ):
        handle_booking_cancellation(test_db_session, sample_booking.id, "client", invoker=invoker)

        notifications = test_db_session.query(Notification).all()
        assert len(notifications) == 1
        assert notifications[0].user_id == sample_therapist.user_id
        assert notifications[0].type == "booking_cancelled"
        assert notifications[0].meta["reason"] == "No reason provided"
        assert invoker.calls == []

    def test_therapist_cancellation_notifies_and_emails_client(
        self, test_db_session, sample_booking, sample_client, invoker
    ):
        handle_booking_cancellation(
            test_db_session, sample_booking.id, "therapist", reason="Unwell", invoker=invoker
        )

        notifications = test_db_session.query(Notification).all()
        assert len(notifications) == 1
        assert notifications[0].user_id == sample_client.id
        assert notifications[0].meta["reason"] == "Unwell"

        emails = invoker.calls_to("send-email")
        assert len(emails) == 1
        assert emails[0]["template"] == "booking_cancelled"
        assert emails[0]["to"] == "asha@example.com"
        assert emails[0]["data"]["reason"] == "Unwell"

    def test_status_is_cancelled(self, test_db_session, sample_booking, invoker):
        handle_booking_cancellation(test_db_session, sample_booking.id, "client", invoker=invoker)

        booking = test_db_session.query(Booking).filter(Booking.id == sample_booking.id).first()
        assert booking.status == "cancelled"

    def test_missing_booking_raises(self, test_db_session, invoker):
        with pytest.raises(BookingNotFoundError):
            handle_booking_cancellation(test_db_session, "does-not-exist", "client", invoker=invoker)

    def test_unknown_party_raises(self, test_db_session, sample_booking, invoker):
        with pytest.raises(ValueError):
            handle_booking_cancellation(test_db_session, sample_booking.id, "admin", invoker=invoker)

    def test_status_update_failure_propagates(self, test_db_session, sample_booking, invoker, monkeypatch):
        def broken_commit():
            raise RuntimeError("write failed")

        monkeypatch.setattr(test_db_session, "commit", broken_commit)

        with pytest.raises(RuntimeError):
            handle_booking_cancellation(test_db_session, sample_booking.id, "client", invoker=invoker)


class TestFeedbackRequest:
    """Test feedback request"""

    def test_sends_feedback_notification(self, test_db_session, sample_booking, sample_client):
        notification = send_feedback_request(test_db_session, sample_booking.id)

        assert notification is not None
        assert notification.user_id == sample_client.id
        assert notification.type == "feedback_request"
        assert notification.link == f"/booking/{sample_booking.id}/feedback"

    def test_missing_booking_is_silent(self, test_db_session):
        assert send_feedback_request(test_db_session, "does-not-exist") is None
        assert test_db_session.query(Notification).count() == 0


class TestMeetingLinkDelivery:
    """Test meeting link notification and session reminder SMS"""

    def test_send_meeting_link(self, test_db_session, sample_booking, invoker):
        data = build_automation_data(sample_booking)
        url = "https://app.test/video-call/session-abcdef12-xyz"

        send_meeting_link(test_db_session, data, url, invoker=invoker)

        notification = test_db_session.query(Notification).one()
        assert notification.type == "session_link"
        assert notification.link == url
        assert invoker.calls_to("send-email")[0]["template"] == "meeting_link"
        assert url in invoker.calls_to("send-sms")[0]["message"]

    @pytest.mark.parametrize(
        "minutes_before, expected",
        [
            (24 * 60, "tomorrow at"),
            (60, "starts in 1 hour"),
            (15, "starts in 15 minutes"),
        ],
    )
    def test_reminder_sms_wording(self, sample_booking, invoker, minutes_before, expected):
        result = send_session_reminder_sms(
            "9876543210",
            "Asha",
            "Dr. Mehta",
            sample_booking.scheduled_at,
            "https://app.test/video-call/room",
            minutes_before,
            invoker=invoker,
        )

        assert result.success is True
        message = invoker.calls_to("send-sms")[0]["message"]
        assert expected in message
        assert message.endswith("- The 3 Tree")


class TestProcessConfirmedBooking:
    """Test the full post-confirmation flow"""

    def test_video_booking_gets_link_and_reminders(self, test_db_session, sample_booking, invoker):
        generator = MeetingLinkGenerator("https://app.test", clock=lambda: 1_700_000_000_000)

        data, reminders = process_confirmed_booking(
            test_db_session, sample_booking.id, invoker=invoker, link_generator=generator
        )

        assert data.meeting_url.startswith("https://app.test/video-call/session-abcdef12-")
        assert sorted(reminder.reminder_type for reminder in reminders) == ["1h", "24h"]
        assert test_db_session.query(ScheduledReminder).count() == 2
        assert invoker.calls_to("send-email")[0]["data"]["meetingUrl"] == data.meeting_url

    def test_in_person_booking_has_no_link(self, test_db_session, make_booking, invoker):
        booking = make_booking(session_mode="in_person")
        generator = MeetingLinkGenerator("https://app.test")

        data, _ = process_confirmed_booking(
            test_db_session, booking.id, invoker=invoker, link_generator=generator
        )

        assert data.meeting_url is None

    def test_cancelled_booking_is_rejected(self, test_db_session, make_booking, invoker):
        booking = make_booking(status="cancelled")

        with pytest.raises(BookingCancelledError):
            process_confirmed_booking(test_db_session, booking.id, invoker=invoker)


class TestAutomationData:
    """Test booking automation payload"""

    def test_iso_string_scheduled_at_is_utc(self):
        data = BookingAutomationData(
            booking_id="b-1",
            client_id="c-1",
            therapist_id="t-1",
            scheduled_at="2026-03-01T10:30:00+05:30",
            client_email="asha@example.com",
            client_name="Asha Rao",
            therapist_name="Dr. Mehta",
            service_type="individual_therapy",
            session_mode="video",
        )

        assert data.scheduled_at.utcoffset().total_seconds() == 0
        assert data.scheduled_at.hour == 5
        assert data.scheduled_at.minute == 0
