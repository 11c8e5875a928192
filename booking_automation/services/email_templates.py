"""
HTML email templates for booking emails
"""
from html import escape

_FOOTER = (
    '<p style="color: #64748B; font-size: 12px; margin-top: 30px;">'
    "{brand} | Mental Wellness</p>"
)


def _layout(brand: str, heading: str, body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #1E293B;">{escape(heading)}</h2>'
        f"{body}"
        f"{_FOOTER.format(brand=escape(brand))}"
        "</div>"
    )


def _details(rows: list[tuple[str, str]]) -> str:
    items = "".join(
        f"<p><strong>{escape(label)}:</strong> {escape(str(value))}</p>"
        for label, value in rows
        if value
    )
    return f'<div style="background: #F0F9FF; padding: 20px; border-radius: 12px; margin: 20px 0;">{items}</div>'


def _join_button(url: str) -> str:
    if not url:
        return ""
    safe_url = escape(url, quote=True)
    return (
        f'<p><a href="{safe_url}" style="background: #0EA5E9; color: #fff; padding: 12px 20px; '
        f'border-radius: 8px; text-decoration: none;">Join session</a></p>'
    )


def booking_confirmation_template(data: dict, brand: str) -> str:
    body = (
        f"<p>Hi {escape(data.get('clientName') or 'there')},</p>"
        "<p>Your session is confirmed.</p>"
        + _details([
            ("Therapist", data.get("therapistName", "")),
            ("Date & Time", data.get("scheduledAt", "")),
            ("Service", data.get("serviceType", "")),
            ("Mode", data.get("sessionMode", "")),
            ("Booking", data.get("bookingId", "")),
        ])
        + _join_button(data.get("meetingUrl", ""))
    )
    return _layout(brand, "Booking Confirmed", body)


def booking_cancelled_template(data: dict, brand: str) -> str:
    body = (
        f"<p>Hi {escape(data.get('clientName') or 'there')},</p>"
        "<p>Your session has been cancelled.</p>"
        + _details([
            ("Date & Time", data.get("scheduledAt", "")),
            ("Reason", data.get("reason", "")),
        ])
    )
    return _layout(brand, "Session Cancelled", body)


def meeting_link_template(data: dict, brand: str) -> str:
    body = (
        f"<p>Hi {escape(data.get('clientName') or 'there')},</p>"
        f"<p>Your session with {escape(data.get('therapistName') or 'your therapist')} is ready to join.</p>"
        + _details([("Date & Time", data.get("scheduledAt", ""))])
        + _join_button(data.get("meetingUrl", ""))
    )
    return _layout(brand, "Your Session Link", body)


def session_reminder_template(data: dict, brand: str) -> str:
    when = "tomorrow" if data.get("reminderType") == "24h" else "starting in about 1 hour"
    body = (
        f"<p>Hi {escape(data.get('clientName') or 'there')},</p>"
        f"<p>This is a reminder that your therapy session is {when}.</p>"
        + _details([
            ("Date & Time", data.get("scheduledAt", "")),
            ("Therapist", data.get("therapistName", "")),
        ])
        + _join_button(data.get("meetingUrl", ""))
        + "<p>Please ensure you're in a quiet, private space with a stable internet connection.</p>"
    )
    return _layout(brand, "Session Reminder", body)


TEMPLATES = {
    "booking_confirmation": booking_confirmation_template,
    "booking_cancelled": booking_cancelled_template,
    "meeting_link": meeting_link_template,
    "session_reminder": session_reminder_template,
}


def render_template(template: str, data: dict, brand: str) -> str:
    """Render a named template; unknown names raise KeyError"""
    return TEMPLATES[template](data, brand)
