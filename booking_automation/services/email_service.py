"""
Email Service using Resend
Backs the "send-email" remote function
"""
import logging
import resend
from booking_automation.config import settings
from booking_automation.services.email_templates import render_template

logger = logging.getLogger(__name__)


def send_email_function(body: dict) -> dict:
    """
    Handler for the "send-email" remote function.

    Without a Resend API key the email is only logged and reported as a
    development-mode success.
    """
    to = body.get("to")
    subject = body.get("subject")
    template = body.get("template")
    if not to or not subject or not template:
        return {"success": False, "error": "Missing required fields: to, subject, template"}

    try:
        html = render_template(template, body.get("data") or {}, settings.brand_name)
    except KeyError:
        return {"success": False, "error": f"Unknown email template: {template}"}

    if not settings.resend_api_key:
        logger.info("Email (dev mode) to=%s subject=%r template=%s", to, subject, template)
        return {"success": True, "mode": "development"}

    resend.api_key = settings.resend_api_key
    try:
        response = resend.Emails.send({
            "from": body.get("from") or settings.email_from_address,
            "to": [to],
            "subject": subject,
            "html": html,
        })
    except Exception as e:
        return {"success": False, "error": str(e)}

    logger.info("Email sent via Resend to %s", to)
    return {"success": True, "id": response.get("id") if isinstance(response, dict) else None}
