"""
Email and SMS channel dispatchers

Both are best-effort: delivery problems come back as a failed DispatchResult
and are never raised to the caller.
"""
import logging
from dataclasses import dataclass
from booking_automation.services.phone import normalize_phone
from booking_automation.services.remote_functions import FunctionInvoker, get_function_invoker

logger = logging.getLogger(__name__)

SMS_UNAVAILABLE = "SMS service not available"
EMAIL_UNAVAILABLE = "Email service not available"


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    error: str | None = None
    response: dict | None = None


def send_email(
    to: str,
    subject: str,
    template: str,
    data: dict,
    invoker: FunctionInvoker | None = None,
) -> DispatchResult:
    """Send a templated email through the "send-email" function"""
    logger.info("Email to=%s subject=%r template=%s data=%s", to, subject, template, data)

    try:
        invoker = invoker or get_function_invoker()
        response = invoker.invoke(
            "send-email",
            {"to": to, "subject": subject, "template": template, "data": data},
        )
    except Exception as e:
        logger.warning("Email service not configured or failed: %s", e)
        return DispatchResult(success=False, error=EMAIL_UNAVAILABLE)

    return DispatchResult(success=True, response=response)


def send_sms(
    to: str,
    message: str,
    template_id: str | None = None,
    invoker: FunctionInvoker | None = None,
) -> DispatchResult:
    """Send an SMS through the "send-sms" function"""
    try:
        formatted_phone = normalize_phone(to)
        logger.info("SMS to %s: %s", formatted_phone, message)

        invoker = invoker or get_function_invoker()
        response = invoker.invoke(
            "send-sms",
            {"to": formatted_phone, "message": message, "templateId": template_id},
        )
    except Exception as e:
        logger.warning("SMS service not configured or failed: %s", e)
        return DispatchResult(success=False, error=SMS_UNAVAILABLE)

    return DispatchResult(success=True, response=response)
