"""
SMS Service using Twilio or MSG91
Backs the "send-sms" remote function
"""
import logging
import httpx
from twilio.rest import Client
from booking_automation.config import settings

logger = logging.getLogger(__name__)

MSG91_FLOW_URL = "https://api.msg91.com/api/v5/flow/"


class SmsProviderService:
    """Service to send SMS through the configured provider"""

    def __init__(self):
        self.provider = settings.sms_provider.lower()
        self.account_sid = settings.twilio_account_sid
        self.auth_token = settings.twilio_auth_token
        self.phone_number = settings.twilio_phone_number
        self.client = None
        self._init_client()

    def _init_client(self):
        """Initialize Twilio client"""
        try:
            if self.account_sid and self.auth_token:
                self.client = Client(self.account_sid, self.auth_token)
        except Exception as e:
            logger.warning("Failed to initialize Twilio: %s", e)

    def send_sms(self, to_number: str, message: str, template_id: str | None = None) -> dict:
        """
        Send SMS using the configured provider.

        Args:
            to_number: Recipient phone number, "+"-prefixed
            message: Message to send
            template_id: Provider template (MSG91 flows only)

        Returns:
            dict with "success" and either "message_id" or "error"
        """
        if not to_number or not message:
            return {"success": False, "error": "Missing 'to' or 'message'"}

        logger.info("Sending SMS to %s via %s", to_number, self.provider)
        if self.provider == "msg91":
            result = self.send_via_msg91(to_number, message, template_id)
        else:
            result = self.send_via_twilio(to_number, message)

        if result["success"]:
            logger.info("SMS sent to %s", to_number)
        else:
            logger.warning("SMS to %s failed: %s", to_number, result.get("error"))
        return result

    def send_via_twilio(self, to_number: str, message: str) -> dict:
        if not self.client or not self.phone_number:
            return {"success": False, "error": "Twilio credentials not configured"}

        try:
            sms = self.client.messages.create(
                body=message,
                from_=self.phone_number,
                to=to_number
            )
            return {"success": True, "message_id": sms.sid}
        except Exception as e:
            return {"success": False, "error": str(e)}

    def send_via_msg91(self, to_number: str, message: str, template_id: str | None = None) -> dict:
        if not settings.msg91_auth_key:
            return {"success": False, "error": "MSG91 credentials not configured"}

        try:
            response = httpx.post(
                MSG91_FLOW_URL,
                headers={"authkey": settings.msg91_auth_key},
                json={
                    "template_id": template_id,
                    "sender": settings.msg91_sender_id,
                    "route": settings.msg91_route,
                    "mobiles": to_number.lstrip("+"),
                    "message": message,
                },
                timeout=settings.remote_functions_timeout,
            )
            data = response.json()
        except Exception as e:
            return {"success": False, "error": str(e)}

        if data.get("type") == "success":
            return {"success": True, "message_id": data.get("request_id")}
        return {"success": False, "error": data.get("message") or "MSG91 error"}


# Global instance
_sms_provider = None


def get_sms_provider() -> SmsProviderService:
    """Get or create SMS provider instance"""
    global _sms_provider
    if _sms_provider is None:
        _sms_provider = SmsProviderService()
    return _sms_provider


def send_sms_function(body: dict) -> dict:
    """Handler for the "send-sms" remote function"""
    return get_sms_provider().send_sms(
        body.get("to", ""),
        body.get("message", ""),
        body.get("templateId"),
    )
