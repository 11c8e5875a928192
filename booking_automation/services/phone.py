"""
Phone number normalization and contact links
"""
import re
from urllib.parse import quote
from booking_automation.config import settings

_NON_DIGITS = re.compile(r"\D")
_LOCAL_MOBILE_PREFIXES = ("6", "7", "8", "9")
# Left unescaped in pre-filled message text
_URI_COMPONENT_SAFE = "!'()*"


def digits_only(phone: str) -> str:
    return _NON_DIGITS.sub("", phone or "")


def normalize_phone(raw: str) -> str:
    """
    Canonicalize a phone number into a country-coded dialable string.

    Ten-digit numbers starting with 6-9 are treated as local mobile numbers
    and get the default country code. Anything else only loses its
    non-digit characters. The result always starts with "+".
    """
    cleaned = digits_only(raw)

    if len(cleaned) == 10 and cleaned.startswith(_LOCAL_MOBILE_PREFIXES):
        cleaned = settings.default_country_code + cleaned

    if not cleaned.startswith("+"):
        cleaned = "+" + cleaned

    return cleaned


def generate_call_link(phone: str) -> str:
    """tel: URI from the digits of the input, no country code added"""
    return f"tel:{digits_only(phone)}"


def generate_click_to_call_link(phone: str) -> str:
    """tel: URI from the normalized number"""
    return f"tel:{normalize_phone(phone)}"


def generate_whatsapp_link(phone: str, message: str | None = None) -> str:
    """wa.me deep link with an optional pre-filled message"""
    number = normalize_phone(phone).replace("+", "", 1)
    if not message:
        return f"https://wa.me/{number}"
    return f"https://wa.me/{number}?text={quote(message, safe=_URI_COMPONENT_SAFE)}"
