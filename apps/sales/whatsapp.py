"""
WhatsApp delivery through Twilio.
"""

import logging
import re
from typing import Optional

from django.conf import settings

from twilio.rest import Client

from apps.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _get_twilio_client() -> Optional[Client]:
    """
    Get Twilio client instance, or None when credentials are not configured.
    """
    account_sid = getattr(settings, "TWILIO_ACCOUNT_SID", None)
    auth_token = getattr(settings, "TWILIO_AUTH_TOKEN", None)

    if not account_sid or not auth_token:
        logger.error("Twilio credentials not configured")
        return None

    return Client(account_sid, auth_token)


def normalize_phone_number(phone_number: str, country_code: Optional[str] = None) -> str:
    """
    Normalize a phone number to E.164 format.

    Numbers without a country code get POS_DEFAULT_COUNTRY_CODE; a single
    leading trunk zero (09876543210) is dropped.

    Raises:
        ValidationError: If the number has too few digits.
    """
    if country_code is None:
        country_code = str(getattr(settings, "POS_DEFAULT_COUNTRY_CODE", "91"))
    country_code = country_code.lstrip("+")

    phone_number = (phone_number or "").strip()
    digits_only = re.sub(r"\D", "", phone_number)

    if len(digits_only) < 7:
        raise ValidationError(f"'{phone_number}' is not a valid phone number.", field="customer_phone")

    # Already has a country code
    if phone_number.startswith("+"):
        return f"+{digits_only}"
    if phone_number.startswith("00"):
        return f"+{digits_only[2:]}"

    if len(digits_only) == 11 and digits_only.startswith("0"):
        digits_only = digits_only[1:]

    if len(digits_only) == 10:
        return f"+{country_code}{digits_only}"

    return f"+{digits_only}"


def send_whatsapp_message(phone_number: str, body: str) -> Optional[str]:
    """
    Send a WhatsApp message.

    Returns:
        The Twilio message SID, or None if Twilio is not configured.

    Raises:
        ValidationError: If the phone number is invalid.
        TwilioException: If Twilio rejects the request.
    """
    to_phone = normalize_phone_number(phone_number)

    client = _get_twilio_client()
    if client is None:
        return None

    from_phone = getattr(settings, "TWILIO_WHATSAPP_NUMBER", "")
    message = client.messages.create(
        body=body,
        from_=f"whatsapp:{from_phone}",
        to=f"whatsapp:{to_phone}",
    )

    logger.info(f"WhatsApp message {message.sid} sent to {to_phone}")
    return message.sid
