"""Outbound SMS for ride confirmations and login codes, sent through Twilio."""

import logging
from typing import Any, Dict, Optional, Tuple

from django.conf import settings
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

logger = logging.getLogger(__name__)

COUNTRY_PREFIX = "+91"


class SMSService:
    """
    Thin wrapper around the Twilio REST client.

    Without TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN the service runs in
    development mode and only logs what would have been sent.
    """

    def __init__(self, client: Optional[TwilioClient] = None):
        self.client = client
        self.from_number = getattr(settings, "TWILIO_PHONE_NUMBER", "")
        if self.client is None:
            self._setup_client()

    def _setup_client(self):
        account_sid = getattr(settings, "TWILIO_ACCOUNT_SID", "")
        auth_token = getattr(settings, "TWILIO_AUTH_TOKEN", "")
        if account_sid and auth_token:
            self.client = TwilioClient(account_sid, auth_token)
        else:
            logger.warning("Twilio not configured, SMS service will only log messages")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def send_sms(self, phone_number: str, message: str) -> Tuple[bool, str]:
        """Send one message. Returns (success, detail)."""
        if not self.is_configured:
            logger.info("[DEV MODE] SMS would be sent to %s: %s", phone_number, message)
            return True, "SMS logged in development mode"

        to = phone_number if phone_number.startswith("+") else f"{COUNTRY_PREFIX}{phone_number}"
        try:
            result = self.client.messages.create(body=message, from_=self.from_number, to=to)
        except TwilioException as e:
            logger.error("SMS sending failed for %s: %s", phone_number, e)
            return False, str(e)

        logger.info("SMS sent to %s, SID: %s", phone_number, result.sid)
        return True, result.sid

    def send_ride_confirmation(self, phone_number: str, details: Dict[str, Any]) -> Tuple[bool, str]:
        return self.send_sms(phone_number, format_ride_confirmation(details))

    def send_otp(self, phone_number: str, code: str) -> Tuple[bool, str]:
        return self.send_sms(phone_number, format_otp(code))


def format_otp(code: str) -> str:
    expiry = getattr(settings, "OTP_EXPIRY_MINUTES", 10)
    return f"Your QuickRide OTP is: {code}. Valid for {expiry} minutes. Do not share with anyone."


def format_ride_confirmation(details: Dict[str, Any]) -> str:
    return (
        f"Ride confirmed! {details['ride_code']}\n"
        f"Pickup: {details['pickup']}\n"
        f"Drop: {details['drop']}\n"
        f"Captain: {details['captain_name']} ({details['captain_phone']})\n"
        f"Vehicle: {details['vehicle_number']}"
    )


_sms_service: Optional[SMSService] = None


def get_sms_service() -> SMSService:
    """Get singleton SMSService instance."""
    global _sms_service
    if _sms_service is None:
        _sms_service = SMSService()
    return _sms_service
