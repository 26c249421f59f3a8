"""
Outbound email and SMS providers.
Both expose a single `send` that returns the provider's message id and
raises on failure; the dispatcher turns failures into per-channel results.
"""

import logging
import re
from typing import Optional

import resend
from twilio.rest import Client as TwilioClient

from app.config import settings

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Provider refused or could not attempt a send."""


def format_phone_number(phone_number: str) -> str:
    """Normalise a phone number to E.164. Ten bare digits are taken as US numbers."""
    digits_only = re.sub(r"\D", "", phone_number)
    if phone_number.strip().startswith("+"):
        return f"+{digits_only}"
    if len(digits_only) == 10:
        return f"+1{digits_only}"
    return f"+{digits_only}"


class EmailProvider:
    def __init__(self, api_key: Optional[str], from_address: str):
        self.api_key = api_key
        self.from_address = from_address

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> str:
        if not self.configured:
            raise DeliveryError("Email provider not configured")
        if not to:
            raise DeliveryError("Recipient has no email address")
        resend.api_key = self.api_key
        params = {
            "from": self.from_address,
            "to": [to],
            "subject": subject,
            "text": text,
        }
        if html:
            params["html"] = html
        response = resend.Emails.send(params)
        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        if not message_id:
            raise DeliveryError("Email provider returned no message id")
        logger.info(f"Email sent to {to}: {message_id}")
        return message_id


class SmsProvider:
    def __init__(self, account_sid: Optional[str], auth_token: Optional[str], from_number: Optional[str]):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self._client: Optional[TwilioClient] = None

    @property
    def configured(self) -> bool:
        return bool(
            self.account_sid and self.account_sid.startswith("AC")
            and self.auth_token and self.from_number
        )

    def _get_client(self) -> TwilioClient:
        if self._client is None:
            self._client = TwilioClient(self.account_sid, self.auth_token)
        return self._client

    def send(self, to: str, body: str) -> str:
        if not self.configured:
            raise DeliveryError("SMS provider not configured")
        if not to:
            raise DeliveryError("Recipient has no phone number")
        message = self._get_client().messages.create(
            body=body,
            from_=self.from_number,
            to=format_phone_number(to),
        )
        logger.info(f"SMS sent: {message.sid}")
        return message.sid


def get_email_provider() -> EmailProvider:
    return EmailProvider(settings.resend_api_key, settings.email_from_address)


def get_sms_provider() -> SmsProvider:
    return SmsProvider(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_phone_number,
    )
