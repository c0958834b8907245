"""Notification transports for renewal reminders (WhatsApp, SMS, email).

Every send is fail-soft: missing credentials, bad destinations, provider
errors and network exceptions come back as a failed ``DeliveryResult`` and are
logged, never raised. One bad delivery must not abort a batch run.
"""
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from app.config import Settings, get_settings
from app.services.message_templates import (
    ReminderMessage,
    render_email_html,
    render_email_subject,
    render_sms_message,
    render_whatsapp_message,
)

logger = logging.getLogger(__name__)

WHATSAPP_API_BASE = "https://graph.facebook.com"
TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
RESEND_API_URL = "https://api.resend.com/emails"

MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15


def normalize_phone_number(phone_number: str | None, default_country_code: str = "91") -> str:
    """Normalize a phone number to digits-only international form.

    Bare 10-digit numbers are assumed to be local to ``default_country_code``.
    That is a deployment policy, not a numbering-plan rule. Returns an empty
    string when the result is not 10-15 digits long.
    """
    if not phone_number:
        return ""

    cleaned = re.sub(r"\D", "", phone_number)
    if cleaned.startswith("00"):
        cleaned = cleaned[2:]

    if len(cleaned) == 10:
        cleaned = default_country_code + cleaned

    if not MIN_PHONE_DIGITS <= len(cleaned) <= MAX_PHONE_DIGITS:
        return ""

    return cleaned


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one delivery attempt. Truthy when the provider accepted it."""

    delivered: bool
    channel: str
    message_id: str | None = None
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.delivered

    @classmethod
    def failed(cls, channel: str, reason: str) -> "DeliveryResult":
        return cls(delivered=False, channel=channel, reason=reason)


class NotificationChannel:
    """Base class for a single delivery channel."""

    name = ""

    def __init__(self, settings: Settings, client: httpx.Client):
        self.settings = settings
        self.client = client

    def is_configured(self) -> bool:
        raise NotImplementedError

    def prepare_destination(self, destination: str) -> str:
        return (destination or "").strip()

    def post(self, destination: str, message: ReminderMessage) -> httpx.Response:
        raise NotImplementedError

    def extract_message_id(self, payload: dict) -> str | None:
        return payload.get("id")

    def send(self, destination: str, message: ReminderMessage) -> DeliveryResult:
        """Deliver one reminder, converting every failure into a failed result."""
        if not self.is_configured():
            logger.error("%s credentials not configured", self.name)
            return DeliveryResult.failed(self.name, "credentials not configured")

        to = self.prepare_destination(destination)
        if not to:
            logger.error("Invalid %s destination: %r", self.name, destination)
            return DeliveryResult.failed(self.name, "invalid destination")

        logger.info("Sending %s reminder to %s", self.name, to)
        try:
            response = self.post(to, message)
        except Exception as exc:
            logger.exception("Failed to send %s notification", self.name)
            return DeliveryResult.failed(self.name, f"{type(exc).__name__}: {exc}")

        if response.is_error:
            logger.error("%s API error (%s): %s", self.name, response.status_code, response.text)
            return DeliveryResult.failed(self.name, f"provider responded {response.status_code}")

        try:
            message_id = self.extract_message_id(response.json())
        except (ValueError, KeyError, IndexError, TypeError, AttributeError):
            message_id = None

        logger.info("%s reminder sent successfully", self.name)
        return DeliveryResult(delivered=True, channel=self.name, message_id=message_id)


class WhatsAppChannel(NotificationChannel):
    """WhatsApp Cloud API text messages."""

    name = "whatsapp"

    def is_configured(self) -> bool:
        return self.settings.whatsapp_configured

    def prepare_destination(self, destination: str) -> str:
        return normalize_phone_number(destination, self.settings.default_country_code)

    def post(self, destination: str, message: ReminderMessage) -> httpx.Response:
        url = (
            f"{WHATSAPP_API_BASE}/{self.settings.whatsapp_api_version}/"
            f"{self.settings.whatsapp_phone_number_id}/messages"
        )
        return self.client.post(
            url,
            headers={"Authorization": f"Bearer {self.settings.whatsapp_access_token}"},
            json={
                "messaging_product": "whatsapp",
                "to": destination,
                "type": "text",
                "text": {"body": render_whatsapp_message(message, self.settings.app_url)},
            },
        )

    def extract_message_id(self, payload: dict) -> str | None:
        return payload["messages"][0]["id"]


class SMSChannel(NotificationChannel):
    """Twilio programmable SMS."""

    name = "sms"

    def is_configured(self) -> bool:
        return self.settings.sms_configured

    def prepare_destination(self, destination: str) -> str:
        return normalize_phone_number(destination, self.settings.default_country_code)

    def post(self, destination: str, message: ReminderMessage) -> httpx.Response:
        account_sid = self.settings.twilio_account_sid
        return self.client.post(
            f"{TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json",
            auth=(account_sid, self.settings.twilio_auth_token),
            data={
                "From": self.settings.twilio_phone_number,
                "To": f"+{destination}",
                "Body": render_sms_message(message, self.settings.app_name, self.settings.app_url),
            },
        )

    def extract_message_id(self, payload: dict) -> str | None:
        return payload.get("sid")


class EmailChannel(NotificationChannel):
    """Transactional email through the Resend API."""

    name = "email"

    def is_configured(self) -> bool:
        return self.settings.email_configured

    def prepare_destination(self, destination: str) -> str:
        destination = (destination or "").strip()
        return destination if "@" in destination else ""

    def post(self, destination: str, message: ReminderMessage) -> httpx.Response:
        return self.client.post(
            RESEND_API_URL,
            headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
            json={
                "from": self.settings.email_from,
                "to": [destination],
                "subject": render_email_subject(message),
                "html": render_email_html(message, self.settings.app_name, self.settings.app_url),
            },
        )


class NotificationDispatcher:
    """Routes a reminder to the channel registered under a given name."""

    def __init__(self, channels: Mapping[str, NotificationChannel], client: httpx.Client | None = None):
        self.channels = dict(channels)
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
    ) -> "NotificationDispatcher":
        """Build the standard three-channel dispatcher.

        A client created here is owned by the dispatcher and closed by
        ``close()``; its timeout bounds each individual delivery.
        """
        settings = settings or get_settings()
        owned_client = None
        if client is None:
            client = owned_client = httpx.Client(timeout=settings.delivery_timeout_seconds)
        channels = {
            channel_cls.name: channel_cls(settings, client)
            for channel_cls in (WhatsAppChannel, SMSChannel, EmailChannel)
        }
        return cls(channels, client=owned_client)

    def send(self, channel: str, destination: str, message: ReminderMessage) -> DeliveryResult:
        transport = self.channels.get(channel)
        if transport is None:
            logger.error("Unknown notification channel: %s", channel)
            return DeliveryResult.failed(channel, "unknown channel")
        return transport.send(destination, message)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def __enter__(self) -> "NotificationDispatcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
