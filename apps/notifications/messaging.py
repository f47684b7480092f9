"""
Outbound messaging channel — sends a text to a phone number or fails.

Backends are selected by dotted path in settings.MESSAGING_BACKEND, the same
way Django picks an email backend:

  ConsoleBackend       — writes messages to stdout (development)
  LocmemBackend        — appends to messaging.outbox (tests)
  ZApiWhatsAppBackend  — WhatsApp via the Z-API HTTP API
  TwilioSMSBackend     — SMS via Twilio Programmable Messaging

Every backend raises MessagingError when delivery fails; callers decide
whether that is fatal (verification codes) or best effort (confirmations).

Public API:
  get_channel()
  send_message(phone, text)
"""
import logging
import sys
import threading
from dataclasses import dataclass

import requests
from django.conf import settings
from django.utils.module_loading import import_string
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

logger = logging.getLogger(__name__)

# Messages sent through LocmemBackend land here.
outbox = []


class MessagingError(Exception):
    """The channel could not deliver the message."""


@dataclass(frozen=True)
class OutboundMessage:
    phone: str
    text: str


def _masked(phone: str) -> str:
    return f"{phone[:4]}***{phone[-2:]}" if len(phone) > 6 else '***'


class BaseBackend:
    def send(self, phone: str, text: str) -> None:
        raise NotImplementedError('Messaging backends must implement send()')


class ConsoleBackend(BaseBackend):
    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self._lock = threading.RLock()

    def send(self, phone, text):
        with self._lock:
            self.stream.write(f"To: {phone}\n{text}\n{'-' * 40}\n")
            self.stream.flush()


class LocmemBackend(BaseBackend):
    def send(self, phone, text):
        outbox.append(OutboundMessage(phone=phone, text=text))


class ZApiWhatsAppBackend(BaseBackend):
    API_URL = 'https://api.z-api.io/instances/{instance}/token/{token}/send-text'

    def __init__(self, instance_id=None, token=None, client_token=None, timeout=None):
        self.instance_id = instance_id or settings.ZAPI_INSTANCE_ID
        self.token = token or settings.ZAPI_TOKEN
        self.client_token = client_token or settings.ZAPI_CLIENT_TOKEN
        self.timeout = timeout or settings.MESSAGING_TIMEOUT_SECONDS

    def send(self, phone, text):
        if not self.instance_id or not self.token:
            raise MessagingError('Z-API is not configured (ZAPI_INSTANCE_ID / ZAPI_TOKEN).')

        url = self.API_URL.format(instance=self.instance_id, token=self.token)
        try:
            response = requests.post(
                url,
                json={'phone': phone, 'message': text},
                headers={'Client-Token': self.client_token},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error('Z-API send to %s failed: %s', _masked(phone), exc)
            raise MessagingError('WhatsApp message could not be sent.') from exc

        logger.info('WhatsApp message sent to %s', _masked(phone))


class TwilioSMSBackend(BaseBackend):
    def __init__(self, account_sid=None, auth_token=None, from_number=None):
        self.account_sid = account_sid or settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token or settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number or settings.TWILIO_FROM_NUMBER

    def send(self, phone, text):
        if not (self.account_sid and self.auth_token and self.from_number):
            raise MessagingError('Twilio SMS is not configured.')

        client = Client(self.account_sid, self.auth_token)
        try:
            message = client.messages.create(body=text, from_=self.from_number, to=f"+{phone}")
        except TwilioRestException as exc:
            logger.error('Twilio error sending SMS to %s: %s - %s', _masked(phone), exc.code, exc.msg)
            raise MessagingError('SMS could not be sent.') from exc
        except (TwilioException, requests.RequestException) as exc:
            logger.error('Twilio request for SMS to %s failed: %s', _masked(phone), exc)
            raise MessagingError('SMS could not be sent.') from exc

        logger.info('SMS sent to %s. SID: %s', _masked(phone), message.sid)


def get_channel(backend_path=None) -> BaseBackend:
    return import_string(backend_path or settings.MESSAGING_BACKEND)()


def send_message(phone: str, text: str) -> None:
    """Send `text` to a digits-only phone number. Raises MessagingError."""
    get_channel().send(phone, text)
