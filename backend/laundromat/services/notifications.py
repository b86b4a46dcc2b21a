"""Ready-notification payloads and the outbound messaging channel.

A notification is a human-readable message rendered from a laundry request's
current fields, handed to a ``NotificationChannel`` for delivery. The default
``LinkChannel`` does not talk to any network: it turns the message into a
click-to-chat deep link (normalized phone number + URL-escaped text) that
staff or the UI open to send it. Delivery is best effort; callers decide
whether a ``ChannelError`` matters.
"""
import enum
import logging
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import quote

import pytz

from laundromat.config import settings
from laundromat.models.laundry_request import LaundryRequest

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


class MessageType(str, enum.Enum):
    collection = "collection"
    status_update = "status_update"


COLLECTION_TEMPLATE = (
    "Hello {name}! Your laundry is ready for collection!\n\n"
    "Reference: {reference}\n"
    "Items: {count} pieces\n"
    "Please collect from the laundromat.\n\n"
    "Complete collection form: {collection_url}\n\n"
    "Thank you for using our service!"
)

STATUS_UPDATE_TEMPLATE = (
    "Hi {name}! Status update\n\n"
    "Reference: {reference}\n"
    "Status: {status}\n"
    "Items: {count} pieces\n"
    "Submitted: {submitted}\n\n"
    "We'll notify you when it's ready for collection!"
)

TEMPLATES = {
    MessageType.collection: COLLECTION_TEMPLATE,
    MessageType.status_update: STATUS_UPDATE_TEMPLATE,
}


class ChannelError(Exception):
    """The channel could not accept a message."""


@dataclass
class Delivery:
    message_id: str
    destination: str
    link: Optional[str] = None


def normalize_phone(
    raw: str,
    country_code: Optional[str] = None,
    trunk_prefix: Optional[str] = None,
) -> str:
    """Strip everything but digits and make the number international.

    ``0821234567`` → ``27821234567``; ``+27 82 123 4567`` → ``27821234567``;
    ``821234567`` → ``27821234567``. Raises ValueError when no digits remain.
    """
    country_code = settings.COUNTRY_CODE if country_code is None else country_code
    trunk_prefix = settings.TRUNK_PREFIX if trunk_prefix is None else trunk_prefix

    digits = _NON_DIGITS.sub("", raw or "")
    if not digits:
        raise ValueError(f"No digits in phone number {raw!r}")

    if trunk_prefix and digits.startswith(trunk_prefix):
        return country_code + digits[len(trunk_prefix):]
    if not digits.startswith(country_code):
        return country_code + digits
    return digits


def local_time(value: Optional[datetime]) -> str:
    """Format a stored timestamp in the community's timezone (naive = UTC)."""
    if value is None:
        return "-"
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value.astimezone(pytz.timezone(settings.TIMEZONE)).strftime("%Y-%m-%d %H:%M")


def render_message(request: LaundryRequest, message_type: MessageType = MessageType.collection) -> str:
    template = TEMPLATES[MessageType(message_type)]
    status = request.status.value if request.status else ""
    return template.format(
        name=request.name,
        reference=request.reference_number,
        count=request.clothes_count,
        status=status,
        submitted=local_time(request.date_submitted),
        collection_url=settings.COLLECTION_FORM_URL,
    )


def build_link(contact: str, message: str, base: Optional[str] = None) -> str:
    base = settings.MESSAGING_LINK_BASE if base is None else base
    return f"{base}?phone={normalize_phone(contact)}&text={quote(message, safe='')}"


class NotificationChannel(ABC):
    """Outbound messaging integration shared by the whole app."""

    name = "channel"

    @abstractmethod
    def is_ready(self) -> bool:
        ...

    @abstractmethod
    def send(self, destination: str, message: str) -> Delivery:
        """Hand ``message`` over for delivery; raise ChannelError on refusal."""


class LinkChannel(NotificationChannel):
    """Delivers by producing a click-to-chat link; always ready."""

    name = "link"

    def __init__(self, base: Optional[str] = None):
        self.base = base

    def is_ready(self) -> bool:
        return True

    def send(self, destination: str, message: str) -> Delivery:
        try:
            link = build_link(destination, message, base=self.base)
        except ValueError as exc:
            raise ChannelError(str(exc)) from exc
        delivery = Delivery(message_id=uuid.uuid4().hex, destination=normalize_phone(destination), link=link)
        logger.info("Message link generated for %s: %s", delivery.destination, link)
        return delivery


def dispatch(
    channel: NotificationChannel,
    request: LaundryRequest,
    message_type: MessageType = MessageType.collection,
) -> Delivery:
    """Render and send one message for ``request`` through ``channel``."""
    if not channel.is_ready():
        raise ChannelError(f"Notification channel '{channel.name}' is not ready")
    message = render_message(request, message_type)
    delivery = channel.send(request.contact, message)
    logger.info(
        "Sent %s notification for %s via %s (message %s)",
        MessageType(message_type).value, request.reference_number, channel.name, delivery.message_id,
    )
    return delivery


_channel: NotificationChannel = LinkChannel()


def get_channel() -> NotificationChannel:
    """FastAPI dependency: override in tests or to plug in a real gateway."""
    return _channel
