"""Async client for the Upstash QStash API."""

from .client import Client
from .config import Settings, get_settings
from .errors import (
    ApplicationError,
    ConfigurationError,
    DecodeError,
    QStashError,
    TransportError,
)
from .models import (
    DeadLetterQueueResponse,
    Event,
    EventState,
    GetEventsResponse,
    Message,
    PublishOptions,
    PublishRequestTarget,
    PublishResponse,
    PublishTopic,
    PublishUrl,
    Version,
)

__version__ = "0.1.0"
__all__ = [
    "ApplicationError",
    "Client",
    "ConfigurationError",
    "DeadLetterQueueResponse",
    "DecodeError",
    "Event",
    "EventState",
    "GetEventsResponse",
    "Message",
    "PublishOptions",
    "PublishRequestTarget",
    "PublishResponse",
    "PublishTopic",
    "PublishUrl",
    "QStashError",
    "Settings",
    "TransportError",
    "Version",
    "get_settings",
]
