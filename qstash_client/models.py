"""Request and response models for the QStash API."""

from enum import Enum
from typing import Any
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ApplicationError


def header_safe(value: str) -> bool:
    """True if `value` can be sent as an HTTP header name or value."""
    return value.isascii() and not any(ord(c) < 0x20 or ord(c) == 0x7F for c in value)


class Version(str, Enum):
    """QStash API version used in request paths."""

    V1 = "v1"
    V2 = "v2"


# =============================================================================
# Publish targets
# =============================================================================


class PublishUrl(BaseModel):
    """Deliver the message to a single destination URL."""

    model_config = ConfigDict(frozen=True)

    url: str

    @field_validator("url")
    @classmethod
    def _absolute_http_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"destination must be an absolute http(s) URL: {value!r}")
        return value

    @property
    def destination(self) -> str:
        return self.url


class PublishTopic(BaseModel):
    """Deliver the message to every endpoint subscribed to a topic."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)

    @property
    def destination(self) -> str:
        return self.name


PublishRequestTarget = PublishUrl | PublishTopic


# =============================================================================
# Publish options
# =============================================================================


class PublishOptions(BaseModel):
    """Optional delivery settings, sent to QStash as Upstash-* headers."""

    model_config = ConfigDict(validate_assignment=True)

    # Forwarded to the destination as-is
    headers: dict[str, str] = Field(default_factory=dict)

    # Relative delay in seconds
    delay: int | None = Field(default=None, ge=0)

    # Absolute delivery time, unix seconds. Overrides delay server-side.
    not_before: int | None = Field(default=None, ge=0)

    deduplication_id: str | None = Field(default=None)
    content_based_deduplication: bool | None = Field(default=None)

    # Delivery retries; account quota applies when unset
    retries: int | None = Field(default=None, ge=0)

    # Receives the destination's response
    callback: str | None = Field(default=None)

    # Method QStash uses when calling the destination
    method: str = Field(default="POST")

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        value = value.strip().upper()
        if not (value.isascii() and value.isalpha()):
            raise ValueError(f"invalid HTTP method: {value!r}")
        return value

    @field_validator("headers")
    @classmethod
    def _ascii_headers(cls, value: dict[str, str]) -> dict[str, str]:
        for name, header in value.items():
            if not (name and header_safe(name) and header_safe(header)):
                raise ValueError(f"header not sendable over HTTP: {name!r}")
        return value

    @field_validator("deduplication_id", "callback")
    @classmethod
    def _ascii_value(cls, value: str | None) -> str | None:
        if value is not None and not header_safe(value):
            raise ValueError(f"value not sendable as an HTTP header: {value!r}")
        return value

    def to_headers(self) -> httpx.Headers:
        """Render the options as request headers. Option headers replace custom ones."""
        headers = httpx.Headers(self.headers)
        headers["Upstash-Method"] = self.method

        if self.delay is not None:
            headers["Upstash-Delay"] = f"{self.delay}s"

        if self.not_before is not None:
            headers["Upstash-Not-Before"] = str(self.not_before)

        if self.deduplication_id is not None:
            headers["Upstash-Deduplication-Id"] = self.deduplication_id

        if self.content_based_deduplication is not None:
            headers["Upstash-Content-Based-Deduplication"] = (
                "true" if self.content_based_deduplication else "false"
            )

        if self.retries is not None:
            headers["Upstash-Retries"] = str(self.retries)

        if self.callback is not None:
            headers["Upstash-Callback"] = self.callback

        return headers


# =============================================================================
# Responses
# =============================================================================


class _Wire(BaseModel):
    """Base for camelCase API payloads."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PublishResponse(_Wire):
    """Outcome of a publish for one destination.

    A fan-out publish returns one of these per subscribed endpoint. An entry
    either carries a message id or an error; check each one.
    """

    message_id: str | None = Field(default=None, alias="messageId")
    url: str | None = Field(default=None)
    error: str | None = Field(default=None)
    deduplicated: bool | None = Field(default=None)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def raise_for_error(self) -> None:
        """Raise ApplicationError if QStash rejected this destination."""
        if self.error is not None:
            raise ApplicationError(
                self.error,
                details={"url": self.url} if self.url else None,
            )


class Message(_Wire):
    """A message stored by QStash."""

    message_id: str = Field(..., alias="messageId")
    url: str
    topic_name: str | None = Field(default=None, alias="topicName")
    endpoint_name: str | None = Field(default=None, alias="endpointName")
    key: str | None = Field(default=None)
    method: str | None = Field(default=None)
    header: dict[str, list[str]] | None = Field(default=None)
    body: str | None = Field(default=None)
    max_retries: int | None = Field(default=None, alias="maxRetries")
    not_before: int | None = Field(default=None, alias="notBefore")
    created_at: int = Field(..., alias="createdAt")
    callback: str | None = Field(default=None)


class EventState(str, Enum):
    """Delivery state reported in the event log."""

    CREATED = "CREATED"
    ACTIVE = "ACTIVE"
    DELIVERED = "DELIVERED"
    ERROR = "ERROR"
    CANCELED = "CANCELED"
    RETRY = "RETRY"
    FAILED = "FAILED"


class Event(_Wire):
    """One entry of the QStash event log."""

    time: int
    state: EventState = Field(default=EventState.ERROR)
    message_id: str = Field(..., alias="messageId")
    next_delivery_time: int | None = Field(default=None, alias="nextDeliveryTime")
    error: str | None = Field(default=None)
    url: str | None = Field(default=None)
    topic_name: str | None = Field(default=None, alias="topicName")
    endpoint_name: str | None = Field(default=None, alias="endpointName")

    @field_validator("state", mode="before")
    @classmethod
    def _unknown_state_is_error(cls, value: Any) -> Any:
        # States added server-side later must not break decoding
        if isinstance(value, str) and value in EventState.__members__:
            return value
        if isinstance(value, EventState):
            return value
        return EventState.ERROR


class _Page(_Wire):
    """Base for cursor-paginated listings."""

    cursor: str | None = Field(default=None)

    @field_validator("cursor", mode="before")
    @classmethod
    def _cursor_as_str(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class GetEventsResponse(_Page):
    """A page of events. Pass `cursor` back to fetch the next page."""

    events: list[Event] = Field(default_factory=list)


class DeadLetterQueueResponse(_Page):
    """A page of dead-lettered messages."""

    messages: list[Message] = Field(default_factory=list)
