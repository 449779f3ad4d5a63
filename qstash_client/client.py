"""QStash client for publishing and inspecting messages.

Every call is one HTTP round trip against the QStash REST API. Delivery,
retries and dead-lettering happen server-side; this client only builds the
request and decodes the answer.
"""

import json
from collections.abc import Mapping
from typing import Any, TypeVar
from urllib.parse import quote, urlsplit

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from .config import DEFAULT_BASE_URL, Settings, get_settings
from .errors import ApplicationError, ConfigurationError, DecodeError, TransportError
from .models import (
    DeadLetterQueueResponse,
    GetEventsResponse,
    Message,
    PublishOptions,
    PublishRequestTarget,
    PublishResponse,
    PublishTopic,
    PublishUrl,
    Version,
    header_safe,
)

DEFAULT_TIMEOUT = 30.0

M = TypeVar("M", bound=BaseModel)

logger = structlog.get_logger("qstash")


class Client:
    """Client for the QStash API.

    The client owns the HTTP transport it creates and closes it in `close()`.
    A transport passed in as `http_client` is shared and left open.
    """

    def __init__(
        self,
        token: str,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        version: Version | str = Version.V2,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the client. No network access happens here.

        Args:
            token: QStash bearer token
            base_url: API endpoint, defaults to https://qstash.upstash.io
            http_client: Shared transport to send requests through
            version: API version used in request paths
            timeout: Request timeout in seconds for the owned transport

        Raises:
            ConfigurationError: On an empty or malformed token or base URL

        """
        self._headers = {"Authorization": f"Bearer {_check_token(token)}"}
        self._base_url = _check_base_url(base_url or DEFAULT_BASE_URL)

        try:
            self._version = Version(version)
        except ValueError:
            raise ConfigurationError(f"Unsupported API version: {version!r}") from None

        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> "Client":
        """Build a client from QSTASH_* settings."""
        settings = settings or get_settings()
        return cls(
            settings.token.get_secret_value(),
            base_url=settings.url,
            http_client=http_client,
            version=settings.version,
            timeout=settings.timeout_seconds,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def version(self) -> Version:
        return self._version

    def __repr__(self) -> str:
        return f"Client(base_url={self._base_url!r}, version={self._version.value!r})"

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self):
        """Close the HTTP transport if this client created it."""
        if self._owns_http:
            await self._http.aclose()

    # =========================================================================
    # Publishing
    # =========================================================================

    async def publish_json(
        self,
        target: PublishRequestTarget,
        body: Mapping[str, Any],
        options: PublishOptions | None = None,
    ) -> list[PublishResponse]:
        """
        Publish a JSON message.

        Args:
            target: Destination URL or topic
            body: Message payload, serialized as JSON
            options: Delay, deduplication, retries and similar settings

        Returns:
            One response per destination. Check each entry's `error`; a
            partially failed fan-out is not raised.

        """
        content = json.dumps(dict(body)).encode("utf-8")
        headers = (options or PublishOptions()).to_headers()
        headers["Content-Type"] = "application/json"
        return await self._publish(target, content, headers)

    async def publish(
        self,
        target: PublishRequestTarget,
        body: str | bytes | None = None,
        options: PublishOptions | None = None,
    ) -> list[PublishResponse]:
        """Publish a raw message. Set Content-Type through options.headers."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        headers = (options or PublishOptions()).to_headers()
        return await self._publish(target, body, headers)

    async def _publish(
        self,
        target: PublishRequestTarget,
        content: bytes | None,
        headers: httpx.Headers,
    ) -> list[PublishResponse]:
        if not isinstance(target, (PublishUrl, PublishTopic)):
            raise TypeError(f"target must be PublishUrl or PublishTopic, not {type(target).__name__}")

        logger.debug("publish_sent", destination=target.destination)

        response = await self._request(
            "POST",
            f"/publish/{target.destination}",
            content=content,
            headers=headers,
        )
        data = self._decode(response)

        # A single URL answers with an object, a topic with one entry per endpoint
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise DecodeError("Unexpected publish response", details={"body": response.text})

        results = [self._parse(PublishResponse, item, response) for item in data]

        logger.info(
            "publish_completed",
            destination=target.destination,
            entries=len(results),
            errors=sum(1 for r in results if r.is_error),
        )
        return results

    # =========================================================================
    # Messages, events, dead letter queue
    # =========================================================================

    async def get_message(self, message_id: str) -> Message:
        """Retrieve a message by its id."""
        response = await self._request("GET", f"/messages/{_segment(message_id)}")
        return self._parse(Message, self._decode(response), response)

    async def cancel_message(self, message_id: str) -> None:
        """
        Cancel a message so it is never delivered.

        A message already in flight to the destination may still arrive.
        """
        await self._request("DELETE", f"/messages/{_segment(message_id)}")
        logger.info("message_cancelled", message_id=message_id)

    async def get_events(self, cursor: str | int | None = None) -> GetEventsResponse:
        """
        Retrieve the event log, newest first.

        The endpoint is paginated. Pass the returned `cursor` to get the
        next page; it is absent on the last page.
        """
        params = {"cursor": str(cursor)} if cursor is not None else None
        response = await self._request("GET", "/events", params=params)
        return self._parse(GetEventsResponse, self._decode(response), response)

    async def get_dead_letter_queue(self, cursor: str | int | None = None) -> DeadLetterQueueResponse:
        """Retrieve messages whose delivery permanently failed."""
        params = {"cursor": str(cursor)} if cursor is not None else None
        response = await self._request("GET", "/dlq/messages", params=params)
        return self._parse(DeadLetterQueueResponse, self._decode(response), response)

    # =========================================================================
    # Request plumbing
    # =========================================================================

    def _build_url(self, path: str) -> str:
        return f"{self._base_url}/{self._version.value}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        content: bytes | None = None,
        headers: httpx.Headers | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Send a request and return the response if its status is 2xx.

        Raises:
            TransportError: If no response was received
            ApplicationError: On a non-2xx status

        """
        # The client's credentials replace any Authorization the caller set
        request_headers = httpx.Headers(headers)
        request_headers.update(self._headers)

        try:
            response = await self._http.request(
                method,
                self._build_url(path),
                content=content,
                headers=request_headers,
                params=params,
            )
        except httpx.TimeoutException as e:
            logger.error("request_failed", method=method, path=path, error=type(e).__name__)
            raise TransportError(f"Request timed out: {method} {path}") from e
        except httpx.RequestError as e:
            logger.error("request_failed", method=method, path=path, error=type(e).__name__)
            raise TransportError(f"Connection error: {e}") from e

        if not response.is_success:
            error = _application_error(response)
            logger.warning(
                "response_error",
                method=method,
                path=path,
                status=response.status_code,
                error=error.message,
            )
            raise error

        return response

    def _decode(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error("response_decode_failed", status=response.status_code)
            raise DecodeError(f"Invalid JSON response: {e}", details={"body": response.text}) from e

    def _parse(self, model: type[M], data: Any, response: httpx.Response) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error("response_decode_failed", model=model.__name__, status=response.status_code)
            raise DecodeError(
                f"Unexpected {model.__name__} payload",
                details={"errors": e.errors(include_url=False)},
            ) from e


def _check_token(token: str) -> str:
    if not isinstance(token, str) or not token.strip():
        raise ConfigurationError("QStash token must not be empty")
    if not header_safe(token):
        raise ConfigurationError("QStash token contains characters not allowed in a header")
    return token


def _check_base_url(base_url: str) -> str:
    parts = urlsplit(base_url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigurationError(f"Invalid base URL: {base_url!r}")
    return base_url.rstrip("/")


def _segment(value: str) -> str:
    if not value:
        raise ConfigurationError("message id must not be empty")
    return quote(value, safe="")


def _application_error(response: httpx.Response) -> ApplicationError:
    """Build an ApplicationError from a non-2xx response."""
    message = f"QStash returned {response.status_code}"
    details: dict[str, Any] = {}

    try:
        error_data = response.json()
    except ValueError:
        if response.text:
            details["body"] = response.text
        return ApplicationError(message, status_code=response.status_code, details=details)

    # Handle both {"error": "message"} and {"error": {"message": "..."}}
    if isinstance(error_data, dict):
        error_field = error_data.get("error")
        if isinstance(error_field, str):
            message = error_field
        elif isinstance(error_field, dict):
            message = error_field.get("message", message)
        details = error_data

    return ApplicationError(message, status_code=response.status_code, details=details)
