"""HTTP message transport for thread_sync.

This module provides the httpx implementation of the messaging API
contract. Every failure is raised as TransportError.
"""

from typing import Any, Self, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from thread_sync.config import TransportSettings
from thread_sync.errors import TransportError
from thread_sync.interfaces.transport import MessageTransportInterface
from thread_sync.logging import get_logger
from thread_sync.models.message import Message, MessageCreate
from thread_sync.models.thread import Thread, ThreadCreate

__all__ = [
    "HttpMessageTransport",
]

logger = get_logger(__name__)

T = TypeVar("T")

_MESSAGES = TypeAdapter(list[Message])
_THREADS = TypeAdapter(list[Thread])
_MESSAGE = TypeAdapter(Message)
_THREAD = TypeAdapter(Thread)


class HttpMessageTransport(MessageTransportInterface):
    """httpx-backed messaging API client.

    Owns one AsyncClient for its lifetime. Close it with ``close()`` or
    use the transport as an async context manager.

    Example:
        async with HttpMessageTransport(TransportSettings()) as transport:
            messages = await transport.list_messages(thread_id, 1, 15)
    """

    config_class = TransportSettings

    def __init__(
        self,
        settings: TransportSettings,
        *,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize transport.

        Args:
            settings: API connection settings
            http_transport: Custom httpx transport (e.g. httpx.MockTransport)
        """
        self._settings = settings
        self._prefix = "/" + settings.api_prefix.strip("/") if settings.api_prefix else ""
        self._client = httpx.AsyncClient(
            base_url=settings.base_url,
            headers=self._default_headers(settings),
            timeout=settings.timeout,
            transport=http_transport,
        )

    @staticmethod
    def _default_headers(settings: TransportSettings) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "X-Tenant-Id": settings.tenant_id or "default",
        }
        if settings.api_key is not None:
            headers["Authorization"] = f"Bearer {settings.api_key.get_secret_value()}"
        return headers

    @classmethod
    async def from_config(cls, config: TransportSettings) -> Self:
        """Factory method for settings-driven instantiation.

        Args:
            config: Transport settings

        Returns:
            HttpMessageTransport instance
        """
        return cls(config)

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict.

        Args:
            config: Dictionary with transport settings

        Returns:
            HttpMessageTransport instance
        """
        return cls(TransportSettings(**config))

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # Messaging API

    async def list_threads(self, workflow_id: str) -> list[Thread]:
        data = await self._request("GET", "/threads", params={"workflowId": workflow_id})
        return self._parse(_THREADS, data, "GET", "/threads")

    async def list_messages(self, thread_id: str, page: int, page_size: int) -> list[Message]:
        path = f"/threads/{thread_id}/messages"
        data = await self._request("GET", path, params={"page": page, "pageSize": page_size})
        return self._parse(_MESSAGES, data, "GET", path)

    async def send_message(self, thread_id: str, payload: MessageCreate) -> Message:
        path = f"/inbound/{payload.type}"
        data = await self._request("POST", path, json=payload.to_request(thread_id))
        return self._parse(_MESSAGE, data, "POST", path)

    async def create_thread(self, workflow_id: str, payload: ThreadCreate) -> Thread:
        body = {"workflowId": workflow_id, **payload.to_wire()}
        data = await self._request("POST", "/threads", json=body)
        return self._parse(_THREAD, data, "POST", "/threads")

    async def get_thread(self, thread_id: str) -> Thread:
        path = f"/threads/{thread_id}"
        data = await self._request("GET", path)
        return self._parse(_THREAD, data, "GET", path)

    async def delete_thread(self, thread_id: str) -> None:
        await self._request("DELETE", f"/threads/{thread_id}")

    # Internals

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send one request and decode the body.

        Returns:
            Decoded JSON, raw text for non-JSON bodies, None for empty bodies
        """
        url = f"{self._prefix}{path}"
        query = {k: v for k, v in (params or {}).items() if v is not None}

        logger.debug("api_request", method=method, url=url, params=query)
        try:
            response = await self._client.request(method, url, params=query or None, json=json)
        except httpx.HTTPError as e:
            logger.warning("api_request_failed", method=method, url=url, error=str(e))
            raise TransportError(
                f"Request to {url} failed: {e}",
                cause=e,
                url=url,
                method=method,
            ) from e

        if response.is_error:
            message = self._error_message(response)
            logger.warning(
                "api_error_response",
                method=method,
                url=url,
                status=response.status_code,
                error=message,
            )
            raise TransportError(
                message,
                status=response.status_code,
                status_text=response.reason_phrase,
                url=str(response.request.url),
                method=method,
            )

        if not response.content:
            return None

        content_type = response.headers.get("content-type", "")
        if "json" not in content_type:
            return response.text

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                "Server returned invalid data",
                cause=e,
                status=response.status_code,
                status_text=response.reason_phrase,
                url=url,
                method=method,
            ) from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract the server's message from a ``{"error": "..."}`` body."""
        try:
            data = response.json()
        except ValueError:
            return response.text.strip() or "An error occurred"
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
        return response.text.strip() or "An error occurred"

    def _parse(self, adapter: TypeAdapter[T], data: Any, method: str, path: str) -> T:
        try:
            return adapter.validate_python(data)
        except ValidationError as e:
            logger.warning("api_response_invalid", method=method, url=path, error=str(e))
            raise TransportError(
                "Server returned invalid data",
                cause=e,
                url=f"{self._prefix}{path}",
                method=method,
            ) from e
