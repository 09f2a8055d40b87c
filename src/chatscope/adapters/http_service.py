"""HTTP message service adapter.

Implements the core MessageServicePort against the JSON data service:

    GET /search?q=<text>
    GET /messages/{id}
    GET /messages/{id}/before
    GET /messages/{id}/after
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from chatscope.core.errors import MalformedResponseError, NetworkError, NotFoundError, ServiceError
from chatscope.core.models import ConversationWindow, Message, parse_message_list

LOGGER = logging.getLogger(__name__)


class HttpMessageService:
    """Async client for the message data service."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        # The transport hook lets tests swap in httpx.MockTransport.
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpMessageService":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def search(self, query: str) -> List[Message]:
        # httpx percent-encodes query params, spaces and all.
        return parse_message_list(await self._get_json("/search", params={"q": query}))

    async def get_window(self, message_id: str) -> ConversationWindow:
        return ConversationWindow.from_payload(await self._get_json(self._message_path(message_id)))

    async def get_before(self, message_id: str) -> List[Message]:
        return parse_message_list(await self._get_json(f"{self._message_path(message_id)}/before"))

    async def get_after(self, message_id: str) -> List[Message]:
        return parse_message_list(await self._get_json(f"{self._message_path(message_id)}/after"))

    @staticmethod
    def _message_path(message_id: str) -> str:
        return f"/messages/{quote(str(message_id), safe='')}"

    async def _get_json(self, path: str, params: Optional[dict[str, str]] = None) -> Any:
        LOGGER.debug("GET %s %s", path, params or "")
        try:
            response = await self._client.get(path, params=params)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"request to {path} timed out") from exc
        except httpx.RequestError as exc:
            raise NetworkError(f"request to {path} failed: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(f"not found: {path}")
        if response.is_error:
            raise ServiceError(
                f"service error {response.status_code} for {path}: {response.text[:200]}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"invalid JSON from {path}") from exc
