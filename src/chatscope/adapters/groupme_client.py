"""GroupMe v3 messages API client.

We explicitly build the httpx client from environment variables so the
token stays out of config.json and out of the repo.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

import httpx
from dotenv import load_dotenv

from chatscope.adapters.groupme_mapper import build_archived_messages
from chatscope.core.errors import MalformedResponseError
from chatscope.core.models import ArchivedMessage

LOGGER = logging.getLogger(__name__)

GROUPME_API_URL = "https://api.groupme.com/v3"
# GroupMe rejects pages larger than this.
MAX_PAGE_LIMIT = 100


class ArchiveError(RuntimeError):
    """Raised when GroupMe refuses a history request."""


class GroupMeClient:
    """Fetch one page of group history at a time, newest first."""

    def __init__(
        self,
        token: str,
        group_id: str,
        limit: int = MAX_PAGE_LIMIT,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._token = token
        self._group_id = group_id
        self._limit = max(1, min(limit, MAX_PAGE_LIMIT))
        self._client = httpx.Client(
            base_url=GROUPME_API_URL,
            timeout=timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def get_messages(self, before_id: Optional[str] = None) -> List[ArchivedMessage]:
        """Return the page of messages older than before_id (or the newest page)."""

        params = {"token": self._token, "limit": str(self._limit)}
        if before_id is not None:
            params["before_id"] = before_id
        path = f"/groups/{self._group_id}/messages"
        # The URL carries the token; the redacting log formatter masks it.
        LOGGER.debug("GET %s before_id=%s", path, before_id)
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise ArchiveError(f"GroupMe request failed: {exc}") from exc

        # 304 Not Modified is how GroupMe says there is no older history.
        if response.status_code == 304:
            return []
        if response.is_error:
            raise ArchiveError(f"GroupMe API error {response.status_code}: {response.text[:200]}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError("GroupMe returned invalid JSON") from exc
        return build_archived_messages(payload)


def build_groupme_client(limit: int = MAX_PAGE_LIMIT) -> GroupMeClient:
    """Create a GroupMe client from GROUPME_TOKEN and GROUPME_GROUP_ID."""

    load_dotenv()

    token = os.getenv("GROUPME_TOKEN")
    group_id = os.getenv("GROUPME_GROUP_ID")

    # Fail fast on missing credentials rather than archiving nothing.
    if not token or not group_id:
        raise RuntimeError("Missing GROUPME_TOKEN or GROUPME_GROUP_ID in environment")

    LOGGER.info("Initializing GroupMe client for group %s", group_id)
    return GroupMeClient(token=token, group_id=group_id, limit=limit)
