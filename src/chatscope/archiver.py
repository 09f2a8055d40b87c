"""GroupMe history archiver.

Walks a group's history from the newest page backwards and stores every
message in the local SQLite archive:

1) Fetch the newest page (no before_id)
2) Save each message; a failed save is logged and skipped
3) Continue from the oldest id of the page
4) Pause between pages to stay under GroupMe rate limits
5) Stop at the first empty page
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Protocol

from chatscope.core.models import ArchivedMessage
from chatscope.core.ports import ArchiveStoragePort

LOGGER = logging.getLogger(__name__)


class HistorySource(Protocol):
    def get_messages(self, before_id: Optional[str] = None) -> List[ArchivedMessage]:
        ...


class Archiver:
    """Copies a group's message history into an archive store."""

    def __init__(
        self,
        source: HistorySource,
        storage: ArchiveStoragePort,
        page_delay_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._source = source
        self._storage = storage
        self._page_delay = page_delay_seconds
        self._sleep = sleep

    def run(self) -> int:
        """Archive the whole history and return how many messages were saved."""

        before_id: Optional[str] = None
        saved = 0
        pages = 0
        while True:
            messages = self._source.get_messages(before_id)
            if not messages:
                break
            pages += 1
            for message in messages:
                try:
                    self._storage.save_message(message)
                    saved += 1
                except Exception:
                    LOGGER.exception("Failed to save message %s", message.id)
            # Pages are newest first, so the last entry is the oldest one seen.
            before_id = messages[-1].id
            LOGGER.info("Archived page %s (%s messages, before_id=%s)", pages, len(messages), before_id)
            if self._page_delay > 0:
                self._sleep(self._page_delay)

        LOGGER.info("Archive complete: pages=%s, messages=%s", pages, saved)
        return saved
