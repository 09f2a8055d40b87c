"""Ports (interfaces) used by the viewer.

The message service port is the minimal read contract the viewer needs, so
the same controller can run against the HTTP data service or a local
archive database.
"""

from __future__ import annotations

from typing import List, Protocol

from chatscope.core.models import ArchivedMessage, ConversationWindow, Message


class MessageServicePort(Protocol):
    """Read operations required by the conversation viewer."""

    async def search(self, query: str) -> List[Message]:
        ...

    async def get_window(self, message_id: str) -> ConversationWindow:
        ...

    async def get_before(self, message_id: str) -> List[Message]:
        """Messages older than message_id, nearest first."""
        ...

    async def get_after(self, message_id: str) -> List[Message]:
        """Messages newer than message_id, oldest first."""
        ...


class ArchiveStoragePort(Protocol):
    """Write operation required by the archiver."""

    def save_message(self, message: ArchivedMessage) -> None:
        ...
