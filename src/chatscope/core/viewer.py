"""Conversation viewer controller.

This module is frontend-agnostic. It talks to a message service port and
keeps the results and chat state; the frontend only renders what these
operations return.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from chatscope.core.models import ConversationWindow, Message
from chatscope.core.pagination import ChatState, Edge, ResultsState, detect_edge
from chatscope.core.ports import MessageServicePort

LOGGER = logging.getLogger(__name__)


class ConversationViewer:
    """Orchestrates search, conversation loading, and two-way paging."""

    def __init__(self, service: MessageServicePort) -> None:
        self._service = service
        self.results = ResultsState()
        self.chat = ChatState()

    async def search(self, query: str) -> Optional[List[Message]]:
        """Run a search; None when a newer search finished first."""

        token = self.results.begin_search()
        messages = await self._service.search(query)
        if not self.results.replace(token, query, messages):
            LOGGER.debug("Dropping stale search results for %r", query)
            return None
        LOGGER.info("Search %r returned %s messages", query, len(messages))
        return messages

    async def open_conversation(self, message_id: str) -> Optional[ConversationWindow]:
        """Load the window around message_id; None when superseded."""

        generation = self.chat.begin_open()
        try:
            window = await self._service.get_window(message_id)
        except BaseException:
            # Cancellation included: a failed load must not block paging forever.
            self.chat.abort_open(generation)
            raise
        if not self.chat.replace(generation, window):
            LOGGER.debug("Dropping stale conversation for %s", message_id)
            return None
        LOGGER.info(
            "Opened conversation at %s (%s before, %s after)",
            message_id,
            len(window.before_messages),
            len(window.after_messages),
        )
        return window

    async def page_backward(self) -> List[Message]:
        """Load older messages above the first one shown.

        Returns the inserted messages oldest first; empty when nothing was
        inserted (already paging, no conversation, no older messages, or the
        response belonged to a conversation that has since been replaced).
        """

        return await self._page(Edge.TOP)

    async def page_forward(self) -> List[Message]:
        """Load newer messages below the last one shown."""

        return await self._page(Edge.BOTTOM)

    async def on_scroll(self, scroll_top: float, client_height: float, scroll_height: float) -> List[Message]:
        edge = detect_edge(scroll_top, client_height, scroll_height)
        if edge is None:
            return []
        return await self._page(edge)

    async def _page(self, edge: Edge) -> List[Message]:
        ticket = self.chat.begin_page(edge)
        if ticket is None:
            return []
        try:
            if edge is Edge.TOP:
                page = await self._service.get_before(ticket.cursor_id)
            else:
                page = await self._service.get_after(ticket.cursor_id)
            inserted = self.chat.apply_page(ticket, page)
        finally:
            self.chat.end_page(ticket)
        if inserted is None:
            LOGGER.debug("Dropping stale %s page for cursor %s", edge.value, ticket.cursor_id)
            return []
        LOGGER.debug("Paged %s from %s: %s messages", edge.value, ticket.cursor_id, len(inserted))
        return inserted
