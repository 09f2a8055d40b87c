"""Explicit view state for the results list and the chat pane.

The chat pane keeps its own cursors instead of reading them back from the
rendered widgets. Every rebuild of the pane bumps a generation counter, and
pagination requests carry the generation they were issued under, so a page
that lands after the user opened another conversation is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from chatscope.core.models import ConversationWindow, Message


class Edge(Enum):
    TOP = "top"
    BOTTOM = "bottom"


def detect_edge(scroll_top: float, client_height: float, scroll_height: float) -> Optional[Edge]:
    """Return which edge of a scrollable pane the viewport touches, if any.

    Top wins when the content fits in the viewport and both edges touch.
    """

    if scroll_top <= 0:
        return Edge.TOP
    if scroll_top + client_height >= scroll_height:
        return Edge.BOTTOM
    return None


@dataclass
class PaginationState:
    top_cursor_id: Optional[str] = None
    bottom_cursor_id: Optional[str] = None
    is_paging_up: bool = False
    is_paging_down: bool = False


@dataclass(frozen=True)
class PageTicket:
    """Handle for one in-flight pagination request."""

    edge: Edge
    cursor_id: str
    generation: int


@dataclass
class ChatState:
    """Messages currently shown in the chat pane, oldest first."""

    messages: List[Message] = field(default_factory=list)
    pagination: PaginationState = field(default_factory=PaginationState)
    generation: int = 0
    opening: bool = False

    def begin_open(self) -> int:
        """Start a conversation load and return its generation token."""

        self.generation += 1
        self.opening = True
        # Pages still in flight belong to the old generation and will be dropped.
        self.pagination.is_paging_up = False
        self.pagination.is_paging_down = False
        return self.generation

    def abort_open(self, generation: int) -> None:
        if generation == self.generation:
            self.opening = False

    def replace(self, generation: int, window: ConversationWindow) -> bool:
        """Swap in a freshly loaded window; False when the load was superseded."""

        if generation != self.generation:
            return False
        self.messages = window.messages()
        self.opening = False
        self._reset_cursors()
        return True

    def begin_page(self, edge: Edge) -> Optional[PageTicket]:
        """Reserve the given edge for a request; None when it cannot page now."""

        if self.opening or not self.messages:
            return None
        state = self.pagination
        if edge is Edge.TOP:
            if state.is_paging_up or state.top_cursor_id is None:
                return None
            state.is_paging_up = True
            cursor = state.top_cursor_id
        else:
            if state.is_paging_down or state.bottom_cursor_id is None:
                return None
            state.is_paging_down = True
            cursor = state.bottom_cursor_id
        return PageTicket(edge=edge, cursor_id=cursor, generation=self.generation)

    def apply_page(self, ticket: PageTicket, page: List[Message]) -> Optional[List[Message]]:
        """Merge a page into the pane.

        Returns the inserted messages in display order, or None when the
        ticket is stale. Pages for the top edge arrive nearest-first, so they
        are reversed before being put in front of the current messages.
        """

        if ticket.generation != self.generation:
            return None
        if ticket.edge is Edge.TOP:
            inserted = list(reversed(page))
            self.messages = inserted + self.messages
        else:
            inserted = list(page)
            self.messages = self.messages + inserted
        self._reset_cursors()
        return inserted

    def end_page(self, ticket: PageTicket) -> None:
        if ticket.generation != self.generation:
            return
        if ticket.edge is Edge.TOP:
            self.pagination.is_paging_up = False
        else:
            self.pagination.is_paging_down = False

    def _reset_cursors(self) -> None:
        state = self.pagination
        state.top_cursor_id = self.messages[0].id if self.messages else None
        state.bottom_cursor_id = self.messages[-1].id if self.messages else None


@dataclass
class ResultsState:
    """Search results currently shown, in service order."""

    messages: List[Message] = field(default_factory=list)
    query: str = ""
    token: int = 0

    def begin_search(self) -> int:
        self.token += 1
        return self.token

    def replace(self, token: int, query: str, messages: List[Message]) -> bool:
        if token != self.token:
            return False
        self.query = query
        self.messages = list(messages)
        return True
