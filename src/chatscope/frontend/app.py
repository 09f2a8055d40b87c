"""Main Textual app for the chatscope conversation viewer."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List

from rich.text import Text
from textual import on, work
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Footer, Input, Static

from chatscope.core.errors import ChatServiceError
from chatscope.core.models import ConversationWindow, Message, format_line
from chatscope.core.pagination import Edge
from chatscope.core.ports import MessageServicePort
from chatscope.core.viewer import ConversationViewer

from .constants import ACCENT, OPEN_GROUP, PAGE_GROUP, SEARCH_GROUP
from .widgets import ChatPane, MessageLine

LOGGER = logging.getLogger(__name__)


class ViewerApp(App):
    """Search box, results table and a lazily paged conversation pane."""

    BINDINGS = [
        ("ctrl+o", "page_older", "Older"),
        ("ctrl+n", "page_newer", "Newer"),
        ("ctrl+q", "quit", "Quit"),
    ]

    CSS = """
    Screen {
        background: #0f1a21;
        color: #e8eef5;
    }

    #header {
        height: 3;
        padding: 0 2;
        border-bottom: solid #2a3a46;
    }

    #title {
        text-style: bold;
    }

    #search-row {
        height: 3;
        padding: 0 1;
    }

    #search-input {
        width: 1fr;
    }

    #body {
        height: 1fr;
    }

    #results {
        width: 2fr;
        height: 1fr;
    }

    #chat {
        width: 3fr;
        height: 1fr;
        border-left: solid #2a3a46;
        padding: 0 1;
        display: none;
    }

    .message-line {
        height: auto;
    }

    .anchor {
        background: #1d3140;
        text-style: bold;
    }

    #status {
        height: 1;
        padding: 0 2;
        color: #c6d2dd;
    }

    .status-error {
        color: #ff6b6b;
    }
    """

    def __init__(self, service: MessageServicePort, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._service = service
        self.viewer = ConversationViewer(service)
        # Serializes chat pane rebuilds against page inserts.
        self._chat_lock = asyncio.Lock()
        # Row key -> message id. Keys are positional so repeated ids still render.
        self._result_ids: dict[str, str] = {}

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            yield Static(self._title_text(), id="title")
        with Horizontal(id="search-row"):
            yield Input(placeholder="Search messages", id="search-input")
            yield Button("Search", id="search-button", variant="primary")
        with Horizontal(id="body"):
            with Vertical(id="results-panel"):
                yield DataTable(id="results", cursor_type="row")
            yield ChatPane(id="chat")
        yield Static("", id="status")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#results", DataTable)
        table.add_column("message", key="message")
        table.zebra_stripes = True
        self.query_one("#search-input", Input).focus()

    async def on_unmount(self) -> None:
        closer = getattr(self._service, "aclose", None)
        if closer is not None:
            await closer()

    @on(Button.Pressed, "#search-button")
    def _on_search_pressed(self) -> None:
        self.run_search(self.query_one("#search-input", Input).value)

    @on(Input.Submitted, "#search-input")
    def _on_search_submitted(self, event: Input.Submitted) -> None:
        self.run_search(event.value)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        message_id = self._result_ids.get(event.row_key.value)
        if message_id is not None:
            self.run_open(message_id)

    def on_chat_pane_edge_reached(self, event: ChatPane.EdgeReached) -> None:
        # A rebuild resets the scroll offset; that is not a user scroll.
        if self._chat_lock.locked():
            return
        self.run_page(event.edge)

    def action_page_older(self) -> None:
        self.run_page(Edge.TOP)

    def action_page_newer(self) -> None:
        self.run_page(Edge.BOTTOM)

    @work(exclusive=True, group=SEARCH_GROUP)
    async def run_search(self, query: str) -> None:
        self._set_status(f"searching for {query!r}...")
        try:
            messages = await self.viewer.search(query)
        except ChatServiceError as exc:
            LOGGER.warning("Search failed for %r: %s", query, exc)
            self._set_status(f"search failed: {exc}", error=True)
            return
        if messages is None:
            return
        self._render_results(messages)
        self._set_status(f"{len(messages)} results for {query!r}")

    @work(exclusive=True, group=OPEN_GROUP)
    async def run_open(self, message_id: str) -> None:
        self._set_status(f"loading conversation around {message_id}...")
        try:
            window = await self.viewer.open_conversation(message_id)
        except ChatServiceError as exc:
            LOGGER.warning("Opening %s failed: %s", message_id, exc)
            self._set_status(f"could not open conversation: {exc}", error=True)
            return
        if window is None:
            return
        await self._render_window(window)
        self._set_status(f"showing {len(self.viewer.chat.messages)} messages")

    @work(group=PAGE_GROUP)
    async def run_page(self, edge: Edge) -> None:
        try:
            if edge is Edge.TOP:
                inserted = await self.viewer.page_backward()
            else:
                inserted = await self.viewer.page_forward()
        except ChatServiceError as exc:
            LOGGER.warning("Loading %s messages failed: %s", edge.value, exc)
            self._set_status(f"could not load more messages: {exc}", error=True)
            return
        if not inserted:
            return
        await self._insert_lines(edge, inserted)
        self._set_status(f"showing {len(self.viewer.chat.messages)} messages")

    def _render_results(self, messages: List[Message]) -> None:
        table = self.query_one("#results", DataTable)
        table.clear()
        self._result_ids.clear()
        for index, message in enumerate(messages):
            row_key = f"{index}:{message.id}"
            self._result_ids[row_key] = message.id
            table.add_row(format_line(message), key=row_key)

    async def _render_window(self, window: ConversationWindow) -> None:
        chat = self.query_one("#chat", ChatPane)
        lines = [MessageLine(message) for message in window.before_messages]
        anchor = MessageLine(window.message, anchor=True)
        lines.append(anchor)
        lines.extend(MessageLine(message) for message in window.after_messages)
        async with self._chat_lock:
            await chat.remove_children()
            await chat.mount_all(lines)
            chat.display = True
        chat.call_after_refresh(chat.scroll_to_widget, anchor, animate=False, center=True)

    async def _insert_lines(self, edge: Edge, messages: List[Message]) -> None:
        chat = self.query_one("#chat", ChatPane)
        lines = [MessageLine(message) for message in messages]
        async with self._chat_lock:
            if edge is Edge.TOP:
                former_first = chat.lines[0]
                await chat.mount_all(lines, before=0)
                # Keep the reader on the line they were looking at.
                chat.call_after_refresh(chat.scroll_to_widget, former_first, animate=False, top=True)
            else:
                await chat.mount_all(lines)

    def _set_status(self, message: str, error: bool = False) -> None:
        status = self.query_one("#status", Static)
        status.set_class(error, "status-error")
        status.update(Text(message))

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("CHAT", ACCENT),
            ("SCOPE > Viewer", "bold"),
        )
