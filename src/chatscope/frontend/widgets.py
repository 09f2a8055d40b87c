"""Chat pane widgets."""

from __future__ import annotations

from rich.text import Text
from textual.containers import VerticalScroll
from textual.message import Message as TextualMessage
from textual.widgets import Static

from chatscope.core.models import Message, format_line
from chatscope.core.pagination import Edge, detect_edge


class MessageLine(Static):
    """One rendered chat line, tagged with the id of the message it shows."""

    def __init__(self, message: Message, anchor: bool = False) -> None:
        classes = "message-line anchor" if anchor else "message-line"
        line_text = format_line(message)
        # Rich Text keeps square brackets in chat text from being read as markup.
        super().__init__(Text(line_text), classes=classes)
        self.line_text = line_text
        self.message_id = message.id


class ChatPane(VerticalScroll):
    """Scrollable conversation pane that reports when an edge is reached."""

    class EdgeReached(TextualMessage):
        def __init__(self, edge: Edge) -> None:
            super().__init__()
            self.edge = edge

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        if old_value == new_value:
            return
        edge = detect_edge(new_value, self.container_size.height, self.virtual_size.height)
        if edge is not None:
            self.post_message(self.EdgeReached(edge))

    @property
    def lines(self) -> list[MessageLine]:
        return list(self.query(MessageLine))
