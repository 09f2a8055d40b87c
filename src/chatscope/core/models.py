"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any service-specific payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from chatscope.core.errors import MalformedResponseError


def _require(payload: Any, key: str) -> Any:
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"expected an object, got {type(payload).__name__}")
    if key not in payload:
        raise MalformedResponseError(f"missing field: {key}")
    return payload[key]


def parse_timestamp(value: Any) -> int:
    """Coerce a unix timestamp field, treating a missing value as 0."""

    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(f"invalid created_at: {value!r}") from exc


@dataclass(frozen=True)
class Message:
    """A single chat message as the viewer displays it."""

    id: str
    name: str
    text: str
    created_at: int = 0
    user_id: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "Message":
        """Build a Message from a decoded JSON object."""

        raw_id = _require(payload, "id")
        if raw_id is None or isinstance(raw_id, (dict, list)):
            raise MalformedResponseError(f"invalid message id: {raw_id!r}")
        # System and attachment-only messages come back with a null text.
        text = _require(payload, "text")
        return cls(
            id=str(raw_id),
            name=str(_require(payload, "name") or ""),
            text="" if text is None else str(text),
            created_at=parse_timestamp(payload.get("created_at")),
            user_id=str(payload.get("user_id") or ""),
        )


def parse_message_list(payload: Any) -> List[Message]:
    """Parse a JSON array of messages, keeping service order."""

    if not isinstance(payload, list):
        raise MalformedResponseError(f"expected a list of messages, got {type(payload).__name__}")
    return [Message.from_payload(item) for item in payload]


@dataclass(frozen=True)
class ConversationWindow:
    """Contiguous slice of a conversation centered on an anchor message."""

    before_messages: List[Message]
    message: Message
    after_messages: List[Message]

    @classmethod
    def from_payload(cls, payload: Any) -> "ConversationWindow":
        return cls(
            before_messages=parse_message_list(_require(payload, "before_messages") or []),
            message=Message.from_payload(_require(payload, "message")),
            after_messages=parse_message_list(_require(payload, "after_messages") or []),
        )

    def messages(self) -> List[Message]:
        """Return the window in display order: before, anchor, after."""

        return [*self.before_messages, self.message, *self.after_messages]


@dataclass(frozen=True)
class Attachment:
    """GroupMe attachment; only the fields relevant to its type are set."""

    type: str
    url: str = ""
    lat: str = ""
    lng: str = ""
    name: str = ""
    placeholder: str = ""
    charmap: List[List[int]] = field(default_factory=list)


@dataclass(frozen=True)
class ArchivedMessage:
    """Full message record as stored by the archiver."""

    id: str
    source_guid: str
    created_at: int
    user_id: str
    group_id: str
    name: str
    avatar_url: str
    text: str
    system: bool
    favorited_by: List[str] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)

    def to_message(self) -> Message:
        return Message(
            id=self.id,
            name=self.name,
            text=self.text,
            created_at=self.created_at,
            user_id=self.user_id,
        )


def format_line(message: Message) -> str:
    """Render a message as a single "name: text" line."""

    return f"{message.name}: {message.text}"
