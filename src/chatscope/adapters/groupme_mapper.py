"""GroupMe-to-core message mapping adapter.

This keeps the GroupMe payload layout out of the archiver and the store.
"""

from __future__ import annotations

from typing import Any, List

from chatscope.core.errors import MalformedResponseError
from chatscope.core.models import ArchivedMessage, Attachment, parse_timestamp


def _attachment_from_payload(raw: dict[str, Any]) -> Attachment:
    return Attachment(
        type=str(raw.get("type") or ""),
        url=str(raw.get("url") or ""),
        # Location attachments send coordinates as strings; keep them verbatim.
        lat=str(raw.get("lat") or ""),
        lng=str(raw.get("lng") or ""),
        name=str(raw.get("name") or ""),
        placeholder=str(raw.get("placeholder") or ""),
        charmap=[list(pair) for pair in raw.get("charmap") or []],
    )


def build_archived_message(raw: Any) -> ArchivedMessage:
    """Build an ArchivedMessage from one entry of a GroupMe messages page."""

    if not isinstance(raw, dict) or not raw.get("id"):
        raise MalformedResponseError(f"GroupMe message without id: {raw!r}")
    return ArchivedMessage(
        id=str(raw["id"]),
        source_guid=str(raw.get("source_guid") or ""),
        created_at=parse_timestamp(raw.get("created_at")),
        user_id=str(raw.get("user_id") or ""),
        group_id=str(raw.get("group_id") or ""),
        name=str(raw.get("name") or ""),
        avatar_url=str(raw.get("avatar_url") or ""),
        # Attachment-only and system messages have a null text.
        text=str(raw.get("text") or ""),
        system=bool(raw.get("system", False)),
        favorited_by=[str(user) for user in raw.get("favorited_by") or []],
        attachments=[_attachment_from_payload(item) for item in raw.get("attachments") or []],
    )


def build_archived_messages(payload: Any) -> List[ArchivedMessage]:
    """Unwrap a GroupMe `{"response": {"count", "messages"}}` envelope."""

    if not isinstance(payload, dict):
        raise MalformedResponseError("GroupMe payload is not an object")
    # The API wraps data in "response"; tolerate an already unwrapped body.
    body = payload.get("response", payload) or {}
    messages = body.get("messages")
    if messages is None:
        return []
    if not isinstance(messages, list):
        raise MalformedResponseError("GroupMe messages is not a list")
    return [build_archived_message(item) for item in messages]
