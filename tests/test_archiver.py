from __future__ import annotations

from typing import Optional

from chatscope.archiver import Archiver
from chatscope.core.models import ArchivedMessage


def _archived(message_id: int) -> ArchivedMessage:
    return ArchivedMessage(
        id=str(message_id),
        source_guid="",
        created_at=message_id,
        user_id="u",
        group_id="g",
        name="Ann",
        avatar_url="",
        text=f"m{message_id}",
        system=False,
    )


class FakeSource:
    def __init__(self, pages: list[list[ArchivedMessage]]) -> None:
        self._pages = list(pages)
        self.requested: list[Optional[str]] = []

    def get_messages(self, before_id: Optional[str] = None) -> list[ArchivedMessage]:
        self.requested.append(before_id)
        return self._pages.pop(0) if self._pages else []


class FakeStorage:
    def __init__(self, fail_ids: set[str] | None = None) -> None:
        self.saved: list[str] = []
        self._fail_ids = fail_ids or set()

    def save_message(self, message: ArchivedMessage) -> None:
        if message.id in self._fail_ids:
            raise RuntimeError("disk full")
        self.saved.append(message.id)


def test_walks_history_until_empty_page() -> None:
    source = FakeSource([[_archived(9), _archived(8)], [_archived(7), _archived(6)], [_archived(5)]])
    storage = FakeStorage()
    sleeps: list[float] = []

    saved = Archiver(source, storage, page_delay_seconds=2, sleep=sleeps.append).run()

    assert saved == 5
    assert source.requested == [None, "8", "6", "5"]
    assert storage.saved == ["9", "8", "7", "6", "5"]
    assert sleeps == [2, 2, 2]


def test_failed_save_is_skipped() -> None:
    source = FakeSource([[_archived(3), _archived(2), _archived(1)]])
    storage = FakeStorage(fail_ids={"2"})

    saved = Archiver(source, storage, page_delay_seconds=0, sleep=lambda _: None).run()

    assert saved == 2
    assert storage.saved == ["3", "1"]
    # The cursor still advances past the failed message.
    assert source.requested == [None, "1"]


def test_empty_group_saves_nothing() -> None:
    source = FakeSource([])
    assert Archiver(source, FakeStorage(), sleep=lambda _: None).run() == 0
    assert source.requested == [None]
