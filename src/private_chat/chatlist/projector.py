"""Project raw chat list entries into the viewer's ordered thread list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from private_chat.exceptions import DataError
from private_chat.store.models import ChatListEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatThreadSummary:
    """A thread as seen by the viewer: who it is with and when it last moved."""

    other: str
    last_activity: int


def other_participant(entry: ChatListEntry, viewer: str) -> str:
    """Return the participant of ``entry`` that is not ``viewer``."""
    first, second = entry.participants
    if first == viewer:
        return second
    if second == viewer:
        return first
    raise DataError(
        f"Chat list entry {entry.participants} does not include viewer {viewer}"
    )


def _recency_key(thread: ChatThreadSummary) -> tuple[int, str]:
    # newest first; equal timestamps ordered by principal text
    return (-thread.last_activity, thread.other)


def project_chat_list(
    entries: Iterable[ChatListEntry],
    viewer: str,
    strict: bool = True,
) -> list[ChatThreadSummary]:
    """Map entries to :class:`ChatThreadSummary` sorted newest first.

    Args:
        entries: Raw entries in any order.
        viewer: Principal of the current user.
        strict: Raise :class:`DataError` on an entry that excludes the
            viewer. When False such entries are logged and skipped.
    """
    threads = []
    for entry in entries:
        try:
            other = other_participant(entry, viewer)
        except DataError as e:
            if strict:
                raise
            logger.error(f"Skipping chat list entry: {e}")
            continue
        threads.append(ChatThreadSummary(other=other, last_activity=entry.last_activity))
    threads.sort(key=_recency_key)
    return threads
