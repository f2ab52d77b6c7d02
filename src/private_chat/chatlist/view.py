"""Live chat list: the projected threads plus each partner's profile and unread count."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from private_chat.chatlist.display import shorten_principal, unread_badge
from private_chat.chatlist.projector import ChatThreadSummary, project_chat_list
from private_chat.sync import keys
from private_chat.sync.cache import QuerySnapshot
from private_chat.sync.engine import QueryHandle, SyncEngine
from private_chat.sync.keys import QueryKey, QueryKind
from private_chat.sync.option import unwrap_or

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatListItem:
    other: str
    last_activity: int
    display_name: str
    unread_count: int
    badge: str | None


def display_name_for(engine: SyncEngine, principal: str) -> str:
    """Profile name if one is cached, else the shortened principal."""
    profile = unwrap_or(engine.snapshot(keys.user_profile(principal)).value)
    if profile is not None and profile.display_name:
        return profile.display_name
    return shorten_principal(principal)


class ChatListView:
    """Keeps the chat list referenced, plus profile and unread count per partner.

    Partner queries are referenced while the partner appears in the list and
    released when it drops out, so only visible rows are polled.
    """

    def __init__(self, engine: SyncEngine, viewer: str):
        self._engine = engine
        self.viewer = viewer
        self._list_handle = engine.reference(keys.chat_list())
        self._partners: dict[str, tuple[QueryHandle, QueryHandle]] = {}
        self._unsubscribe = engine.subscribe(self._on_change)
        self._closed = False
        self._sync_partners()

    def snapshot(self) -> QuerySnapshot:
        return self._list_handle.snapshot()

    @property
    def is_loading(self) -> bool:
        return self.snapshot().is_loading

    def threads(self) -> list[ChatThreadSummary]:
        entries = self.snapshot().value or ()
        return project_chat_list(entries, self.viewer, strict=False)

    def items(self) -> list[ChatListItem]:
        rows = []
        for thread in self.threads():
            count = self._engine.snapshot(keys.unread_count(thread.other)).value or 0
            rows.append(ChatListItem(
                other=thread.other,
                last_activity=thread.last_activity,
                display_name=display_name_for(self._engine, thread.other),
                unread_count=count,
                badge=unread_badge(count),
            ))
        return rows

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._unsubscribe()
        for profile_handle, unread_handle in self._partners.values():
            profile_handle.release()
            unread_handle.release()
        self._partners = {}
        self._list_handle.release()

    def _on_change(self, key: QueryKey) -> None:
        if key.kind is QueryKind.CHAT_LIST and not self._closed:
            self._sync_partners()

    def _sync_partners(self) -> None:
        wanted = {thread.other for thread in self.threads()}
        for other in wanted - self._partners.keys():
            self._partners[other] = (
                self._engine.reference(keys.user_profile(other)),
                self._engine.reference(keys.unread_count(other)),
            )
        for other in self._partners.keys() - wanted:
            profile_handle, unread_handle = self._partners.pop(other)
            profile_handle.release()
            unread_handle.release()
        logger.debug(f"Chat list tracks {len(self._partners)} partners")
