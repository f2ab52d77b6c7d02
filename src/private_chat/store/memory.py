"""In-process message store with the same semantics as the remote one."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, Iterable

from private_chat.exceptions import RemoteCallError
from private_chat.identity.principal import is_anonymous
from private_chat.store.base import BaseStoreClient
from private_chat.store.models import ChatListEntry, ChatMessage, UserProfile, UserRole

logger = logging.getLogger(__name__)

MAX_DISPLAY_NAME_LENGTH = 50
MAX_MESSAGE_LENGTH = 1000


class InMemoryMessageStore:
    """Shared state of a local message store.

    Holds profiles, roles and the message log for every principal. Use
    :meth:`client_for` to get a :class:`BaseStoreClient` acting as one caller.

    Args:
        clock: Nanosecond clock used for message timestamps. Timestamps are
            forced strictly increasing even if the clock stalls.
        admins: Principals that start with the admin role.
    """

    def __init__(
        self,
        clock: Callable[[], int] = time.time_ns,
        admins: Iterable[str] = (),
    ):
        self._clock = clock
        self._profiles: dict[str, UserProfile] = {}
        self._roles: dict[str, UserRole] = {p: UserRole.ADMIN for p in admins}
        self._messages: list[ChatMessage] = []
        self._next_id = 0
        self._last_timestamp = 0

    def client_for(self, caller: str) -> "InMemoryStoreClient":
        return InMemoryStoreClient(self, caller)

    # ---- Profiles ----

    def get_profile(self, user: str) -> UserProfile | None:
        return self._profiles.get(user)

    def save_profile(self, caller: str, profile: UserProfile) -> None:
        _require_registered(caller, "save a profile")
        name = profile.display_name.strip()
        if not name:
            raise RemoteCallError("Display name cannot be empty")
        if len(name) > MAX_DISPLAY_NAME_LENGTH:
            raise RemoteCallError(
                f"Display name exceeds {MAX_DISPLAY_NAME_LENGTH} characters"
            )
        self._profiles[caller] = profile
        logger.debug(f"Saved profile for {caller}")

    # ---- Messages ----

    def send(self, caller: str, receiver: str, content: str) -> ChatMessage:
        _require_registered(caller, "send messages")
        if receiver == caller:
            raise RemoteCallError("Cannot send a message to yourself")
        trimmed = content.strip()
        if not trimmed:
            raise RemoteCallError("Message cannot be empty")
        if len(trimmed) > MAX_MESSAGE_LENGTH:
            raise RemoteCallError(f"Message exceeds {MAX_MESSAGE_LENGTH} characters")

        timestamp = max(self._clock(), self._last_timestamp + 1)
        self._last_timestamp = timestamp
        message = ChatMessage(
            id=self._next_id,
            sender=caller,
            receiver=receiver,
            content=content,
            is_read=False,
            timestamp=timestamp,
        )
        self._next_id += 1
        self._messages.append(message)
        return message

    def thread(self, caller: str, other: str) -> list[ChatMessage]:
        return [
            m for m in self._messages
            if (m.sender, m.receiver) in ((caller, other), (other, caller))
        ]

    def chat_list(self, caller: str) -> list[ChatListEntry]:
        latest: dict[tuple[str, str], int] = {}
        for m in self._messages:
            if caller not in (m.sender, m.receiver):
                continue
            pair = tuple(sorted((m.sender, m.receiver)))
            latest[pair] = max(latest.get(pair, 0), m.timestamp)
        return [
            ChatListEntry(participants=pair, last_activity=ts)
            for pair, ts in latest.items()
        ]

    def unread_count(self, caller: str, other: str) -> int:
        return sum(
            1 for m in self._messages
            if m.receiver == caller and m.sender == other and not m.is_read
        )

    def mark_read(self, caller: str, other: str) -> int:
        _require_registered(caller, "mark messages as read")
        marked = 0
        for i, m in enumerate(self._messages):
            if m.receiver == caller and m.sender == other and not m.is_read:
                self._messages[i] = replace(m, is_read=True)
                marked += 1
        return marked

    # ---- Roles ----

    def role_of(self, caller: str) -> UserRole:
        if is_anonymous(caller):
            return UserRole.GUEST
        return self._roles.get(caller, UserRole.USER)

    def assign_role(self, caller: str, user: str, role: UserRole) -> None:
        if self.role_of(caller) is not UserRole.ADMIN:
            raise RemoteCallError("Unauthorized: only admins can assign user roles")
        self._roles[user] = UserRole(role)


def _require_registered(caller: str, action: str) -> None:
    if is_anonymous(caller):
        raise RemoteCallError(f"Unauthorized: anonymous callers cannot {action}")


class InMemoryStoreClient(BaseStoreClient):
    """:class:`BaseStoreClient` view of an :class:`InMemoryMessageStore` for one caller."""

    def __init__(self, store: InMemoryMessageStore, caller: str):
        self.store = store
        self.caller = caller

    async def get_caller_user_profile(self) -> UserProfile | None:
        return self.store.get_profile(self.caller)

    async def get_user_profile(self, user: str) -> UserProfile | None:
        return self.store.get_profile(user)

    async def save_caller_user_profile(self, profile: UserProfile) -> None:
        self.store.save_profile(self.caller, profile)

    async def get_chat_list(self) -> list[ChatListEntry]:
        return self.store.chat_list(self.caller)

    async def get_messages(self, with_user: str) -> list[ChatMessage]:
        return self.store.thread(self.caller, with_user)

    async def send_message(self, receiver: str, content: str) -> None:
        self.store.send(self.caller, receiver, content)

    async def get_unread_message_count(self, with_user: str) -> int:
        return self.store.unread_count(self.caller, with_user)

    async def mark_messages_as_read(self, with_user: str) -> None:
        self.store.mark_read(self.caller, with_user)

    async def get_caller_user_role(self) -> UserRole:
        return self.store.role_of(self.caller)

    async def assign_caller_user_role(self, user: str, role: UserRole) -> None:
        self.store.assign_role(self.caller, user, role)

    async def is_caller_admin(self) -> bool:
        return self.store.role_of(self.caller) is UserRole.ADMIN
