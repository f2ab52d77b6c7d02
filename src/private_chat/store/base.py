"""Abstract boundary to the remote message store."""

from __future__ import annotations

from abc import ABC, abstractmethod

from private_chat.store.models import ChatListEntry, ChatMessage, UserProfile, UserRole


class BaseStoreClient(ABC):
    """Async RPC interface of the remote store, bound to one caller.

    Every method may raise :class:`~private_chat.exceptions.RemoteCallError`
    when the store rejects the call or cannot be reached.
    """

    @abstractmethod
    async def get_caller_user_profile(self) -> UserProfile | None:
        """Profile of the caller; ``None`` if none was saved yet."""
        ...

    @abstractmethod
    async def get_user_profile(self, user: str) -> UserProfile | None:
        ...

    @abstractmethod
    async def save_caller_user_profile(self, profile: UserProfile) -> None:
        ...

    @abstractmethod
    async def get_chat_list(self) -> list[ChatListEntry]:
        """Threads involving the caller, in no particular order."""
        ...

    @abstractmethod
    async def get_messages(self, with_user: str) -> list[ChatMessage]:
        """Messages between the caller and ``with_user``, in no particular order."""
        ...

    @abstractmethod
    async def send_message(self, receiver: str, content: str) -> None:
        ...

    @abstractmethod
    async def get_unread_message_count(self, with_user: str) -> int:
        ...

    @abstractmethod
    async def mark_messages_as_read(self, with_user: str) -> None:
        """Mark every message from ``with_user`` to the caller as read."""
        ...

    @abstractmethod
    async def get_caller_user_role(self) -> UserRole:
        ...

    @abstractmethod
    async def assign_caller_user_role(self, user: str, role: UserRole) -> None:
        ...

    @abstractmethod
    async def is_caller_admin(self) -> bool:
        ...

    async def aclose(self) -> None:
        """Release transport resources, if any."""
