"""Data models for the remote message store boundary."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


@dataclass(frozen=True)
class UserProfile:
    """Public profile of a principal."""

    display_name: str


@dataclass(frozen=True)
class ChatMessage:
    """A single direct message as returned by the store."""

    id: int
    sender: str
    receiver: str
    content: str
    is_read: bool
    timestamp: int  # nanoseconds since the Unix epoch, assigned by the store

    @property
    def sent_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1_000_000_000, tz=timezone.utc)

    def is_from(self, principal: str) -> bool:
        return self.sender == principal


@dataclass(frozen=True)
class ChatListEntry:
    """One thread in the caller's chat list, as the store reports it."""

    participants: tuple[str, str]
    last_activity: int  # nanoseconds, max timestamp over the thread
