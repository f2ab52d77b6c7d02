"""Query identities for the synchronization cache."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class QueryKind(str, Enum):
    CALLER_PROFILE = "callerProfile"
    USER_PROFILE = "userProfile"
    CHAT_LIST = "chatList"
    MESSAGES = "messages"
    UNREAD_COUNT = "unreadCount"


@dataclass(frozen=True)
class QueryKey:
    kind: QueryKind
    param: str | None = None

    def __str__(self) -> str:
        if self.param is None:
            return self.kind.value
        return f"{self.kind.value}({self.param})"


def caller_profile() -> QueryKey:
    return QueryKey(QueryKind.CALLER_PROFILE)


def user_profile(user: str) -> QueryKey:
    return QueryKey(QueryKind.USER_PROFILE, user)


def chat_list() -> QueryKey:
    return QueryKey(QueryKind.CHAT_LIST)


def messages(with_user: str) -> QueryKey:
    return QueryKey(QueryKind.MESSAGES, with_user)


def unread_count(with_user: str) -> QueryKey:
    return QueryKey(QueryKind.UNREAD_COUNT, with_user)
