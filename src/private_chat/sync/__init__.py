"""Synchronization engine: keyed query cache, polling policy and mutations."""

from private_chat.sync.cache import CacheEntry, QueryCache, QuerySnapshot
from private_chat.sync.engine import QueryHandle, SyncEngine
from private_chat.sync.keys import QueryKey, QueryKind
from private_chat.sync.notices import Notice, NoticeBus, NoticeLevel
from private_chat.sync.option import ABSENT, Option, Present, option_of, unwrap_or
from private_chat.sync.policy import DEFAULT_POLICIES, QueryPolicy

__all__ = [
    "CacheEntry",
    "QueryCache",
    "QuerySnapshot",
    "QueryHandle",
    "SyncEngine",
    "QueryKey",
    "QueryKind",
    "Notice",
    "NoticeBus",
    "NoticeLevel",
    "ABSENT",
    "Option",
    "Present",
    "option_of",
    "unwrap_or",
    "DEFAULT_POLICIES",
    "QueryPolicy",
]
