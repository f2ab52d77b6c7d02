"""Remote message store boundary: models, async client interface and backends."""

from private_chat.store.base import BaseStoreClient
from private_chat.store.client import HttpStoreClient
from private_chat.store.memory import InMemoryMessageStore, InMemoryStoreClient
from private_chat.store.models import ChatListEntry, ChatMessage, UserProfile, UserRole

__all__ = [
    "BaseStoreClient",
    "HttpStoreClient",
    "InMemoryMessageStore",
    "InMemoryStoreClient",
    "ChatListEntry",
    "ChatMessage",
    "UserProfile",
    "UserRole",
]
