"""Shared fixtures."""

import asyncio
import itertools
from collections import Counter

import pytest

from private_chat.exceptions import RemoteCallError
from private_chat.store.memory import InMemoryMessageStore, InMemoryStoreClient

START_NS = 1_700_000_000_000_000_000


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedClient(InMemoryStoreClient):
    """In-memory client that counts calls and can be told to block or fail.

    Reads are taken from the store before the gate, so a blocked query
    returns data as it was when the request was made.
    """

    def __init__(self, store, caller):
        super().__init__(store, caller)
        self.calls: Counter = Counter()
        self.failing: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}

    async def _enter(self, name: str) -> None:
        self.calls[name] += 1
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if name in self.failing:
            raise RemoteCallError(f"{name} unavailable")

    async def get_caller_user_profile(self):
        result = await super().get_caller_user_profile()
        await self._enter("get_caller_user_profile")
        return result

    async def get_user_profile(self, user):
        result = await super().get_user_profile(user)
        await self._enter("get_user_profile")
        return result

    async def get_chat_list(self):
        result = await super().get_chat_list()
        await self._enter("get_chat_list")
        return result

    async def get_messages(self, with_user):
        result = await super().get_messages(with_user)
        await self._enter("get_messages")
        return result

    async def get_unread_message_count(self, with_user):
        result = await super().get_unread_message_count(with_user)
        await self._enter("get_unread_message_count")
        return result

    async def send_message(self, receiver, content):
        await self._enter("send_message")
        await super().send_message(receiver, content)

    async def mark_messages_as_read(self, with_user):
        await self._enter("mark_messages_as_read")
        await super().mark_messages_as_read(with_user)

    async def save_caller_user_profile(self, profile):
        await self._enter("save_caller_user_profile")
        await super().save_caller_user_profile(profile)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    ticks = itertools.count(START_NS, 1_000_000_000)
    return InMemoryMessageStore(clock=lambda: next(ticks))


@pytest.fixture
def make_client(store):
    """Factory for :class:`ScriptedClient` instances sharing ``store``."""
    return lambda caller: ScriptedClient(store, caller)
