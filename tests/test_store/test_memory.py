"""Tests for the in-process message store."""

import pytest

from private_chat.exceptions import RemoteCallError
from private_chat.identity.principal import ANONYMOUS_PRINCIPAL
from private_chat.store.memory import InMemoryMessageStore
from private_chat.store.models import ChatListEntry, UserProfile, UserRole

ALICE = "aaa"
BOB = "bbb"
CAROL = "ccc"


def test_send_assigns_ids_and_increasing_timestamps():
    store = InMemoryMessageStore(clock=lambda: 5)
    first = store.send(ALICE, BOB, "one")
    second = store.send(BOB, ALICE, "two")

    assert (first.id, second.id) == (0, 1)
    assert first.timestamp == 5
    assert second.timestamp == 6
    assert first.is_read is False


def test_send_rejects_self_empty_and_oversized(store):
    with pytest.raises(RemoteCallError, match="yourself"):
        store.send(ALICE, ALICE, "hi")
    with pytest.raises(RemoteCallError, match="empty"):
        store.send(ALICE, BOB, "   ")
    with pytest.raises(RemoteCallError, match="1000"):
        store.send(ALICE, BOB, "x" * 1001)
    assert store.thread(ALICE, BOB) == []


def test_anonymous_cannot_send(store):
    with pytest.raises(RemoteCallError, match="Unauthorized"):
        store.send(ANONYMOUS_PRINCIPAL, BOB, "hi")


def test_thread_contains_both_directions_only(store):
    store.send(ALICE, BOB, "a->b")
    store.send(BOB, ALICE, "b->a")
    store.send(ALICE, CAROL, "a->c")

    contents = [m.content for m in store.thread(ALICE, BOB)]
    assert contents == ["a->b", "b->a"]
    assert store.thread(BOB, ALICE) == store.thread(ALICE, BOB)


def test_chat_list_uses_latest_timestamp(store):
    store.send(ALICE, BOB, "1")
    latest = store.send(BOB, ALICE, "2")
    store.send(CAROL, BOB, "unrelated")

    assert store.chat_list(ALICE) == [ChatListEntry((ALICE, BOB), latest.timestamp)]
    assert len(store.chat_list(BOB)) == 2


def test_unread_count_and_mark_read(store):
    store.send(BOB, ALICE, "1")
    store.send(BOB, ALICE, "2")
    store.send(ALICE, BOB, "mine")

    assert store.unread_count(ALICE, BOB) == 2
    assert store.unread_count(BOB, ALICE) == 1
    assert store.mark_read(ALICE, BOB) == 2
    assert store.unread_count(ALICE, BOB) == 0
    assert store.mark_read(ALICE, BOB) == 0
    assert store.unread_count(BOB, ALICE) == 1


def test_save_profile_validates_name(store):
    store.save_profile(ALICE, UserProfile("Alice"))
    assert store.get_profile(ALICE) == UserProfile("Alice")
    assert store.get_profile(BOB) is None

    with pytest.raises(RemoteCallError):
        store.save_profile(ALICE, UserProfile("  "))
    with pytest.raises(RemoteCallError):
        store.save_profile(ALICE, UserProfile("x" * 51))


def test_roles():
    store = InMemoryMessageStore(admins=[ALICE])
    assert store.role_of(ALICE) is UserRole.ADMIN
    assert store.role_of(BOB) is UserRole.USER
    assert store.role_of(ANONYMOUS_PRINCIPAL) is UserRole.GUEST

    store.assign_role(ALICE, BOB, UserRole.ADMIN)
    assert store.role_of(BOB) is UserRole.ADMIN

    with pytest.raises(RemoteCallError, match="only admins"):
        store.assign_role(CAROL, CAROL, UserRole.ADMIN)


@pytest.mark.asyncio
async def test_client_acts_as_caller(store):
    alice = store.client_for(ALICE)
    bob = store.client_for(BOB)

    await alice.send_message(BOB, "hello")
    assert await bob.get_unread_message_count(ALICE) == 1
    messages = await bob.get_messages(ALICE)
    assert [m.content for m in messages] == ["hello"]

    await bob.mark_messages_as_read(ALICE)
    assert await bob.get_unread_message_count(ALICE) == 0
    assert await alice.get_caller_user_profile() is None
    assert await alice.is_caller_admin() is False
    assert await alice.get_caller_user_role() is UserRole.USER
    await alice.aclose()
