"""Tests for the signed-in session."""

import asyncio

import pytest

from private_chat.config import ChatSettings
from private_chat.exceptions import UnavailableError
from private_chat.identity.context import IdentityContext
from private_chat.readstate.coordinator import ReadState
from private_chat.session import ChatSession
from private_chat.store.client import HttpStoreClient
from private_chat.store.models import UserProfile

ALICE = "aaa"
BOB = "bbb"


@pytest.fixture
def session(make_client, clock):
    return ChatSession(IdentityContext(ALICE), make_client, clock=clock, autopoll=False)


@pytest.mark.asyncio
async def test_start_requires_identity(make_client, clock):
    session = ChatSession(IdentityContext(initializing=True), make_client, clock=clock)
    with pytest.raises(UnavailableError):
        await session.start()
    assert not session.is_active
    with pytest.raises(UnavailableError):
        session.engine


@pytest.mark.asyncio
async def test_new_user_needs_profile_setup(session):
    assert not session.needs_profile_setup
    await session.start()
    await session.engine.settle()
    assert session.needs_profile_setup
    assert session.caller_profile() is None

    editor = session.profile_editor()
    editor.set_display_name("Alice")
    assert await editor.submit()
    await session.engine.settle()

    assert not session.needs_profile_setup
    assert session.caller_profile() == UserProfile("Alice")
    await session.close()


@pytest.mark.asyncio
async def test_thread_view_round_trip(store, session):
    store.save_profile(BOB, UserProfile("Bob"))
    store.send(BOB, ALICE, "hi alice")
    await session.start()
    engine = session.engine

    thread = session.open_thread(BOB)
    assert thread.is_loading
    await engine.settle()
    await session.coordinator.settle()
    await engine.settle()

    assert thread.display_name == "Bob"
    assert thread.activation.state is ReadState.MARKED
    assert store.unread_count(ALICE, BOB) == 0

    thread.composer.set_text("hi bob")
    assert await thread.composer.submit()
    await engine.settle()

    messages = thread.messages()
    assert [m.content for m in messages] == ["hi alice", "hi bob"]
    assert [thread.is_own(m) for m in messages] == [False, True]

    thread.close()
    assert session.coordinator.activations() == []
    await session.close()


@pytest.mark.asyncio
async def test_chat_list_and_new_chat(store, session):
    store.send(BOB, ALICE, "hi")
    await session.start()
    view = session.chat_list_view()
    await session.engine.settle()

    assert [item.other for item in view.items()] == [BOB]
    assert session.new_chat_form().viewer == ALICE
    view.close()
    await session.close()


@pytest.mark.asyncio
async def test_identity_clear_tears_down(session):
    await session.start()
    await session.engine.settle()

    await session.logout()

    assert not session.is_active
    assert not session.identity.is_authenticated
    with pytest.raises(UnavailableError):
        session.coordinator


@pytest.mark.asyncio
async def test_identity_clear_from_auth_layer(session):
    await session.start()
    session.identity.clear()
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert not session.is_active


@pytest.mark.asyncio
async def test_start_is_idempotent_and_polls(make_client, clock):
    polling = ChatSession(IdentityContext(ALICE), make_client, clock=clock)
    engine = await polling.start()
    assert await polling.start() is engine
    await polling.close()


def test_from_settings_builds_http_store():
    settings = ChatSettings(store_url="https://store.test", auth_token="t")
    session = ChatSession.from_settings(IdentityContext(ALICE), settings=settings)
    store = session._store_factory(ALICE)
    assert isinstance(store, HttpStoreClient)
    assert store.base_url == "https://store.test"
    assert store.auth_token == "t"
