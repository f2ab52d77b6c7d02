"""Signed-in session: builds the engine once identity resolves, tears it down on logout."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from private_chat.chatlist.view import ChatListView, display_name_for
from private_chat.composer.composer import MessageComposer
from private_chat.composer.forms import NewChatForm, ProfileEditor
from private_chat.config import ChatSettings
from private_chat.exceptions import UnavailableError
from private_chat.identity.context import IdentityContext
from private_chat.readstate.coordinator import ReadStateCoordinator, ThreadActivation
from private_chat.store.base import BaseStoreClient
from private_chat.store.models import ChatMessage, UserProfile
from private_chat.sync import keys
from private_chat.sync.engine import QueryHandle, SyncEngine
from private_chat.sync.notices import NoticeBus
from private_chat.sync.option import ABSENT, unwrap_or

logger = logging.getLogger(__name__)

StoreFactory = Callable[[str], BaseStoreClient]


class ThreadView:
    """An open conversation: its activation, composer and partner profile."""

    def __init__(self, engine: SyncEngine, coordinator: ReadStateCoordinator, other: str):
        self._engine = engine
        self._coordinator = coordinator
        self.other = other
        self.activation: ThreadActivation = coordinator.activate(other)
        self.composer = MessageComposer(engine, other)
        self._profile_handle = engine.reference(keys.user_profile(other))

    @property
    def viewer(self) -> str:
        return self.activation.viewer

    @property
    def is_loading(self) -> bool:
        return self.activation.messages().is_loading

    def messages(self) -> tuple[ChatMessage, ...]:
        return self.activation.messages().value or ()

    def is_own(self, message: ChatMessage) -> bool:
        return message.is_from(self.viewer)

    @property
    def display_name(self) -> str:
        return display_name_for(self._engine, self.other)

    def close(self) -> None:
        self._coordinator.deactivate(self.activation)
        self._profile_handle.release()


class ChatSession:
    """Owns the engine and coordinator for the authenticated caller.

    Args:
        identity: Identity context from the authentication layer.
        store_factory: Builds a store client bound to a principal.
        settings: Polling and connection settings.
        notices: Notice bus shared with the presentation layer.
        clock: Monotonic clock for the engine.
        autopoll: Start the background polling loop on :meth:`start`.
    """

    def __init__(
        self,
        identity: IdentityContext,
        store_factory: StoreFactory,
        settings: ChatSettings | None = None,
        notices: NoticeBus | None = None,
        clock: Callable[[], float] = time.monotonic,
        autopoll: bool = True,
    ):
        self.identity = identity
        self.settings = settings or ChatSettings()
        self.notices = notices if notices is not None else NoticeBus()
        self._store_factory = store_factory
        self._clock = clock
        self._autopoll = autopoll
        self._store: BaseStoreClient | None = None
        self._engine: SyncEngine | None = None
        self._coordinator: ReadStateCoordinator | None = None
        self._profile_handle: QueryHandle | None = None
        self._closing: asyncio.Task | None = None
        self._unsubscribe = identity.subscribe(self._on_identity_change)

    @classmethod
    def from_settings(
        cls,
        identity: IdentityContext,
        settings: ChatSettings | None = None,
        **kwargs,
    ) -> "ChatSession":
        """Session talking to the HTTP store configured in ``settings``."""
        from private_chat.store.client import HttpStoreClient

        settings = settings or ChatSettings.from_env()

        def factory(principal: str) -> BaseStoreClient:
            return HttpStoreClient(
                settings.store_url,
                auth_token=settings.auth_token,
                timeout=settings.request_timeout,
            )

        return cls(identity, factory, settings=settings, **kwargs)

    # ---- Lifecycle ----

    @property
    def is_active(self) -> bool:
        return self._engine is not None

    @property
    def viewer(self) -> str:
        return self.identity.require_principal()

    @property
    def engine(self) -> SyncEngine:
        if self._engine is None:
            raise UnavailableError("Session is not started")
        return self._engine

    @property
    def coordinator(self) -> ReadStateCoordinator:
        if self._coordinator is None:
            raise UnavailableError("Session is not started")
        return self._coordinator

    async def start(self) -> SyncEngine:
        """Build the engine for the resolved identity."""
        if self._engine is not None:
            return self._engine
        principal = self.identity.require_principal()
        self._store = self._store_factory(principal)
        self._engine = SyncEngine(
            self._store,
            policies=self.settings.policies(),
            notices=self.notices,
            clock=self._clock,
            tick_interval=self.settings.tick_seconds,
            gc_time=self.settings.gc_seconds,
        )
        self._coordinator = ReadStateCoordinator(self._engine, principal)
        self._profile_handle = self._engine.reference(keys.caller_profile())
        if self._autopoll:
            self._engine.start()
        logger.info(f"Session started for {principal}")
        return self._engine

    async def close(self) -> None:
        """Tear everything down; cached state is dropped and late results discarded."""
        if self._engine is None:
            return
        engine, store = self._engine, self._store
        self._engine = None
        self._store = None
        self._coordinator.close()
        self._coordinator = None
        self._profile_handle = None
        await engine.close()
        await store.aclose()
        logger.info("Session closed")

    async def logout(self) -> None:
        self.identity.clear()
        if self._closing is not None:
            await self._closing
        await self.close()

    def _on_identity_change(self, identity: IdentityContext) -> None:
        if identity.is_authenticated or self._engine is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Identity cleared outside the event loop; call close() to tear down")
            return
        self._closing = loop.create_task(self.close())

    # ---- Views ----

    def caller_profile(self) -> UserProfile | None:
        return unwrap_or(self.engine.snapshot(keys.caller_profile()).value)

    @property
    def needs_profile_setup(self) -> bool:
        """True once the caller's profile was fetched and found absent."""
        if self._engine is None or not self.identity.is_authenticated:
            return False
        snapshot = self._engine.snapshot(keys.caller_profile())
        return snapshot.is_fetched and snapshot.value is ABSENT

    def chat_list_view(self) -> ChatListView:
        return ChatListView(self.engine, self.viewer)

    def open_thread(self, other: str) -> ThreadView:
        return ThreadView(self.engine, self.coordinator, other)

    def profile_editor(self) -> ProfileEditor:
        return ProfileEditor(self.engine)

    def new_chat_form(self) -> NewChatForm:
        return NewChatForm(self.viewer)
