"""Polling synchronization engine over the remote message store.

The engine owns one :class:`~private_chat.sync.cache.CacheEntry` per query
key. A key is fetched when it is referenced, not already in flight, and
either never fetched, invalidated, or past its poll interval. Mutations go
through the engine so that their cache invalidations happen only after the
store confirmed them.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Iterable

from private_chat.exceptions import DataError, PrivateChatError, RemoteCallError, UnavailableError
from private_chat.store.base import BaseStoreClient
from private_chat.store.models import ChatMessage, UserProfile, UserRole
from private_chat.sync import keys
from private_chat.sync.cache import CacheEntry, QueryCache, QuerySnapshot
from private_chat.sync.keys import QueryKey, QueryKind
from private_chat.sync.notices import NoticeBus
from private_chat.sync.option import option_of
from private_chat.sync.policy import DEFAULT_POLICIES, QueryPolicy

logger = logging.getLogger(__name__)

ChangeListener = Callable[[QueryKey], None]


class QueryHandle:
    """Live reference to one query. Polling for the key runs while any handle is open."""

    def __init__(self, engine: "SyncEngine", key: QueryKey, entry: CacheEntry):
        self._engine = engine
        self.key = key
        self._entry = entry
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def snapshot(self) -> QuerySnapshot:
        return self._engine.snapshot(self.key)

    @property
    def value(self) -> Any:
        return self.snapshot().value

    def release(self) -> None:
        if not self._released:
            self._released = True
            self._engine._release(self.key, self._entry)

    def __enter__(self) -> "QueryHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class SyncEngine:
    """Keyed query cache with polling, invalidation and confirmed mutations.

    Args:
        store: Store client bound to the current caller, or ``None`` while the
            identity is unresolved (queries then stay pending).
        policies: Per-kind overrides of :data:`DEFAULT_POLICIES`.
        notices: Bus receiving mutation outcome notices.
        clock: Monotonic clock in seconds.
        tick_interval: Seconds between scheduler passes in :meth:`start`.
        gc_time: Seconds an unreferenced entry is kept before :meth:`collect`
            drops it.
    """

    def __init__(
        self,
        store: BaseStoreClient | None = None,
        policies: dict[QueryKind, QueryPolicy] | None = None,
        notices: NoticeBus | None = None,
        clock: Callable[[], float] = time.monotonic,
        tick_interval: float = 0.5,
        gc_time: float = 300.0,
    ):
        self._store = store
        self.policies = dict(DEFAULT_POLICIES)
        if policies:
            self.policies.update(policies)
        self.notices = notices if notices is not None else NoticeBus()
        self._clock = clock
        self.tick_interval = tick_interval
        self.gc_time = gc_time
        self._cache = QueryCache()
        self._read_ids: dict[str, set[int]] = {}
        self._listeners: list[ChangeListener] = []
        self._tasks: set[asyncio.Task] = set()
        self._loop_task: asyncio.Task | None = None

    # ---- Readiness ----

    @property
    def is_ready(self) -> bool:
        return self._store is not None

    @property
    def store(self) -> BaseStoreClient:
        if self._store is None:
            raise UnavailableError("Remote store is not ready")
        return self._store

    def attach(self, store: BaseStoreClient) -> None:
        """Bind a store client; pending referenced queries become fetchable."""
        self._store = store
        logger.info("Store attached")
        for entry in self._cache:
            self._schedule(entry)

    def detach(self) -> None:
        """Unbind the store and drop all cached state."""
        self._store = None
        self.clear()
        logger.info("Store detached")

    def policy_for(self, key: QueryKey) -> QueryPolicy:
        return self.policies[key.kind]

    # ---- Queries ----

    def reference(self, key: QueryKey) -> QueryHandle:
        """Start observing ``key``; fetches it if it is missing or stale."""
        entry = self._cache.entry(key)
        entry.ref_count += 1
        entry.released_at = None
        now = self._clock()
        stale = entry.error is not None or self.policy_for(key).is_stale(entry.last_fetched_at, now)
        if stale and not entry.fetching and entry.last_attempt_at is not None:
            entry.invalidated = True
        self._schedule(entry)
        return QueryHandle(self, key, entry)

    def _release(self, key: QueryKey, entry: CacheEntry) -> None:
        if self._cache.peek(key) is not entry:
            return
        entry.ref_count = max(0, entry.ref_count - 1)
        if not entry.referenced:
            entry.released_at = self._clock()
            logger.debug(f"{key} no longer referenced, polling stops")

    def snapshot(self, key: QueryKey) -> QuerySnapshot:
        return self._cache.snapshot(key)

    def is_due(self, entry: CacheEntry, now: float) -> bool:
        if not entry.referenced or entry.fetching:
            return False
        if entry.invalidated:
            return True
        return self.policy_for(entry.key).poll_due(entry.last_attempt_at, now)

    def due_keys(self) -> list[QueryKey]:
        now = self._clock()
        return [entry.key for entry in self._cache if self.is_due(entry, now)]

    def poll(self) -> list[asyncio.Task]:
        """Spawn a fetch for every due key. Must run inside the event loop."""
        if not self.is_ready:
            return []
        return [self._spawn(key) for key in self.due_keys()]

    async def fetch(self, key: QueryKey) -> QuerySnapshot:
        """Fetch ``key`` now unless a fetch for it is already in flight."""
        if not self.is_ready:
            logger.debug(f"Store not ready, {key} stays pending")
            return self.snapshot(key)

        entry = self._cache.entry(key)
        if entry.fetching:
            logger.debug(f"Fetch of {key} already in flight, skipping")
            return self.snapshot(key)

        entry.fetching = True
        entry.invalidated = False
        entry.last_attempt_at = self._clock()
        seq = entry.invalidation_seq
        store = self._store

        raw = None
        error: PrivateChatError | None = None
        try:
            raw = await self._fetch_remote(store, key)
        except asyncio.CancelledError:
            if self._cache.peek(key) is entry:
                entry.fetching = False
            raise
        except PrivateChatError as e:
            error = e
        except Exception as e:
            error = RemoteCallError(f"Fetching {key} failed: {e}")
            error.__cause__ = e

        if self._cache.peek(key) is not entry or store is not self._store:
            logger.debug(f"Discarding late result for {key}")
            return self.snapshot(key)

        entry.fetching = False
        if entry.invalidation_seq != seq:
            # invalidated while in flight; the result may predate the mutation
            entry.invalidated = True
        if error is None:
            try:
                entry.value = self._normalize(key, raw)
                entry.last_fetched_at = self._clock()
                entry.error = None
            except DataError as e:
                error = e
        if error is not None:
            entry.error = error
            if isinstance(error, DataError):
                logger.error(f"Bad data for {key}: {error}")
            else:
                logger.warning(f"Fetching {key} failed, keeping last value: {error}")
        if not entry.referenced and entry.released_at is None:
            entry.released_at = self._clock()

        self._emit(key)
        if entry.invalidated:
            self._schedule(entry)
        return self.snapshot(key)

    async def _fetch_remote(self, store: BaseStoreClient, key: QueryKey) -> Any:
        kind = key.kind
        if kind is QueryKind.CALLER_PROFILE:
            return await store.get_caller_user_profile()
        if kind is QueryKind.USER_PROFILE:
            return await store.get_user_profile(key.param)
        if kind is QueryKind.CHAT_LIST:
            return await store.get_chat_list()
        if kind is QueryKind.MESSAGES:
            return await store.get_messages(key.param)
        if kind is QueryKind.UNREAD_COUNT:
            return await store.get_unread_message_count(key.param)
        raise DataError(f"Unknown query kind: {kind}")

    def _normalize(self, key: QueryKey, raw: Any) -> Any:
        kind = key.kind
        if kind in (QueryKind.CALLER_PROFILE, QueryKind.USER_PROFILE):
            return option_of(raw)
        if kind is QueryKind.CHAT_LIST:
            return tuple(sorted(raw, key=lambda e: (-e.last_activity, e.participants)))
        if kind is QueryKind.MESSAGES:
            return self._merge_read_state(key.param, raw)
        if kind is QueryKind.UNREAD_COUNT:
            count = int(raw)
            if count < 0:
                logger.error(f"Store reported negative unread count {count} for {key}")
                return 0
            return count
        raise DataError(f"Unknown query kind: {kind}")

    def _merge_read_state(self, with_user: str, raw: Iterable[ChatMessage]) -> tuple[ChatMessage, ...]:
        """Sort a thread and keep every message seen read as read.

        Read ids are remembered per thread until the thread's entry is
        collected or the engine is cleared.
        """
        merged = []
        read_ids = self._read_ids.setdefault(with_user, set())
        for message in raw:
            if with_user not in (message.sender, message.receiver):
                logger.error(f"Dropping message {message.id}: not part of thread with {with_user}")
                continue
            if message.is_read:
                read_ids.add(message.id)
            elif message.id in read_ids:
                logger.debug(f"Store returned message {message.id} unread after it was read")
                message = replace(message, is_read=True)
            merged.append(message)
        merged.sort(key=lambda m: (m.timestamp, m.id))
        return tuple(merged)

    def invalidate(self, *query_keys: QueryKey) -> None:
        """Mark keys for refetch; referenced ones are refetched right away."""
        for key in query_keys:
            if not self._cache.invalidate(key):
                continue
            logger.debug(f"Invalidated {key}")
            self._emit(key)
            self._schedule(self._cache.peek(key))

    # ---- Scheduling ----

    def _schedule(self, entry: CacheEntry | None) -> asyncio.Task | None:
        if entry is None or not self.is_ready or not self.is_due(entry, self._clock()):
            return None
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop, {entry.key} waits for the next poll")
            return None
        return self._spawn(entry.key)

    def _spawn(self, key: QueryKey) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self.fetch(key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def settle(self) -> None:
        """Wait until no fetch spawned by the engine is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def start(self) -> None:
        """Run the polling loop as a background task."""
        if self._loop_task is not None and not self._loop_task.done():
            return
        self._loop_task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        logger.info(f"Polling started (tick every {self.tick_interval}s)")
        while True:
            self.poll()
            self.collect()
            await asyncio.sleep(self.tick_interval)

    async def stop(self) -> None:
        task, self._loop_task = self._loop_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Polling stopped")

    def collect(self) -> int:
        """Drop entries unreferenced for longer than ``gc_time``."""
        now = self._clock()
        dropped = 0
        for entry in self._cache:
            if entry.referenced or entry.fetching or entry.released_at is None:
                continue
            if now - entry.released_at >= self.gc_time:
                self._cache.remove(entry.key)
                if entry.key.kind is QueryKind.MESSAGES:
                    self._read_ids.pop(entry.key.param, None)
                dropped += 1
        if dropped:
            logger.debug(f"Collected {dropped} unreferenced entries")
        return dropped

    def clear(self) -> None:
        """Drop every entry; in-flight results for them will be discarded."""
        self._cache.clear()
        self._read_ids.clear()

    async def close(self) -> None:
        await self.stop()
        self.detach()

    # ---- Listeners ----

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, key: QueryKey) -> None:
        for listener in list(self._listeners):
            try:
                listener(key)
            except Exception:
                logger.exception(f"Change listener failed for {key}")

    # ---- Mutations ----

    async def send_message(self, receiver: str, content: str) -> None:
        await self._mutate(
            "send_message",
            lambda store: store.send_message(receiver, content),
            invalidates=(keys.messages(receiver), keys.chat_list()),
            failure_message="Failed to send message",
        )

    async def mark_messages_as_read(self, with_user: str) -> None:
        await self._mutate(
            "mark_messages_as_read",
            lambda store: store.mark_messages_as_read(with_user),
            invalidates=(keys.unread_count(with_user), keys.messages(with_user)),
            failure_message="Failed to mark messages as read",
        )

    async def save_caller_user_profile(self, profile: UserProfile) -> None:
        await self._mutate(
            "save_caller_user_profile",
            lambda store: store.save_caller_user_profile(profile),
            invalidates=(keys.caller_profile(),),
            failure_message="Failed to update profile",
            success_message="Profile updated successfully",
        )

    async def _mutate(
        self,
        operation: str,
        call: Callable[[BaseStoreClient], Awaitable[None]],
        invalidates: tuple[QueryKey, ...],
        failure_message: str,
        success_message: str | None = None,
    ) -> None:
        store = self.store
        try:
            await call(store)
        except PrivateChatError as e:
            self._report_failure(operation, failure_message, e)
            raise
        except Exception as e:
            error = RemoteCallError(f"{failure_message}: {e}")
            self._report_failure(operation, failure_message, error)
            raise error from e

        logger.info(f"{operation} succeeded")
        self.invalidate(*invalidates)
        if success_message:
            self.notices.success(success_message, source=operation)

    def _report_failure(self, operation: str, failure_message: str, error: Exception) -> None:
        logger.error(f"{operation} failed: {error}")
        self.notices.error(str(error) or failure_message, source=operation)

    # ---- Role pass-through (uncached) ----

    async def get_caller_user_role(self) -> UserRole:
        return await self.store.get_caller_user_role()

    async def assign_caller_user_role(self, user: str, role: UserRole) -> None:
        await self.store.assign_caller_user_role(user, role)

    async def is_caller_admin(self) -> bool:
        return await self.store.is_caller_admin()
