"""Per-activation mark-as-read state machine.

Each time a thread view becomes visible a new :class:`ThreadActivation`
starts in ``IDLE``. The first time its message list has been fetched and is
non-empty, the activation latches to ``MARKING`` and issues exactly one
mark-read call; refetches afterwards never trigger another one. A new
activation of the same thread starts over in ``IDLE``.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from enum import Enum

from private_chat.exceptions import PrivateChatError, UnavailableError
from private_chat.sync import keys
from private_chat.sync.cache import QuerySnapshot
from private_chat.sync.engine import QueryHandle, SyncEngine
from private_chat.sync.keys import QueryKey, QueryKind

logger = logging.getLogger(__name__)


class ReadState(str, Enum):
    IDLE = "idle"
    MARKING = "marking"
    MARKED = "marked"
    FAILED = "failed"  # store rejected the call; retried on the next activation


class ThreadActivation:
    """One continuous period during which a thread with ``other`` is visible."""

    def __init__(self, viewer: str, other: str, activation_id: int, handle: QueryHandle):
        self.viewer = viewer
        self.other = other
        self.activation_id = activation_id
        self.state = ReadState.IDLE
        self.error: PrivateChatError | None = None
        self.mark_calls = 0
        self.active = True
        self._handle = handle

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.viewer, self.other, self.activation_id)

    def messages(self) -> QuerySnapshot:
        return self._handle.snapshot()

    def __repr__(self) -> str:
        return (
            f"ThreadActivation(other={self.other!r}, id={self.activation_id}, "
            f"state={self.state.value})"
        )


class ReadStateCoordinator:
    """Runs the mark-as-read state machine for every open thread of one viewer."""

    def __init__(self, engine: SyncEngine, viewer: str):
        self._engine = engine
        self.viewer = viewer
        self._activations: dict[tuple[str, str, int], ThreadActivation] = {}
        self._ids = itertools.count(1)
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe = engine.subscribe(self._on_change)

    def activate(self, other: str) -> ThreadActivation:
        """Open a thread view; keeps ``messages(other)`` polled until deactivated."""
        handle = self._engine.reference(keys.messages(other))
        activation = ThreadActivation(self.viewer, other, next(self._ids), handle)
        self._activations[activation.key] = activation
        logger.debug(f"Activated thread with {other} ({activation.activation_id})")
        self._schedule(activation)
        return activation

    def deactivate(self, activation: ThreadActivation) -> None:
        if not activation.active:
            return
        activation.active = False
        activation._handle.release()
        self._activations.pop(activation.key, None)
        logger.debug(
            f"Deactivated thread with {activation.other} "
            f"({activation.activation_id}, {activation.state.value})"
        )

    def activations(self) -> list[ThreadActivation]:
        return list(self._activations.values())

    def should_mark(self, activation: ThreadActivation) -> bool:
        if not activation.active or activation.state is not ReadState.IDLE:
            return False
        snapshot = activation.messages()
        return snapshot.is_fetched and bool(snapshot.value)

    async def observe(self, activation: ThreadActivation) -> ReadState:
        """Advance the state machine for the activation's current messages."""
        if not self.should_mark(activation):
            return activation.state

        activation.state = ReadState.MARKING
        try:
            activation.mark_calls += 1
            await self._engine.mark_messages_as_read(activation.other)
        except UnavailableError:
            activation.mark_calls -= 1
            activation.state = ReadState.IDLE
            logger.debug(f"Store not ready, mark-read for {activation.other} deferred")
            return activation.state
        except PrivateChatError as e:
            activation.state = ReadState.FAILED
            activation.error = e
            logger.warning(f"Marking thread with {activation.other} read failed: {e}")
            return activation.state

        activation.state = ReadState.MARKED
        if not activation.active:
            logger.debug(f"Mark-read for {activation.other} acknowledged after the view closed")
        return activation.state

    async def settle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Deactivate everything and stop listening to the engine."""
        for activation in self.activations():
            self.deactivate(activation)
        self._unsubscribe()

    def _on_change(self, key: QueryKey) -> None:
        if key.kind is not QueryKind.MESSAGES:
            return
        for activation in self.activations():
            if activation.other == key.param:
                self._schedule(activation)

    def _schedule(self, activation: ThreadActivation) -> None:
        if not self.should_mark(activation):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.observe(activation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
