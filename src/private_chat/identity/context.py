"""Current-user identity, as handed over by the authentication layer."""

from __future__ import annotations

import logging
from typing import Callable

from private_chat.exceptions import UnavailableError
from private_chat.identity.principal import Principal, is_anonymous

logger = logging.getLogger(__name__)

IdentityListener = Callable[["IdentityContext"], None]


class IdentityContext:
    """Holds the caller's principal and whether it is authenticated.

    The authentication layer calls :meth:`resolve` once login completes and
    :meth:`clear` on logout. Listeners are notified on every change.

    Args:
        principal: Principal already known at construction, if any.
        initializing: True while the authentication layer is still
            restoring a stored identity.
    """

    def __init__(self, principal: Principal | None = None, initializing: bool = False):
        self._principal = principal
        self._initializing = initializing
        self._listeners: list[IdentityListener] = []

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def is_initializing(self) -> bool:
        return self._initializing

    @property
    def is_authenticated(self) -> bool:
        return not self._initializing and not is_anonymous(self._principal)

    def require_principal(self) -> Principal:
        """Return the authenticated principal or raise UnavailableError."""
        if not self.is_authenticated:
            raise UnavailableError("Identity is not resolved")
        return self._principal

    def resolve(self, principal: Principal) -> None:
        self._principal = principal
        self._initializing = False
        logger.info(f"Identity resolved as {principal}")
        self._notify()

    def clear(self) -> None:
        self._principal = None
        self._initializing = False
        logger.info("Identity cleared")
        self._notify()

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Identity listener failed")
