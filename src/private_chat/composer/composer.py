"""Message input state for one thread."""

from __future__ import annotations

import logging

from private_chat.composer.validation import validate_message
from private_chat.exceptions import PrivateChatError, UnavailableError
from private_chat.sync.engine import SyncEngine

logger = logging.getLogger(__name__)


class MessageComposer:
    """Text being typed to ``receiver``, its inline error and send state.

    The inline ``error`` only carries validation failures. Remote failures are
    reported through the engine's notice bus, and the typed text is kept so
    the user can retry.
    """

    def __init__(self, engine: SyncEngine, receiver: str):
        self._engine = engine
        self.receiver = receiver
        self.text = ""
        self.error: str | None = None
        self.pending = False
        self.focus_requested = True

    def set_text(self, text: str) -> None:
        self.text = text
        self.error = None

    @property
    def can_submit(self) -> bool:
        return not self.pending and bool(self.text.strip())

    async def submit(self) -> bool:
        """Validate and send. Returns True only when the store accepted the message."""
        if self.pending:
            return False

        result = validate_message(self.text)
        if not result.valid:
            self.error = result.error
            return False

        self.pending = True
        try:
            await self._engine.send_message(self.receiver, self.text.strip())
        except UnavailableError:
            logger.info(f"Store not ready, message to {self.receiver} not sent")
            return False
        except PrivateChatError as e:
            logger.debug(f"Keeping composer text after failed send: {e}")
            return False
        finally:
            self.pending = False

        self.text = ""
        self.error = None
        self.focus_requested = True
        return True
