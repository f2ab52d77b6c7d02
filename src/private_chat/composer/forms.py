"""Profile and new-chat forms."""

from __future__ import annotations

import logging

from private_chat.composer.validation import validate_display_name
from private_chat.exceptions import PrincipalFormatError, PrivateChatError, UnavailableError
from private_chat.identity.principal import parse_principal
from private_chat.store.models import UserProfile
from private_chat.sync import keys
from private_chat.sync.engine import SyncEngine
from private_chat.sync.keys import QueryKey, QueryKind
from private_chat.sync.option import unwrap_or

logger = logging.getLogger(__name__)


class ProfileEditor:
    """Display-name form for the caller's own profile.

    The field follows the cached profile until the user edits it, so a form
    opened before the first fetch resolves still shows the saved name.
    """

    def __init__(self, engine: SyncEngine):
        self._engine = engine
        self.display_name = ""
        self.error: str | None = None
        self.pending = False
        self.edited = False
        self._handle = engine.reference(keys.caller_profile())
        self._unsubscribe = engine.subscribe(self._on_change)
        self.load()

    def load(self) -> bool:
        """Seed the form from the cached profile. Returns True if one was cached."""
        profile = unwrap_or(self._handle.value)
        if profile is None:
            return False
        self.display_name = profile.display_name
        return True

    def set_display_name(self, name: str) -> None:
        self.display_name = name
        self.error = None
        self.edited = True

    @property
    def can_submit(self) -> bool:
        return not self.pending and bool(self.display_name.strip())

    async def submit(self) -> bool:
        if self.pending:
            return False
        result = validate_display_name(self.display_name)
        if not result.valid:
            self.error = result.error
            return False

        self.pending = True
        try:
            await self._engine.save_caller_user_profile(
                UserProfile(display_name=self.display_name.strip())
            )
        except UnavailableError:
            logger.info("Store not ready, profile not saved")
            return False
        except PrivateChatError:
            return False
        finally:
            self.pending = False
        self.edited = False
        return True

    def close(self) -> None:
        self._unsubscribe()
        self._handle.release()

    def _on_change(self, key: QueryKey) -> None:
        if key.kind is QueryKind.CALLER_PROFILE and not self.edited:
            self.load()


class NewChatForm:
    """Principal entry for starting a conversation."""

    def __init__(self, viewer: str):
        self.viewer = viewer
        self.principal_text = ""
        self.error: str | None = None

    def set_principal_text(self, text: str) -> None:
        self.principal_text = text
        self.error = None

    @property
    def can_submit(self) -> bool:
        return bool(self.principal_text.strip())

    def submit(self) -> str | None:
        """Return the principal to open a thread with, or None with ``error`` set."""
        text = self.principal_text.strip()
        try:
            principal = parse_principal(text)
        except PrincipalFormatError:
            self.error = "Invalid Principal ID"
            return None
        if principal == self.viewer:
            self.error = "Cannot start a chat with yourself"
            return None
        self.principal_text = ""
        self.error = None
        return principal
