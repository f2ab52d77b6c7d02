"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from private_chat.exceptions import ConfigurationError
from private_chat.sync.keys import QueryKind
from private_chat.sync.policy import QueryPolicy

ENV_PREFIX = "PRIVATE_CHAT_"


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX + name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{ENV_PREFIX + name} must be positive, got {value}")
    return value


@dataclass
class ChatSettings:
    """Connection and polling settings.

    Every field can be set from a ``PRIVATE_CHAT_*`` environment variable via
    :meth:`from_env`.
    """

    store_url: str = ""
    auth_token: str | None = None
    request_timeout: float = 10.0
    chat_list_poll_seconds: float = 5.0
    messages_poll_seconds: float = 3.0
    unread_poll_seconds: float = 5.0
    profile_stale_seconds: float = 300.0
    tick_seconds: float = 0.5
    gc_seconds: float = 300.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ChatSettings":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            store_url=env.get(ENV_PREFIX + "STORE_URL", defaults.store_url),
            auth_token=env.get(ENV_PREFIX + "AUTH_TOKEN") or None,
            request_timeout=_env_float(env, "REQUEST_TIMEOUT", defaults.request_timeout),
            chat_list_poll_seconds=_env_float(
                env, "CHAT_LIST_POLL_SECONDS", defaults.chat_list_poll_seconds
            ),
            messages_poll_seconds=_env_float(
                env, "MESSAGES_POLL_SECONDS", defaults.messages_poll_seconds
            ),
            unread_poll_seconds=_env_float(
                env, "UNREAD_POLL_SECONDS", defaults.unread_poll_seconds
            ),
            profile_stale_seconds=_env_float(
                env, "PROFILE_STALE_SECONDS", defaults.profile_stale_seconds
            ),
            tick_seconds=_env_float(env, "TICK_SECONDS", defaults.tick_seconds),
            gc_seconds=_env_float(env, "GC_SECONDS", defaults.gc_seconds),
        )

    def policies(self) -> dict[QueryKind, QueryPolicy]:
        return {
            QueryKind.CALLER_PROFILE: QueryPolicy(),
            QueryKind.USER_PROFILE: QueryPolicy(stale_time=self.profile_stale_seconds),
            QueryKind.CHAT_LIST: QueryPolicy(poll_interval=self.chat_list_poll_seconds),
            QueryKind.MESSAGES: QueryPolicy(poll_interval=self.messages_poll_seconds),
            QueryKind.UNREAD_COUNT: QueryPolicy(poll_interval=self.unread_poll_seconds),
        }
