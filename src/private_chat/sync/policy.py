"""Polling and staleness policy per query kind."""

from __future__ import annotations

from dataclasses import dataclass

from private_chat.sync.keys import QueryKind


@dataclass(frozen=True)
class QueryPolicy:
    """When a referenced query is refetched.

    Args:
        poll_interval: Seconds between fetches while referenced; ``None``
            disables polling.
        stale_time: Seconds after which a cached value is refetched when the
            query is referenced again; ``None`` means never stale.
    """

    poll_interval: float | None = None
    stale_time: float | None = None

    def is_stale(self, last_fetched_at: float | None, now: float) -> bool:
        if last_fetched_at is None:
            return True
        if self.stale_time is None:
            return False
        return now - last_fetched_at >= self.stale_time

    def poll_due(self, last_attempt_at: float | None, now: float) -> bool:
        if last_attempt_at is None:
            return True
        if self.poll_interval is None:
            return False
        return now - last_attempt_at >= self.poll_interval


DEFAULT_POLICIES: dict[QueryKind, QueryPolicy] = {
    QueryKind.CALLER_PROFILE: QueryPolicy(),
    QueryKind.USER_PROFILE: QueryPolicy(stale_time=5 * 60),
    QueryKind.CHAT_LIST: QueryPolicy(poll_interval=5),
    QueryKind.MESSAGES: QueryPolicy(poll_interval=3),
    QueryKind.UNREAD_COUNT: QueryPolicy(poll_interval=5),
}
