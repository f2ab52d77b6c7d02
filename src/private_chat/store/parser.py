"""Decode store payloads into models and encode models for the wire."""

from __future__ import annotations

import logging
from typing import Any

from private_chat.exceptions import DataError
from private_chat.store.models import ChatListEntry, ChatMessage, UserProfile, UserRole

logger = logging.getLogger(__name__)


def _nat(value: Any, field_name: str) -> int:
    """Parse a natural number that may arrive as a JSON number or string."""
    if isinstance(value, bool):
        raise DataError(f"Expected integer for {field_name}, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise DataError(f"Expected integer for {field_name}, got {value!r}") from e
    if number < 0:
        raise DataError(f"Expected non-negative {field_name}, got {number}")
    return number


def _text(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise DataError(f"Expected string for {field_name}, got {value!r}")
    return value


def parse_profile(raw: Any) -> UserProfile | None:
    """Parse an optional profile; ``None`` means the principal has none."""
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise DataError(f"Malformed profile: {raw!r}")
    return UserProfile(display_name=_text(raw.get("displayName"), "displayName"))


def parse_message(raw: Any) -> ChatMessage:
    if not isinstance(raw, dict):
        raise DataError(f"Malformed message: {raw!r}")
    is_read = raw.get("isRead")
    if not isinstance(is_read, bool):
        raise DataError(f"Expected boolean for isRead, got {is_read!r}")
    return ChatMessage(
        id=_nat(raw.get("id"), "id"),
        sender=_text(raw.get("sender"), "sender"),
        receiver=_text(raw.get("receiver"), "receiver"),
        content=_text(raw.get("content"), "content"),
        is_read=is_read,
        timestamp=_nat(raw.get("timestamp"), "timestamp"),
    )


def parse_messages(raw: Any) -> list[ChatMessage]:
    if not isinstance(raw, list):
        raise DataError(f"Expected message list, got {type(raw).__name__}")
    return [parse_message(item) for item in raw]


def parse_chat_list_entry(raw: Any) -> ChatListEntry:
    if not isinstance(raw, dict):
        raise DataError(f"Malformed chat list entry: {raw!r}")
    participants = raw.get("participants")
    if not isinstance(participants, (list, tuple)) or len(participants) != 2:
        raise DataError(f"Chat list entry needs two participants: {raw!r}")
    return ChatListEntry(
        participants=(
            _text(participants[0], "participants[0]"),
            _text(participants[1], "participants[1]"),
        ),
        last_activity=_nat(raw.get("lastActivity"), "lastActivity"),
    )


def parse_chat_list(raw: Any) -> list[ChatListEntry]:
    if not isinstance(raw, list):
        raise DataError(f"Expected chat list, got {type(raw).__name__}")
    return [parse_chat_list_entry(item) for item in raw]


def parse_count(raw: Any) -> int:
    return _nat(raw, "count")


def parse_role(raw: Any) -> UserRole:
    try:
        return UserRole(raw)
    except ValueError as e:
        raise DataError(f"Unknown user role: {raw!r}") from e


def profile_to_wire(profile: UserProfile) -> dict:
    return {"displayName": profile.display_name}
