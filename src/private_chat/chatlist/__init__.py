"""Chat list projection and presentation helpers."""

from private_chat.chatlist.display import (
    format_clock,
    initials,
    shorten_principal,
    time_ago,
    to_datetime,
    unread_badge,
)
from private_chat.chatlist.projector import ChatThreadSummary, other_participant, project_chat_list
from private_chat.chatlist.view import ChatListItem, ChatListView, display_name_for

__all__ = [
    "format_clock",
    "initials",
    "shorten_principal",
    "time_ago",
    "to_datetime",
    "unread_badge",
    "ChatThreadSummary",
    "other_participant",
    "project_chat_list",
    "ChatListItem",
    "ChatListView",
    "display_name_for",
]
