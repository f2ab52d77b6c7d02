"""Tests for chat list projection."""

import pytest

from private_chat.chatlist.projector import ChatThreadSummary, other_participant, project_chat_list
from private_chat.exceptions import DataError
from private_chat.store.models import ChatListEntry

ALICE = "aaa"
BOB = "bbb"
CAROL = "ccc"
DAVE = "ddd"


def test_other_participant_either_position():
    assert other_participant(ChatListEntry((ALICE, BOB), 1), ALICE) == BOB
    assert other_participant(ChatListEntry((BOB, ALICE), 1), ALICE) == BOB


def test_other_participant_requires_viewer():
    with pytest.raises(DataError, match="does not include viewer"):
        other_participant(ChatListEntry((BOB, CAROL), 1), ALICE)


def test_projection_sorted_newest_first_with_ties_by_principal():
    entries = [
        ChatListEntry((ALICE, BOB), 10),
        ChatListEntry((DAVE, ALICE), 30),
        ChatListEntry((ALICE, CAROL), 30),
    ]
    assert project_chat_list(entries, ALICE) == [
        ChatThreadSummary(CAROL, 30),
        ChatThreadSummary(DAVE, 30),
        ChatThreadSummary(BOB, 10),
    ]


def test_projection_is_order_independent():
    entries = [
        ChatListEntry((ALICE, BOB), 10),
        ChatListEntry((ALICE, CAROL), 20),
    ]
    assert project_chat_list(entries, ALICE) == project_chat_list(reversed(entries), ALICE)


def test_strict_projection_raises():
    with pytest.raises(DataError):
        project_chat_list([ChatListEntry((BOB, CAROL), 1)], ALICE)


def test_lenient_projection_skips_bad_entries():
    entries = [ChatListEntry((BOB, CAROL), 5), ChatListEntry((ALICE, BOB), 1)]
    assert project_chat_list(entries, ALICE, strict=False) == [ChatThreadSummary(BOB, 1)]


def test_empty_list():
    assert project_chat_list([], ALICE) == []
