"""Tests for refetch policies."""

from private_chat.sync import keys
from private_chat.sync.keys import QueryKind
from private_chat.sync.policy import DEFAULT_POLICIES, QueryPolicy


def test_default_policies():
    assert DEFAULT_POLICIES[QueryKind.MESSAGES].poll_interval == 3
    assert DEFAULT_POLICIES[QueryKind.CHAT_LIST].poll_interval == 5
    assert DEFAULT_POLICIES[QueryKind.UNREAD_COUNT].poll_interval == 5
    assert DEFAULT_POLICIES[QueryKind.USER_PROFILE].stale_time == 300
    assert DEFAULT_POLICIES[QueryKind.USER_PROFILE].poll_interval is None
    assert DEFAULT_POLICIES[QueryKind.CALLER_PROFILE] == QueryPolicy()


def test_is_stale():
    policy = QueryPolicy(stale_time=300)
    assert policy.is_stale(None, 0)
    assert not policy.is_stale(100.0, 399.0)
    assert policy.is_stale(100.0, 400.0)
    assert not QueryPolicy().is_stale(0.0, 1e9)


def test_poll_due():
    policy = QueryPolicy(poll_interval=3)
    assert policy.poll_due(None, 0)
    assert not policy.poll_due(10.0, 12.9)
    assert policy.poll_due(10.0, 13.0)
    assert not QueryPolicy().poll_due(10.0, 1e9)


def test_key_str():
    assert str(keys.chat_list()) == "chatList"
    assert str(keys.messages("bbb")) == "messages(bbb)"
    assert keys.messages("bbb") == keys.messages("bbb")
    assert keys.messages("bbb") != keys.unread_count("bbb")
