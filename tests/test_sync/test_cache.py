"""Tests for the query cache."""

from private_chat.exceptions import RemoteCallError
from private_chat.sync import keys
from private_chat.sync.cache import QueryCache


def test_entry_is_created_once():
    cache = QueryCache()
    entry = cache.entry(keys.chat_list())
    assert cache.entry(keys.chat_list()) is entry
    assert len(cache) == 1
    assert keys.chat_list() in cache


def test_snapshot_of_missing_key_is_pending():
    snapshot = QueryCache().snapshot(keys.messages("bbb"))
    assert snapshot.value is None
    assert snapshot.is_loading
    assert snapshot.status == "pending"


def test_snapshot_reflects_entry():
    cache = QueryCache()
    entry = cache.entry(keys.unread_count("bbb"))
    entry.value = 2
    entry.last_fetched_at = 10.0
    entry.error = RemoteCallError("boom")

    snapshot = cache.snapshot(keys.unread_count("bbb"))
    assert snapshot.value == 2
    assert snapshot.is_fetched
    assert not snapshot.is_loading
    assert snapshot.status == "error"


def test_invalidate_bumps_sequence():
    cache = QueryCache()
    assert cache.invalidate(keys.chat_list()) is False

    entry = cache.entry(keys.chat_list())
    assert cache.invalidate(keys.chat_list()) is True
    assert cache.invalidate(keys.chat_list()) is True
    assert entry.invalidated
    assert entry.invalidation_seq == 2


def test_remove_and_clear():
    cache = QueryCache()
    cache.entry(keys.chat_list())
    cache.entry(keys.caller_profile())
    cache.remove(keys.chat_list())
    assert keys.chat_list() not in cache
    cache.clear()
    assert len(cache) == 0
    assert list(cache) == []
