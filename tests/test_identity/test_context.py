"""Tests for identity context."""

from unittest.mock import MagicMock

import pytest

from private_chat.exceptions import UnavailableError
from private_chat.identity.context import IdentityContext
from private_chat.identity.principal import ANONYMOUS_PRINCIPAL


def test_unresolved_is_not_authenticated():
    ctx = IdentityContext()
    assert ctx.principal is None
    assert not ctx.is_authenticated
    with pytest.raises(UnavailableError):
        ctx.require_principal()


def test_anonymous_is_not_authenticated():
    ctx = IdentityContext(ANONYMOUS_PRINCIPAL)
    assert not ctx.is_authenticated


def test_initializing_is_not_authenticated():
    ctx = IdentityContext("aaa", initializing=True)
    assert ctx.is_initializing
    assert not ctx.is_authenticated


def test_resolve_and_clear_notify():
    ctx = IdentityContext(initializing=True)
    listener = MagicMock()
    ctx.subscribe(listener)

    ctx.resolve("aaa")
    assert ctx.is_authenticated
    assert ctx.require_principal() == "aaa"

    ctx.clear()
    assert not ctx.is_authenticated
    assert listener.call_count == 2


def test_unsubscribe():
    ctx = IdentityContext()
    listener = MagicMock()
    unsubscribe = ctx.subscribe(listener)
    unsubscribe()
    ctx.resolve("aaa")
    listener.assert_not_called()


def test_failing_listener_does_not_block_others():
    ctx = IdentityContext()
    broken = MagicMock(side_effect=RuntimeError("boom"))
    healthy = MagicMock()
    ctx.subscribe(broken)
    ctx.subscribe(healthy)
    ctx.resolve("aaa")
    healthy.assert_called_once_with(ctx)
