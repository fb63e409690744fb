# This project was developed with assistance from AI tools.
"""Tests for the document change feed."""

from unittest.mock import AsyncMock

from portal_api.services.events import DocumentChangeFeed
from portal_api.services.side_effects import SideEffectDispatcher


def _feed():
    dispatcher = SideEffectDispatcher(max_attempts=1, retry_base_seconds=0)
    return DocumentChangeFeed(dispatcher), dispatcher


async def test_publish_reaches_every_subscriber():
    feed, dispatcher = _feed()
    first, second = AsyncMock(), AsyncMock()
    feed.subscribe(first)
    feed.subscribe(second)

    assert feed.publish("loan-1") == 2
    await dispatcher.drain()

    first.assert_awaited_once_with("loan-1")
    second.assert_awaited_once_with("loan-1")


async def test_publish_without_loan_is_ignored():
    feed, dispatcher = _feed()
    handler = AsyncMock()
    feed.subscribe(handler)

    assert feed.publish(None) == 0
    assert dispatcher.pending == 0
    handler.assert_not_awaited()


async def test_failing_handler_does_not_affect_others():
    feed, dispatcher = _feed()
    broken = AsyncMock(side_effect=RuntimeError("boom"))
    healthy = AsyncMock()
    feed.subscribe(broken)
    feed.subscribe(healthy)

    feed.publish("loan-2")
    await dispatcher.drain()

    healthy.assert_awaited_once_with("loan-2")
    assert [d.name for d in dispatcher.dead_letters] == ["document-change-loan-2-0"]


async def test_unsubscribe():
    feed, dispatcher = _feed()
    handler = AsyncMock()
    feed.subscribe(handler)
    feed.unsubscribe(handler)
    feed.unsubscribe(handler)

    assert feed.publish("loan-3") == 0
    await dispatcher.drain()
    handler.assert_not_awaited()
