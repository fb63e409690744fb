# This project was developed with assistance from AI tools.
"""Tests for the background side-effect dispatcher."""

from unittest.mock import AsyncMock

import pytest

from portal_api.services import side_effects
from portal_api.services.side_effects import SideEffectDispatcher


async def test_successful_job_runs_once():
    dispatcher = SideEffectDispatcher(retry_base_seconds=0)
    job = AsyncMock(return_value=None)

    dispatcher.dispatch("ok", job)
    await dispatcher.drain()

    job.assert_awaited_once()
    assert dispatcher.pending == 0
    assert not dispatcher.dead_letters


async def test_transient_failure_is_retried():
    dispatcher = SideEffectDispatcher(max_attempts=3, retry_base_seconds=0)
    job = AsyncMock(side_effect=[RuntimeError("flaky"), None])

    task = dispatcher.dispatch("flaky", job)
    await dispatcher.drain()

    assert task.result() is True
    assert job.await_count == 2
    assert not dispatcher.dead_letters


async def test_exhausted_job_is_dead_lettered():
    dispatcher = SideEffectDispatcher(max_attempts=3, retry_base_seconds=0)
    job = AsyncMock(side_effect=RuntimeError("down"))

    task = dispatcher.dispatch("email-1", job)
    await dispatcher.drain()

    assert task.result() is False
    assert job.await_count == 3
    (letter,) = dispatcher.dead_letters
    assert letter.name == "email-1"
    assert letter.attempts == 3
    assert "down" in letter.error


async def test_dead_letters_are_bounded():
    dispatcher = SideEffectDispatcher(max_attempts=1, retry_base_seconds=0, dead_letter_limit=2)
    for index in range(3):
        dispatcher.dispatch(f"job-{index}", AsyncMock(side_effect=RuntimeError("x")))
    await dispatcher.drain()

    assert [d.name for d in dispatcher.dead_letters] == ["job-1", "job-2"]


async def test_drain_waits_for_jobs_scheduled_while_draining():
    dispatcher = SideEffectDispatcher(retry_base_seconds=0)
    inner = AsyncMock(return_value=None)

    async def outer():
        dispatcher.dispatch("inner", inner)

    dispatcher.dispatch("outer", outer)
    await dispatcher.drain()

    inner.assert_awaited_once()


def test_get_dispatcher_requires_init(monkeypatch):
    monkeypatch.setattr(side_effects, "_dispatcher", None)
    with pytest.raises(RuntimeError, match="not initialised"):
        side_effects.get_dispatcher()
