from __future__ import annotations

import asyncio

import pytest

from dropnshop.scheduler import DeferredScheduler, DeferredTask


@pytest.mark.asyncio
async def test_deferred_callback_runs_once_after_delay() -> None:
    fired: list[str] = []
    scheduler = DeferredScheduler()

    scheduler.defer(0.01, lambda: fired.append("timeout"))
    assert scheduler.pending is not None
    await asyncio.sleep(0.1)

    assert fired == ["timeout"]
    assert scheduler.pending is None


@pytest.mark.asyncio
async def test_scheduling_again_replaces_pending_task() -> None:
    fired: list[str] = []
    scheduler = DeferredScheduler()

    first = scheduler.defer(0.01, lambda: fired.append("first"))
    second = scheduler.defer(0.03, lambda: fired.append("second"))
    await asyncio.sleep(0.15)

    assert fired == ["second"]
    assert first.cancelled
    assert second.done


@pytest.mark.asyncio
async def test_cancel_deferred() -> None:
    fired: list[str] = []
    scheduler = DeferredScheduler()

    scheduler.defer(0.01, lambda: fired.append("timeout"))
    assert scheduler.cancel_deferred() is True
    await asyncio.sleep(0.05)

    assert fired == []
    assert scheduler.cancel_deferred() is False


@pytest.mark.asyncio
async def test_task_cancelled_after_submission_never_runs() -> None:
    fired: list[str] = []
    submitted: list[DeferredTask] = []
    scheduler = DeferredScheduler(submit=submitted.append)

    task = scheduler.defer(0.01, lambda: fired.append("timeout"))
    await asyncio.sleep(0.05)
    assert submitted == [task]

    # A newer event got handled first and cancelled the timer.
    assert scheduler.cancel_deferred() is True
    assert await task.run() is False
    assert fired == []


@pytest.mark.asyncio
async def test_task_runs_at_most_once_and_awaits_coroutines() -> None:
    fired: list[str] = []

    async def callback() -> None:
        fired.append("ran")

    task = DeferredTask(callback, fire_at=0.0)

    assert await task.run() is True
    assert await task.run() is False
    assert task.cancel() is False
    assert fired == ["ran"]
