"""Single-slot deferred task scheduler.

At most one task is outstanding. Scheduling a new one cancels the previous
one, so a state waiting for a timeout always owns exactly one timer.

When a task's delay expires it is handed to *submit* rather than run on the
spot. The vault submits it to its work queue so the callback runs on the same
serialized context as event handling. A task cancelled after submission but
before it runs never invokes its callback.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

_logger = logging.getLogger(__name__)


class DeferredTask:
    """A callback scheduled to run once after a delay."""

    def __init__(self, callback: Callable[[], Any], fire_at: float) -> None:
        self.callback = callback
        self.fire_at = fire_at
        self._handle: asyncio.TimerHandle | None = None
        self._cancelled = False
        self._done = False

    def __repr__(self) -> str:
        status = "cancelled" if self._cancelled else "done" if self._done else "pending"
        return f"<DeferredTask {status} fire_at={self.fire_at:.3f}>"

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    def cancel(self) -> bool:
        """Prevent the callback from running. ``False`` if it already ran."""
        if self._done:
            return False
        if self._handle is not None:
            self._handle.cancel()
        self._cancelled = True
        return True

    async def run(self) -> bool:
        """Invoke the callback unless cancelled or already run; awaits coroutine results."""
        if self._cancelled or self._done:
            return False
        self._done = True
        if self._handle is not None:
            self._handle.cancel()
        result = self.callback()
        if inspect.isawaitable(result):
            await result
        return True


class DeferredScheduler:
    """Owns the single outstanding :class:`DeferredTask`."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        submit: Callable[[DeferredTask], None] | None = None,
    ) -> None:
        self._loop = loop
        self._submit = submit or self._run_on_loop
        self._pending: DeferredTask | None = None
        self._running: set[asyncio.Task[bool]] = set()

    @property
    def pending(self) -> DeferredTask | None:
        task = self._pending
        if task is None or task.cancelled or task.done:
            return None
        return task

    def defer(self, delay: float, callback: Callable[[], Any]) -> DeferredTask:
        """Cancel any pending task and run *callback* once after *delay* seconds."""
        self.cancel_deferred()
        loop = self._loop or asyncio.get_running_loop()
        task = DeferredTask(callback, loop.time() + delay)
        task._handle = loop.call_later(delay, self._expire, task)
        self._pending = task
        _logger.debug("Deferred task scheduled in %.1fs", delay)
        return task

    def cancel_deferred(self) -> bool:
        """Cancel the pending task; a no-op returning ``False`` when none is pending."""
        task = self._pending
        self._pending = None
        if task is None:
            return False
        cancelled = task.cancel()
        if cancelled:
            _logger.debug("Deferred task cancelled")
        return cancelled

    def _expire(self, task: DeferredTask) -> None:
        if task.cancelled:
            return
        self._submit(task)

    def _run_on_loop(self, task: DeferredTask) -> None:
        loop = self._loop or asyncio.get_running_loop()
        running = loop.create_task(task.run())
        self._running.add(running)
        running.add_done_callback(self._running.discard)
