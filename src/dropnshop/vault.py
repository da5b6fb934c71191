"""The vault: wires hardware, notifications, timers and the state machine together.

Every input (decoded notification, timer expiry, startup) goes through one
queue drained by a single worker, so the state machine only ever sees one
event at a time and in arrival order.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import random
from typing import Any

import aiohttp

from dropnshop import __version__
from dropnshop._transport import HttpTransport
from dropnshop.config import VaultSettings
from dropnshop.exceptions import VaultError
from dropnshop.hardware import HardwareApi, HardwareControl
from dropnshop.models.events import Event, LockersChecked, LockVerified, TimerFired, VaultStarted
from dropnshop.models.lockers import LockersNotReady, LockersReady, LockerState
from dropnshop.notification.server import NotificationServer
from dropnshop.scheduler import DeferredScheduler, DeferredTask
from dropnshop.screen import Screen
from dropnshop.state.effects import (
    Buzz,
    CancelDeferred,
    CheckLockers,
    ClearScreen,
    Defer,
    EchoInput,
    Effect,
    SetLock,
    ShowPage,
    VerifyLocked,
)
from dropnshop.state.machine import VaultMachine

_logger = logging.getLogger(__name__)


class Vault:
    """A running drop'n'shop kiosk.

    Usage::

        async with Vault(settings) as vault:
            await vault.run()
    """

    def __init__(
        self,
        settings: VaultSettings,
        *,
        api: HardwareControl | None = None,
        rng: random.Random | None = None,
        http_session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._settings = settings
        self._api = api
        self._rng = rng
        self._external_session = http_session is not None
        self._http_session = http_session
        self._machine: VaultMachine | None = None
        self._screen: Screen | None = None
        self._scheduler: DeferredScheduler | None = None
        self._queue: asyncio.Queue[Event | DeferredTask] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._server: NotificationServer | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> Vault:
        if self._api is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._api = HardwareApi(HttpTransport(self._settings, self._http_session))
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def machine(self) -> VaultMachine:
        if self._machine is None:
            raise RuntimeError("Vault is not set up; call setup() or run() first")
        return self._machine

    @property
    def screen(self) -> Screen:
        if self._screen is None:
            raise RuntimeError("Vault is not set up; call setup() or run() first")
        return self._screen

    @property
    def scheduler(self) -> DeferredScheduler:
        if self._scheduler is None:
            raise RuntimeError("Vault is not set up; call setup() or run() first")
        return self._scheduler

    def _require_api(self) -> HardwareControl:
        if self._api is None:
            raise RuntimeError("Vault has no hardware API; use 'async with Vault(...)'")
        return self._api

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def setup(self) -> None:
        """Read the hardware layout and build the state machine."""
        api = self._require_api()

        hardware_version = await api.get_version()
        _logger.info("Hardware Control API version: %s", hardware_version)

        locker_map = await api.get_locker_map()
        _logger.info("Locker count: %d", locker_map.count)

        self._machine = VaultMachine(locker_map.count, timing=self._settings.timing, rng=self._rng)
        self._screen = Screen(api)
        self._queue = asyncio.Queue()
        self._scheduler = DeferredScheduler(submit=self._queue.put_nowait)

    async def start(self) -> None:
        """Set up, start serving notifications and post the startup event."""
        await self.setup()
        self._worker = asyncio.create_task(self._work(), name="dropnshop-worker")
        self.submit(VaultStarted(version=__version__))

        self._server = NotificationServer(self._settings.notifications, self.submit)
        await self._server.start()

    async def run(self) -> None:
        """Serve until cancelled."""
        await self.start()
        worker = self._worker
        assert worker is not None
        try:
            await worker
        finally:
            await self.stop()

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            self._server = None
        if self._scheduler is not None:
            self._scheduler.cancel_deferred()
        worker = self._worker
        self._worker = None
        if worker is not None and not worker.done():
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def submit(self, event: Event) -> None:
        """Queue *event* for the worker."""
        if self._queue is None:
            raise RuntimeError("Vault is not set up; call setup() or run() first")
        self._queue.put_nowait(event)

    async def _work(self) -> None:
        queue = self._queue
        assert queue is not None
        while True:
            item = await queue.get()
            try:
                if isinstance(item, DeferredTask):
                    await item.run()
                else:
                    await self.dispatch(item)
            except Exception:
                _logger.exception("Failed to handle %r", item)
            finally:
                queue.task_done()

    async def dispatch(self, event: Event) -> None:
        """Run one event through the state machine and carry out its effects."""
        effects = self.machine.handle(event)
        for effect in effects:
            try:
                feedback = await self._perform(effect)
            except VaultError as exc:
                _logger.error("Hardware call for %r failed: %s", effect, exc)
                feedback = self._failed_feedback(effect)
            except Exception:
                # Later effects still run: an alert must always get its timer.
                _logger.exception("Effect %r failed", effect)
                feedback = self._failed_feedback(effect)
            if feedback is not None:
                await self.dispatch(feedback)

    async def _perform(self, effect: Effect) -> Event | None:
        api = self._require_api()
        match effect:
            case Buzz(duration_ms=duration_ms):
                await api.buzz(int(duration_ms))
            case ShowPage(page=page, args=args):
                await self.screen.show(page, *args)
            case ClearScreen():
                await self.screen.clear()
            case EchoInput(text=text):
                await self.screen.set_input_echo(text)
            case SetLock(locker_id=locker_id, locked=locked):
                await api.set_lock_state(locker_id, locked)
            case Defer(delay=delay, timer=timer):
                self.scheduler.defer(delay, functools.partial(self.dispatch, TimerFired(timer=timer)))
            case CancelDeferred():
                self.scheduler.cancel_deferred()
            case VerifyLocked(locker_id=locker_id):
                result = await api.get_locker_states()
                locked = isinstance(result, LockersReady) and result.state_of(locker_id) == LockerState.LOCKED
                return LockVerified(locker_id=locker_id, locked=locked)
            case CheckLockers():
                return LockersChecked(result=await api.get_locker_states())
            case _:
                raise TypeError(f"Unknown effect: {effect!r}")
        return None

    @staticmethod
    def _failed_feedback(effect: Effect) -> Event | None:
        if isinstance(effect, VerifyLocked):
            return LockVerified(locker_id=effect.locker_id, locked=False)
        if isinstance(effect, CheckLockers):
            return LockersChecked(result=LockersNotReady(reason="hardware call failed"))
        return None
