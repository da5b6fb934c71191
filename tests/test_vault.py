from __future__ import annotations

import asyncio
import json
import random
from collections.abc import Callable

import pytest

from dropnshop.config import NotificationSettings, Timing, VaultSettings
from dropnshop.exceptions import VaultTransportError
from dropnshop.models.events import (
    DigitPressed,
    DoorClosed,
    EnterPressed,
    LockerOffset,
    VaultStarted,
)
from dropnshop.models.lockers import LockerMap, LockersNotReady, LockersReady, LockerState, LockerStatesResult
from dropnshop.pages import Page
from dropnshop.state.machine import VaultState
from dropnshop.vault import Vault


class _FakeHardware:
    """In-memory hardware whose locks follow set_lock_state calls."""

    def __init__(self, locker_count: int = 3) -> None:
        self.calls: list[tuple[object, ...]] = []
        self.lockers = [LockerState.CLOSED] * locker_count
        self.ready = True
        self.locks_engage = True
        self.fail_buzz = False
        self.fail_screen = False

    async def get_version(self) -> str:
        return "2.4.1"

    async def get_locker_map(self) -> LockerMap:
        return LockerMap(count=len(self.lockers), mapping=(len(self.lockers),))

    async def get_locker_states(self) -> LockerStatesResult:
        self.calls.append(("get_locker_states",))
        if not self.ready:
            return LockersNotReady(reason="booting")
        return LockersReady(states=tuple(self.lockers))

    async def set_lock_state(self, locker_id: int, locked: bool) -> bool:
        self.calls.append(("set_lock_state", locker_id, locked))
        if not locked:
            self.lockers[locker_id - 1] = LockerState.CLOSED
        elif self.locks_engage:
            self.lockers[locker_id - 1] = LockerState.LOCKED
        return True

    async def buzz(self, duration_ms: int) -> bool:
        if self.fail_buzz:
            raise VaultTransportError("buzzer unreachable", endpoint="toggleBuzzer")
        self.calls.append(("buzz", duration_ms))
        return True

    async def clear_screen(self) -> bool:
        self.calls.append(("clear_screen",))
        return True

    async def write_screen(self, row: int, column: int, text: str) -> bool:
        if self.fail_screen:
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        self.calls.append(("write_screen", row, column, text))
        return True

    async def trigger_duress(self) -> bool:
        self.calls.append(("trigger_duress",))
        return True

    def buzzes(self) -> list[int]:
        return [int(call[1]) for call in self.calls if call[0] == "buzz"]


def _settings(**timing: float) -> VaultSettings:
    return VaultSettings(
        hardware_api="http://127.0.0.1:8000",
        notifications=NotificationSettings(port=0),
        timing=Timing(**timing),
    )


async def _standby_vault(hardware: _FakeHardware, occupied: dict[int, str] | None = None) -> Vault:
    vault = Vault(_settings(), api=hardware, rng=random.Random(7))
    await vault.setup()
    for locker_id, password in (occupied or {}).items():
        vault.machine.ledger.assign(locker_id, password)
    await vault.dispatch(VaultStarted(version="1.0.0"))
    pending = vault.scheduler.pending
    assert pending is not None
    await pending.run()
    assert vault.machine.state is VaultState.STANDBY
    hardware.calls.clear()
    return vault


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_startup_waits_for_lockers_then_shows_standby() -> None:
    hardware = _FakeHardware()
    hardware.ready = False
    vault = Vault(_settings(), api=hardware)
    await vault.setup()

    await vault.dispatch(VaultStarted(version="1.0.0"))

    assert hardware.calls[0] == ("clear_screen",)
    assert vault.screen.rows[0] == "Drop'n'shop v1.0.0".center(20)
    assert vault.machine.state is VaultState.GREETING
    pending = vault.scheduler.pending
    assert pending is not None

    hardware.ready = True
    await pending.run()

    assert vault.machine.state is VaultState.STANDBY
    assert vault.screen.is_showing(Page.STANDBY)
    assert hardware.buzzes() == [100]
    assert hardware.calls.count(("get_locker_states",)) == 2
    await vault.stop()


@pytest.mark.asyncio
async def test_dropoff_end_to_end() -> None:
    hardware = _FakeHardware(3)
    vault = await _standby_vault(hardware, occupied={1: "48213", 2: "91827"})

    await vault.dispatch(DigitPressed(digit="1"))
    assert vault.machine.state is VaultState.DROPOFF_PASSWORD
    assert hardware.buzzes() == [100]

    for digit in "73921":
        await vault.dispatch(DigitPressed(digit=digit))
    assert vault.screen.rows[2] == "*****".center(20)

    await vault.dispatch(EnterPressed())
    assert vault.machine.ledger.password_of(3) == "73921"
    assert ("set_lock_state", 3, False) in hardware.calls
    assert vault.machine.state is VaultState.DROPOFF_PENDING
    timeout = vault.scheduler.pending
    assert timeout is not None
    assert timeout.fire_at - asyncio.get_running_loop().time() > 100

    hardware.calls.clear()
    await vault.dispatch(DoorClosed(locker_id=3, offset=LockerOffset(column=0, index=3)))

    assert timeout.cancelled
    assert ("set_lock_state", 3, True) in hardware.calls
    assert hardware.buzzes() == [100]
    assert vault.machine.state is VaultState.ALERT
    assert vault.screen.is_showing(Page.DROPOFF_SUCCESS)

    alert = vault.scheduler.pending
    assert alert is not None
    await alert.run()
    assert vault.machine.state is VaultState.STANDBY
    await vault.stop()


@pytest.mark.asyncio
async def test_lock_that_does_not_engage_cancels_dropoff() -> None:
    hardware = _FakeHardware(3)
    hardware.locks_engage = False
    vault = await _standby_vault(hardware, occupied={1: "48213", 2: "91827"})
    await vault.dispatch(DigitPressed(digit="1"))
    for digit in "73921":
        await vault.dispatch(DigitPressed(digit=digit))
    await vault.dispatch(EnterPressed())
    hardware.calls.clear()

    await vault.dispatch(DoorClosed(locker_id=3, offset=LockerOffset(column=0, index=3)))

    assert hardware.buzzes() == [900]
    assert ("set_lock_state", 3, False) in hardware.calls
    assert vault.machine.ledger.password_of(3) is None
    assert vault.screen.is_showing(Page.DROPOFF_CANCELLED)
    await vault.stop()


@pytest.mark.asyncio
async def test_hardware_failure_does_not_skip_alert_timer() -> None:
    hardware = _FakeHardware(1)
    vault = await _standby_vault(hardware, occupied={1: "48213"})
    hardware.fail_buzz = True

    await vault.dispatch(DigitPressed(digit="1"))

    assert vault.machine.state is VaultState.ALERT
    assert vault.screen.is_showing(Page.DROPOFF_NO_FREE_LOCKERS)
    assert vault.scheduler.pending is not None
    await vault.stop()


@pytest.mark.asyncio
async def test_unexpected_effect_failure_still_arms_alert_timer() -> None:
    hardware = _FakeHardware(3)
    vault = await _standby_vault(hardware)
    await vault.dispatch(DigitPressed(digit="1"))
    hardware.fail_screen = True

    await vault.dispatch(EnterPressed())

    assert vault.machine.state is VaultState.ALERT
    alert = vault.scheduler.pending
    assert alert is not None

    hardware.fail_screen = False
    await alert.run()

    assert vault.machine.state is VaultState.DROPOFF_PASSWORD
    await vault.stop()


@pytest.mark.asyncio
async def test_vault_serves_notifications() -> None:
    hardware = _FakeHardware(3)
    vault = Vault(_settings(greeting=0.01), api=hardware)
    await vault.start()
    try:
        await _wait_for(lambda: vault.machine.state is VaultState.STANDBY)

        server = vault._server  # type: ignore[attr-defined]
        assert server is not None
        address = server.address
        assert address is not None

        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(asyncio.DatagramProtocol, remote_addr=address)
        try:
            transport.sendto(b"garbage")
            transport.sendto(json.dumps({"type": "key", "vals": [{"k": "value", "v": "50"}]}).encode())
        finally:
            transport.close()

        await _wait_for(lambda: vault.machine.state is VaultState.PICKUP_CHOOSE_LOCKER)
    finally:
        await vault.stop()


@pytest.mark.asyncio
async def test_timer_expiry_goes_through_worker_queue() -> None:
    hardware = _FakeHardware(1)
    vault = Vault(_settings(greeting=0.01, alert_short=0.01), api=hardware)
    await vault.start()
    try:
        await _wait_for(lambda: vault.machine.state is VaultState.STANDBY)
        hardware.lockers[0] = LockerState.LOCKED
        vault.machine.ledger.assign(1, "48213")

        vault.submit(DigitPressed(digit="1"))
        await _wait_for(lambda: 400 in hardware.buzzes())
        await _wait_for(lambda: vault.machine.state is VaultState.STANDBY)

        assert vault.screen.is_showing(Page.STANDBY)
    finally:
        await vault.stop()
