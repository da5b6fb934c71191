"""Hardware Control API client."""

from __future__ import annotations

from typing import Protocol

from dropnshop._api import lockers as _lockers_api
from dropnshop._api import peripherals as _peripherals_api
from dropnshop._transport import Transport
from dropnshop.models.lockers import LockerMap, LockerState, LockerStatesResult


class HardwareControl(Protocol):
    """Calls the vault makes against the hardware.

    :class:`HardwareApi` is the production implementation; tests pass
    in-memory doubles.
    """

    async def get_version(self) -> str: ...

    async def get_locker_map(self) -> LockerMap: ...

    async def get_locker_states(self) -> LockerStatesResult: ...

    async def set_lock_state(self, locker_id: int, locked: bool) -> bool: ...

    async def buzz(self, duration_ms: int) -> bool: ...

    async def clear_screen(self) -> bool: ...

    async def write_screen(self, row: int, column: int, text: str) -> bool: ...

    async def trigger_duress(self) -> bool: ...


class HardwareApi:
    """Async client for the Hardware Control API.

    Every call is a request/response round trip through *transport*, which
    owns the retry policy. A non-success response is logged and reported as
    ``False`` (or a not-ready result) rather than raised.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def get_version(self) -> str:
        return await _lockers_api.get_version(self._transport)

    async def get_locker_map(self) -> LockerMap:
        return await _lockers_api.get_locker_map(self._transport)

    async def get_locker_states(self) -> LockerStatesResult:
        return await _lockers_api.get_locker_states(self._transport)

    async def set_lock_state(self, locker_id: int, locked: bool) -> bool:
        return await _lockers_api.set_lock_state(self._transport, locker_id, locked)

    async def set_locker_state(self, locker_id: int, state: LockerState) -> bool:
        return await _lockers_api.set_locker_state(self._transport, locker_id, state)

    async def buzz(self, duration_ms: int) -> bool:
        return await _peripherals_api.buzz(self._transport, duration_ms)

    async def clear_screen(self) -> bool:
        return await _peripherals_api.clear_screen(self._transport)

    async def write_screen(self, row: int, column: int, text: str) -> bool:
        return await _peripherals_api.write_screen(self._transport, row, column, text)

    async def trigger_duress(self) -> bool:
        return await _peripherals_api.trigger_duress(self._transport)
