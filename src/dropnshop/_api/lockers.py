"""Locker endpoints.

Endpoints:
  - getVersion
  - getLockerMap
  - getLockerStates
  - lockLocker / unlockLocker
  - setLockerState

Door sensor and lock mechanism codes are decoded here into
:class:`~dropnshop.models.lockers.LockerState`.
"""

from __future__ import annotations

import logging

from dropnshop._api._common import call_endpoint
from dropnshop._transport import Transport
from dropnshop.exceptions import VaultError
from dropnshop.models.lockers import (
    DoorPosition,
    LockerMap,
    LockersNotReady,
    LockersReady,
    LockerState,
    LockerStatesResult,
    LockPosition,
)
from dropnshop.models.responses import (
    GeneralResponse,
    LockerMapResponse,
    LockerStateMessage,
    LockerStatesResponse,
    VersionResponse,
)

_logger = logging.getLogger(__name__)


def decode_locker_state(door: int, lock: LockerStateMessage) -> LockerState | None:
    """Combine door and lock codes, ``None`` when the locker is not initialized."""
    if door == DoorPosition.OPEN:
        return LockerState.OPEN
    if door == DoorPosition.CLOSED and lock.initialized:
        if lock.state.state == LockPosition.LOCKED:
            return LockerState.LOCKED
        return LockerState.CLOSED
    return None


def encode_locker_state(state: LockerState) -> int:
    """Lock mechanism code for a requested state."""
    if state == LockerState.OPEN:
        raise ValueError("Cannot open the locker door programmatically")
    if state == LockerState.CLOSED:
        return int(LockPosition.UNLOCKED)
    if state == LockerState.LOCKED:
        return int(LockPosition.LOCKED)
    raise ValueError(f"Unexpected locker state: {state}")


async def get_version(transport: Transport) -> str:
    response = await call_endpoint(transport, "getVersion", VersionResponse)
    return response.version


async def get_locker_map(transport: Transport) -> LockerMap:
    response = await call_endpoint(transport, "getLockerMap", LockerMapResponse)
    return LockerMap(count=response.num_lockers, mapping=tuple(response.lockers))


async def get_locker_states(transport: Transport) -> LockerStatesResult:
    """Read every locker's state.

    Returns :class:`LockersNotReady` as soon as one locker is not initialized.
    """
    response = await call_endpoint(transport, "getLockerStates", LockerStatesResponse)
    if not response.resp.success:
        return LockersNotReady(reason=response.resp.err_msg or f"code #{response.resp.code}")

    if len(response.door_map) != len(response.locker_map):
        return LockersNotReady(reason="door and locker maps differ in length")

    states: list[LockerState] = []
    for locker_id, (door, lock) in enumerate(zip(response.door_map, response.locker_map, strict=True), start=1):
        state = decode_locker_state(door, lock)
        if state is None:
            return LockersNotReady(reason=f"locker #{locker_id} is not initialized")
        states.append(state)
    return LockersReady(states=tuple(states))


async def set_lock_state(transport: Transport, locker_id: int, locked: bool) -> bool:
    """Engage or release a locker's lock. Failures are logged, never raised."""
    endpoint = "lockLocker" if locked else "unlockLocker"
    try:
        response = await call_endpoint(transport, endpoint, GeneralResponse, {"lockerNum": locker_id})
    except VaultError:
        _logger.error("Error during setLockState call", exc_info=True)
        return False
    return response.resp.success


async def set_locker_state(transport: Transport, locker_id: int, state: LockerState) -> bool:
    """Force a locker's lock mechanism into the state matching *state*."""
    payload = {"lockerNum": locker_id, "state": encode_locker_state(state)}
    try:
        response = await call_endpoint(transport, "setLockerState", GeneralResponse, payload)
    except VaultError:
        _logger.error("Error during setLockerState call", exc_info=True)
        return False
    return response.resp.success
