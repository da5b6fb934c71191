"""Locker state models.

The hardware reports door and lock mechanism positions as integers; they are
decoded into :class:`LockerState` at the API boundary so the vault never sees
raw codes.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field


class LockerState(enum.StrEnum):
    """Physical state of a single locker."""

    OPEN = "open"
    CLOSED = "closed"
    LOCKED = "locked"


class DoorPosition(enum.IntEnum):
    """Door sensor code reported by the hardware."""

    CLOSED = 0
    OPEN = 1


class LockPosition(enum.IntEnum):
    """Lock mechanism code reported by the hardware."""

    UNLOCKED = 0
    LOCKED = 1


class LockerMap(BaseModel):
    """Vault dimensions: locker count and lockers per column."""

    model_config = ConfigDict(frozen=True)

    count: int = Field(ge=0)
    mapping: tuple[int, ...] = ()


class LockersReady(BaseModel):
    """Every locker reported an initialized state."""

    model_config = ConfigDict(frozen=True)

    states: tuple[LockerState, ...]

    def state_of(self, locker_id: int) -> LockerState | None:
        """State of a 1-based locker, ``None`` when it is out of range."""
        index = locker_id - 1
        if 0 <= index < len(self.states):
            return self.states[index]
        return None

    @property
    def unlocked_count(self) -> int:
        return sum(1 for state in self.states if state != LockerState.LOCKED)


class LockersNotReady(BaseModel):
    """The hardware has not finished initializing (or could not be asked)."""

    model_config = ConfigDict(frozen=True)

    reason: str = ""


LockerStatesResult = LockersReady | LockersNotReady
