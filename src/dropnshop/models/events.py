"""Vault events.

Hardware notifications are decoded into the keypad and door events below.
The vault also feeds itself a few internal events (startup, timer firings,
locker-state answers) so every input reaches the state machine through the
same serialized entry point.
"""

from __future__ import annotations

import enum
import re
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dropnshop._constants import ENTER_KEY_CODE, RESET_KEY_CODE
from dropnshop.models.lockers import LockerStatesResult

# A locker position is described by two numbers: 0-based column (aka slave board)
# number and 1-based locker number within that column.
_LOCKER_OFFSET_PATTERN = re.compile(r"\[([0-9]+):([0-9]+)]")


class EventKind(enum.StrEnum):
    DIGIT_PRESSED = "digit_pressed"
    ENTER_PRESSED = "enter_pressed"
    RESET_PRESSED = "reset_pressed"
    DOOR_OPENED = "door_opened"
    DOOR_CLOSED = "door_closed"
    DOOR_LOCKED = "door_locked"
    DOOR_UNLOCKED = "door_unlocked"
    VAULT_STARTED = "vault_started"
    LOCKERS_CHECKED = "lockers_checked"
    LOCK_VERIFIED = "lock_verified"
    TIMER_FIRED = "timer_fired"


class TimerKind(enum.StrEnum):
    """What a deferred task is waiting for."""

    REINITIALIZATION = "reinitialization"
    GREETING = "greeting"
    ALERT = "alert"
    DROPOFF_TIMEOUT = "dropoff_timeout"
    PICKUP_TIMEOUT = "pickup_timeout"


class LockerOffset(BaseModel):
    """Physical locker position: column and 1-based index within the column."""

    model_config = ConfigDict(frozen=True)

    column: int = Field(ge=0)
    index: int = Field(ge=1)

    @classmethod
    def parse(cls, text: str) -> LockerOffset:
        """Parse the ``[<column>:<index>]`` notation.

        Raises :class:`ValueError` when *text* does not match or is out of range.
        """
        match = _LOCKER_OFFSET_PATTERN.fullmatch(text)
        if match is None:
            raise ValueError(f"invalid locker offset: {text!r}")
        return cls(column=int(match.group(1)), index=int(match.group(2)))

    def __str__(self) -> str:
        return f"[{self.column}:{self.index}]"


class Event(BaseModel):
    """Base of every input handled by the vault state machine."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[EventKind]


class DigitPressed(Event):
    kind: ClassVar[EventKind] = EventKind.DIGIT_PRESSED

    digit: str

    @field_validator("digit")
    @classmethod
    def _single_digit(cls, value: str) -> str:
        if len(value) != 1 or value not in "0123456789":
            raise ValueError(f"digit must be a single character 0-9, got {value!r}")
        return value


class EnterPressed(Event):
    kind: ClassVar[EventKind] = EventKind.ENTER_PRESSED


class ResetPressed(Event):
    kind: ClassVar[EventKind] = EventKind.RESET_PRESSED


class DoorEvent(Event):
    """A locker door or lock changed its state."""

    locker_id: int = Field(ge=1)
    offset: LockerOffset


class DoorOpened(DoorEvent):
    kind: ClassVar[EventKind] = EventKind.DOOR_OPENED


class DoorClosed(DoorEvent):
    kind: ClassVar[EventKind] = EventKind.DOOR_CLOSED


class DoorLocked(DoorEvent):
    kind: ClassVar[EventKind] = EventKind.DOOR_LOCKED


class DoorUnlocked(DoorEvent):
    kind: ClassVar[EventKind] = EventKind.DOOR_UNLOCKED


class VaultStarted(Event):
    """Hardware handshake succeeded; the vault shows its greeting."""

    kind: ClassVar[EventKind] = EventKind.VAULT_STARTED

    version: str


class LockersChecked(Event):
    """Answer to a locker-state check issued during startup."""

    kind: ClassVar[EventKind] = EventKind.LOCKERS_CHECKED

    result: LockerStatesResult


class LockVerified(Event):
    """Answer to the post-dropoff double check of a locker's lock."""

    kind: ClassVar[EventKind] = EventKind.LOCK_VERIFIED

    locker_id: int
    locked: bool


class TimerFired(Event):
    kind: ClassVar[EventKind] = EventKind.TIMER_FIRED

    timer: TimerKind


def key_event_from_code(code: int) -> Event:
    """Map a keypad character code to its event.

    Raises :class:`ValueError` for any key other than ``0-9``, ``#`` and ``*``.
    """
    try:
        char = chr(code)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"Unexpected key pressed: {code}") from exc

    if "0" <= char <= "9":
        return DigitPressed(digit=char)
    if char == ENTER_KEY_CODE:
        return EnterPressed()
    if char == RESET_KEY_CODE:
        return ResetPressed()
    raise ValueError(f"Unexpected key pressed: {code}")


DOOR_EVENT_TYPES: dict[str, type[DoorEvent]] = {
    "door_opened": DoorOpened,
    "door_closed": DoorClosed,
    "door_locked": DoorLocked,
    "door_unlocked": DoorUnlocked,
}
