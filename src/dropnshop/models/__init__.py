"""Typed models for hardware notifications, vault events and API responses."""

from dropnshop.models.events import (
    DigitPressed,
    DoorClosed,
    DoorEvent,
    DoorLocked,
    DoorOpened,
    DoorUnlocked,
    EnterPressed,
    Event,
    EventKind,
    LockersChecked,
    LockerOffset,
    LockVerified,
    ResetPressed,
    TimerFired,
    TimerKind,
    VaultStarted,
)
from dropnshop.models.lockers import (
    LockerMap,
    LockersNotReady,
    LockersReady,
    LockerState,
    LockerStatesResult,
)
from dropnshop.models.notification import KeyValue, Notification

__all__ = [
    "DigitPressed",
    "DoorClosed",
    "DoorEvent",
    "DoorLocked",
    "DoorOpened",
    "DoorUnlocked",
    "EnterPressed",
    "Event",
    "EventKind",
    "KeyValue",
    "LockVerified",
    "LockerMap",
    "LockerOffset",
    "LockerState",
    "LockerStatesResult",
    "LockersChecked",
    "LockersNotReady",
    "LockersReady",
    "Notification",
    "ResetPressed",
    "TimerFired",
    "TimerKind",
    "VaultStarted",
]
