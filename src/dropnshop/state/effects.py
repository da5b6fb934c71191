"""Side effects requested by the vault state machine.

The machine never talks to hardware or timers itself; it returns these
instructions and the vault executes them in order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dropnshop.models.events import TimerKind
from dropnshop.pages import Page


@dataclass(frozen=True)
class Buzz:
    duration_ms: int


@dataclass(frozen=True)
class ShowPage:
    page: Page
    args: tuple[Any, ...] = field(default=())


@dataclass(frozen=True)
class ClearScreen:
    pass


@dataclass(frozen=True)
class EchoInput:
    text: str


@dataclass(frozen=True)
class SetLock:
    locker_id: int
    locked: bool


@dataclass(frozen=True)
class VerifyLocked:
    """Re-read locker states and answer with a ``LockVerified`` event."""

    locker_id: int


@dataclass(frozen=True)
class CheckLockers:
    """Read locker states and answer with a ``LockersChecked`` event."""


@dataclass(frozen=True)
class Defer:
    """Replace the pending deferred task with a ``TimerFired`` after *delay* seconds."""

    delay: float
    timer: TimerKind


@dataclass(frozen=True)
class CancelDeferred:
    pass


Effect = Buzz | ShowPage | ClearScreen | EchoInput | SetLock | VerifyLocked | CheckLockers | Defer | CancelDeferred
