"""Vault state machine.

Owns the current :class:`VaultState`, the customer session context and the
locker ledger. Inputs are dispatched through a table keyed by
``(state, event kind)``; a missing entry means the event is ignored in that
state. Handlers only update machine-owned data and return the effects the
vault must carry out, which keeps every transition testable without hardware
or real timers.
"""

from __future__ import annotations

import enum
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from dropnshop._constants import (
    DROPOFF_CHOICE_CODE,
    LOCKER_NUMBER_DIGITS,
    PASSWORD_DIGITS,
    PICKUP_CHOICE_CODE,
    SIMPLE_PASSWORDS,
    BuzzDuration,
)
from dropnshop.config import Timing
from dropnshop.keypad import KeypadInput
from dropnshop.ledger import LockerLedger
from dropnshop.models.events import (
    DigitPressed,
    DoorEvent,
    Event,
    EventKind,
    LockersChecked,
    LockVerified,
    TimerFired,
    TimerKind,
    VaultStarted,
)
from dropnshop.models.lockers import LockersReady
from dropnshop.pages import Page
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

_logger = logging.getLogger(__name__)


class VaultState(enum.StrEnum):
    GREETING = "greeting"
    """Initial state: the vault waits for the hardware and shows its name and version."""

    STANDBY = "standby"
    """Waiting for a customer to choose between dropoff and pickup."""

    ALERT = "alert"
    """A message is displayed; a timer always moves the vault on (usually to STANDBY)."""

    DROPOFF_PASSWORD = "dropoff_password"
    """The customer chooses a password for the dropoff."""

    DROPOFF_PENDING = "dropoff_pending"
    """The locker is open; the customer has two minutes to fill and close it."""

    PICKUP_CHOOSE_LOCKER = "pickup_choose_locker"
    """The customer enters the locker number to pick up from."""

    PICKUP_PASSWORD = "pickup_password"
    """The customer enters the password of the chosen locker."""

    PICKUP_PENDING = "pickup_pending"
    """The locker is unlocked and waiting for the customer to open it."""


#: States that collect keypad input, with the prompt page and input shape each opens with.
_INPUT_STATES: dict[VaultState, tuple[Page, bool, int]] = {
    VaultState.DROPOFF_PASSWORD: (Page.DROPOFF_PASSWORD, True, PASSWORD_DIGITS),
    VaultState.PICKUP_CHOOSE_LOCKER: (Page.PICKUP_CHOOSE_LOCKER, False, LOCKER_NUMBER_DIGITS),
    VaultState.PICKUP_PASSWORD: (Page.PICKUP_ENTER_PASSWORD, True, PASSWORD_DIGITS),
}


@dataclass
class VaultContext:
    """Data of the customer session in progress."""

    dropoff_locker_id: int | None = None
    pickup_locker_id: int | None = None
    current_input: KeypadInput | None = None
    alert_return: VaultState | None = None
    first_check: bool = True


def is_password_too_simple(password: str) -> bool:
    return password in SIMPLE_PASSWORDS


def parse_locker_number(text: str) -> int:
    """Locker number typed by a customer, ``0`` when nothing usable was typed."""
    try:
        return int(text)
    except ValueError:
        return 0


Handler = Callable[[Any], list[Effect]]


class VaultMachine:
    """Dropoff/pickup lifecycle of a single kiosk."""

    def __init__(
        self,
        locker_count: int,
        *,
        timing: Timing | None = None,
        ledger: LockerLedger | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.state = VaultState.GREETING
        self.context = VaultContext()
        self.ledger = ledger or LockerLedger(locker_count, rng=rng)
        self.timing = timing or Timing()

        digit = EventKind.DIGIT_PRESSED
        enter = EventKind.ENTER_PRESSED
        reset = EventKind.RESET_PRESSED
        timer = EventKind.TIMER_FIRED
        self._table: dict[tuple[VaultState, EventKind], Handler] = {
            # Greeting and alert ignore everything but their own progress.
            (VaultState.GREETING, EventKind.VAULT_STARTED): self._on_started,
            (VaultState.GREETING, EventKind.LOCKERS_CHECKED): self._on_lockers_checked,
            (VaultState.GREETING, timer): self._on_greeting_timer,
            (VaultState.ALERT, timer): self._on_alert_timer,
            (VaultState.STANDBY, digit): self._on_standby_digit,
            (VaultState.STANDBY, enter): self._on_unexpected_key,
            (VaultState.STANDBY, reset): self._on_unexpected_key,
            (VaultState.DROPOFF_PASSWORD, digit): self._on_input_digit,
            (VaultState.DROPOFF_PASSWORD, reset): self._on_input_reset,
            (VaultState.DROPOFF_PASSWORD, enter): self._on_dropoff_password_enter,
            (VaultState.DROPOFF_PENDING, EventKind.DOOR_CLOSED): self._on_dropoff_door_closed,
            (VaultState.DROPOFF_PENDING, EventKind.LOCK_VERIFIED): self._on_dropoff_lock_verified,
            (VaultState.DROPOFF_PENDING, reset): self._on_dropoff_reset,
            (VaultState.DROPOFF_PENDING, digit): self._on_unexpected_key,
            (VaultState.DROPOFF_PENDING, enter): self._on_unexpected_key,
            (VaultState.DROPOFF_PENDING, timer): self._on_dropoff_timeout,
            (VaultState.PICKUP_CHOOSE_LOCKER, digit): self._on_input_digit,
            (VaultState.PICKUP_CHOOSE_LOCKER, reset): self._on_input_reset,
            (VaultState.PICKUP_CHOOSE_LOCKER, enter): self._on_pickup_locker_enter,
            (VaultState.PICKUP_PASSWORD, digit): self._on_input_digit,
            (VaultState.PICKUP_PASSWORD, reset): self._on_input_reset,
            (VaultState.PICKUP_PASSWORD, enter): self._on_pickup_password_enter,
            (VaultState.PICKUP_PENDING, EventKind.DOOR_OPENED): self._on_pickup_door_opened,
            (VaultState.PICKUP_PENDING, timer): self._on_pickup_timeout,
        }

    def handle(self, event: Event) -> list[Effect]:
        """Apply *event* and return the effects to execute, in order."""
        if isinstance(event, DigitPressed):
            _logger.debug("Input: %s", event.digit)

        handler = self._table.get((self.state, event.kind))
        if handler is None:
            _logger.debug("Ignoring %s in state %s", event.kind, self.state)
            return []
        return handler(event)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _enter_input_state(self, state: VaultState) -> list[Effect]:
        page, hidden, limit = _INPUT_STATES[state]
        self.state = state
        self.context.current_input = KeypadInput(hidden, limit)
        return [ShowPage(page)]

    def _alert(self, page: Page, delay: float, return_to: VaultState, *args: Any) -> list[Effect]:
        """Show *page* for *delay* seconds, then go to *return_to*."""
        self.state = VaultState.ALERT
        self.context.current_input = None
        self.context.alert_return = return_to
        return [ShowPage(page, args), Defer(delay, TimerKind.ALERT)]

    def _require_input(self) -> KeypadInput:
        current = self.context.current_input
        if current is None:
            raise RuntimeError(f"no input is being collected in state {self.state}")
        return current

    # ------------------------------------------------------------------
    # Greeting
    # ------------------------------------------------------------------

    def _on_started(self, event: VaultStarted) -> list[Effect]:
        # Clear leftovers in case the application restarted without a hardware reboot.
        return [ClearScreen(), ShowPage(Page.GREETING, (event.version,)), CheckLockers()]

    def _on_lockers_checked(self, event: LockersChecked) -> list[Effect]:
        result = event.result
        if not isinstance(result, LockersReady):
            _logger.error("Lockers are not initialized yet (%s)", result.reason)
            self.context.first_check = False
            return [Defer(self.timing.reinitialization, TimerKind.REINITIALIZATION)]

        _logger.info("Lockers are initialized")
        _logger.info("Unlocked lockers count: %d", result.unlocked_count)

        # Give people a few seconds to actually read the greeting when nothing had to be waited for.
        if self.context.first_check:
            return [Defer(self.timing.greeting, TimerKind.GREETING)]
        return self._enter_standby()

    def _on_greeting_timer(self, event: TimerFired) -> list[Effect]:
        if event.timer == TimerKind.REINITIALIZATION:
            return [CheckLockers()]
        if event.timer == TimerKind.GREETING:
            return self._enter_standby()
        _logger.warning("Unexpected %s timer while greeting", event.timer)
        return []

    def _enter_standby(self) -> list[Effect]:
        self.state = VaultState.STANDBY
        return [ShowPage(Page.STANDBY), Buzz(BuzzDuration.EVENT)]

    # ------------------------------------------------------------------
    # Alert
    # ------------------------------------------------------------------

    def _on_alert_timer(self, event: TimerFired) -> list[Effect]:
        if event.timer != TimerKind.ALERT:
            _logger.warning("Unexpected %s timer during alert", event.timer)
            return []

        target = self.context.alert_return or VaultState.STANDBY
        self.context.alert_return = None
        if target in _INPUT_STATES:
            return self._enter_input_state(target)
        self.state = VaultState.STANDBY
        return [ShowPage(Page.STANDBY)]

    # ------------------------------------------------------------------
    # Standby
    # ------------------------------------------------------------------

    def _on_standby_digit(self, event: DigitPressed) -> list[Effect]:
        if event.digit == DROPOFF_CHOICE_CODE:
            locker_id = self.ledger.allocate()
            if locker_id is None:
                _logger.info("Dropoff requested but there are no free lockers")
                return [Buzz(BuzzDuration.ERROR)] + self._alert(
                    Page.DROPOFF_NO_FREE_LOCKERS, self.timing.alert_short, VaultState.STANDBY
                )

            _logger.info("Dropoff requested, locker #%d picked", locker_id)
            self.context.dropoff_locker_id = locker_id
            return [Buzz(BuzzDuration.EVENT)] + self._enter_input_state(VaultState.DROPOFF_PASSWORD)

        if event.digit == PICKUP_CHOICE_CODE:
            _logger.info("Pickup requested")
            return [Buzz(BuzzDuration.EVENT)] + self._enter_input_state(VaultState.PICKUP_CHOOSE_LOCKER)

        return self._on_unexpected_key(event)

    def _on_unexpected_key(self, _event: Event) -> list[Effect]:
        return [Buzz(BuzzDuration.ERROR)]

    # ------------------------------------------------------------------
    # Input collecting states
    # ------------------------------------------------------------------

    def _on_input_digit(self, event: DigitPressed) -> list[Effect]:
        current = self._require_input()
        if current.append(event.digit):
            return [EchoInput(current.echo())]
        # Too long: ignore the digit.
        return [Buzz(BuzzDuration.ERROR)]

    def _on_input_reset(self, _event: Event) -> list[Effect]:
        self._require_input().clear()
        return [EchoInput(""), Buzz(BuzzDuration.EVENT)]

    def _on_dropoff_password_enter(self, _event: Event) -> list[Effect]:
        current = self._require_input()
        password = current.text

        if len(password) < PASSWORD_DIGITS:
            current.clear()
            return [Buzz(BuzzDuration.ERROR)] + self._alert(
                Page.DROPOFF_PASSWORD_TOO_SHORT, self.timing.alert_short, VaultState.DROPOFF_PASSWORD
            )

        if is_password_too_simple(password):
            current.clear()
            return [Buzz(BuzzDuration.ERROR)] + self._alert(
                Page.DROPOFF_PASSWORD_TOO_SIMPLE, self.timing.alert_short, VaultState.DROPOFF_PASSWORD
            )

        locker_id = self.context.dropoff_locker_id
        if locker_id is None:
            raise RuntimeError("dropoff password entered without a locker")

        self.ledger.assign(locker_id, password)
        self.context.current_input = None
        self.state = VaultState.DROPOFF_PENDING
        return [
            Buzz(BuzzDuration.EVENT),
            # The customer needs the locker unlocked to put their belongings in.
            SetLock(locker_id, False),
            ShowPage(Page.DROPOFF, (locker_id,)),
            Defer(self.timing.dropoff_pending, TimerKind.DROPOFF_TIMEOUT),
        ]

    # ------------------------------------------------------------------
    # Dropoff pending
    # ------------------------------------------------------------------

    def _on_dropoff_door_closed(self, event: DoorEvent) -> list[Effect]:
        locker_id = self.context.dropoff_locker_id
        if event.locker_id != locker_id:
            return []
        # Trigger the locking mechanism, then double check it actually engaged.
        return [SetLock(locker_id, True), VerifyLocked(locker_id)]

    def _on_dropoff_lock_verified(self, event: LockVerified) -> list[Effect]:
        locker_id = self.context.dropoff_locker_id
        if event.locker_id != locker_id:
            return []
        self.context.dropoff_locker_id = None

        if event.locked:
            _logger.info("Dropoff to locker #%d completed", locker_id)
            return [CancelDeferred(), Buzz(BuzzDuration.EVENT)] + self._alert(
                Page.DROPOFF_SUCCESS, self.timing.alert_short, VaultState.STANDBY
            )

        # Never leave a customer without access to their own belongings.
        _logger.error("Locker #%d did not lock after its door closed, cancelling dropoff", locker_id)
        self.ledger.release(locker_id)
        return [Buzz(BuzzDuration.ANNOYING), SetLock(locker_id, False)] + self._alert(
            Page.DROPOFF_CANCELLED, self.timing.alert_long, VaultState.STANDBY
        )

    def _on_dropoff_reset(self, _event: Event) -> list[Effect]:
        locker_id = self.context.dropoff_locker_id
        _logger.info("Dropoff to locker #%s cancelled by customer", locker_id)
        if locker_id is not None:
            self.ledger.release(locker_id)
        self.context.dropoff_locker_id = None
        return [Buzz(BuzzDuration.ANNOYING)] + self._alert(
            Page.DROPOFF_CANCELLED, self.timing.alert_long, VaultState.STANDBY
        )

    def _on_dropoff_timeout(self, event: TimerFired) -> list[Effect]:
        if event.timer != TimerKind.DROPOFF_TIMEOUT:
            return []
        locker_id = self.context.dropoff_locker_id
        _logger.warning("Dropoff to locker #%s timed out", locker_id)
        if locker_id is not None:
            self.ledger.release(locker_id)
        self.context.dropoff_locker_id = None
        return [Buzz(BuzzDuration.ANNOYING)] + self._alert(
            Page.DROPOFF_TIMEOUT, self.timing.alert_long, VaultState.STANDBY
        )

    # ------------------------------------------------------------------
    # Pickup
    # ------------------------------------------------------------------

    def _on_pickup_locker_enter(self, _event: Event) -> list[Effect]:
        current = self._require_input()
        locker_id = parse_locker_number(current.text)

        if self.ledger.is_valid(locker_id) and self.ledger.password_of(locker_id) is not None:
            _logger.info("Selected locker #%d", locker_id)
            self.context.pickup_locker_id = locker_id
            current.clear()
            return [Buzz(BuzzDuration.EVENT)] + self._enter_input_state(VaultState.PICKUP_PASSWORD)

        _logger.info("Selected invalid locker that doesn't exist")
        current.clear()
        return [Buzz(BuzzDuration.ERROR)] + self._alert(
            Page.PICKUP_LOCKER_INVALID, self.timing.alert_short, VaultState.PICKUP_CHOOSE_LOCKER
        )

    def _on_pickup_password_enter(self, _event: Event) -> list[Effect]:
        current = self._require_input()
        locker_id = self.context.pickup_locker_id
        expected = self.ledger.password_of(locker_id) if locker_id is not None else None

        if locker_id is not None and expected is not None and current.text == expected:
            self.context.current_input = None
            self.state = VaultState.PICKUP_PENDING
            return [
                Buzz(BuzzDuration.EVENT),
                SetLock(locker_id, False),
                ShowPage(Page.PICKUP, (locker_id,)),
                Defer(self.timing.pickup_pending, TimerKind.PICKUP_TIMEOUT),
            ]

        _logger.info("Invalid password entered for locker #%s", locker_id)
        current.clear()
        return [Buzz(BuzzDuration.ERROR)] + self._alert(
            Page.PICKUP_PASSWORD_INVALID, self.timing.alert_short, VaultState.PICKUP_PASSWORD
        )

    def _on_pickup_door_opened(self, event: DoorEvent) -> list[Effect]:
        locker_id = self.context.pickup_locker_id
        if event.locker_id != locker_id:
            return []

        _logger.info("Pickup from locker #%d completed", locker_id)
        self.ledger.release(locker_id)
        self.context.pickup_locker_id = None
        return [CancelDeferred(), Buzz(BuzzDuration.EVENT)] + self._alert(
            Page.PICKUP_SUCCESS, self.timing.alert_short, VaultState.STANDBY
        )

    def _on_pickup_timeout(self, event: TimerFired) -> list[Effect]:
        if event.timer != TimerKind.PICKUP_TIMEOUT:
            return []
        locker_id = self.context.pickup_locker_id
        _logger.warning("Pickup from locker #%s timed out", locker_id)
        self.context.pickup_locker_id = None
        effects: list[Effect] = []
        if locker_id is not None:
            # Lock it back so nobody else can take the belongings.
            effects.append(SetLock(locker_id, True))
        effects.append(Buzz(BuzzDuration.ANNOYING))
        return effects + self._alert(Page.PICKUP_TIMEOUT, self.timing.alert_long, VaultState.STANDBY)
