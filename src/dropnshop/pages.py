"""Text messages shown on the LCD screen.

Put newline characters where a line break is expected; anything longer than
a screen row gets hard-wrapped, which does not look particularly nice.
"""

from __future__ import annotations

import enum
from typing import Any


class Page(enum.Enum):
    GREETING = "Drop'n'shop v{}"
    STANDBY = "Press number\nto make a choice\n1 to dropoff\n2 to pickup"
    DROPOFF_NO_FREE_LOCKERS = "Sorry,\nthere are no\nfree lockers"
    DROPOFF_PASSWORD = "Please choose your\n5-digit password"
    DROPOFF_PASSWORD_TOO_SIMPLE = "Your password is\ntoo simple.\nPlease,\nchoose another one"
    DROPOFF_PASSWORD_TOO_SHORT = "Your password is\ntoo short.\nPlease,\nuse exactly 5 digits"
    DROPOFF = "Please drop\nyour belongings\nto locker #{}\nand close the locker"
    DROPOFF_SUCCESS = "Thank you!\nHave a good shopping"
    DROPOFF_CANCELLED = "Dropoff cancelled"
    DROPOFF_TIMEOUT = "You didn't close\nthe locker!\nTime is out!"
    PICKUP_CHOOSE_LOCKER = "Enter locker No."
    PICKUP_LOCKER_INVALID = "Invalid locker No."
    PICKUP_ENTER_PASSWORD = "Enter your password"
    PICKUP_PASSWORD_INVALID = "Password is invalid"
    PICKUP = "Locker is opening...\nPlease pick up\nyour belongings\nfrom locker #{}"
    PICKUP_TIMEOUT = "You didn't open\nthe locker!\nTime is out!"
    PICKUP_SUCCESS = "Thank you!\nHave a nice day!"
    ERROR = "Error occurred!"

    def render(self, *args: Any) -> str:
        return self.value.format(*args)
