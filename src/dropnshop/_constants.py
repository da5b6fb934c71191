"""Internal constants shared across the library."""

import enum

USER_AGENT = "dropnshop"

#: Locker number must be between 1 and 999.
LOCKER_NUMBER_DIGITS = 3

PASSWORD_DIGITS = 5

#: Too simple to guess.
SIMPLE_PASSWORDS: frozenset[str] = frozenset(
    {
        "00000",
        "11111",
        "22222",
        "33333",
        "44444",
        "55555",
        "66666",
        "77777",
        "88888",
        "99999",
        "12345",
        "54321",
    }
)

# Standby menu choices.
DROPOFF_CHOICE_CODE = "1"
PICKUP_CHOICE_CODE = "2"

# Keypad codes for the non-digit keys.
ENTER_KEY_CODE = "#"
RESET_KEY_CODE = "*"

MASK_CHARACTER = "*"

#: Lockers are numbered from 1.
FIRST_LOCKER_ID = 1

#: Whether the highest-numbered locker takes part in random dropoff allocation.
#: Pickup accepts every locker in ``1..locker_count``, so allocation does too.
ALLOCATE_TOP_LOCKER = True


class BuzzDuration(enum.IntEnum):
    """Duration of buzzing sound in milliseconds."""

    EVENT = 100
    ERROR = 400
    ANNOYING = 900
