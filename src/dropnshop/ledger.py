"""In-memory locker ledger.

Maps a locker number to the password securing the belongings inside it.
A locker without an entry is free. Nothing is persisted: after a restart the
hardware lock states are the only record of what is occupied.
"""

from __future__ import annotations

import logging
import random

from dropnshop._constants import ALLOCATE_TOP_LOCKER, FIRST_LOCKER_ID

_logger = logging.getLogger(__name__)


class LockerLedger:
    """Occupied lockers and their passwords."""

    def __init__(self, locker_count: int, *, rng: random.Random | None = None) -> None:
        if locker_count < 0:
            raise ValueError(f"locker count must not be negative, got {locker_count}")
        self._locker_count = locker_count
        self._rng = rng or random.Random()
        self._passwords: dict[int, str] = {}

    @property
    def locker_count(self) -> int:
        return self._locker_count

    @property
    def occupied(self) -> dict[int, str]:
        return dict(self._passwords)

    def is_valid(self, locker_id: int) -> bool:
        return FIRST_LOCKER_ID <= locker_id <= self._locker_count

    def is_free(self, locker_id: int) -> bool:
        return self._passwords.get(locker_id) is None

    def password_of(self, locker_id: int) -> str | None:
        return self._passwords.get(locker_id)

    def assign(self, locker_id: int, password: str) -> None:
        if not self.is_valid(locker_id):
            raise ValueError(f"locker #{locker_id} does not exist")
        if not self.is_free(locker_id):
            raise ValueError(f"locker #{locker_id} is already occupied")
        self._passwords[locker_id] = password
        _logger.info("Locker #%d assigned", locker_id)

    def release(self, locker_id: int) -> None:
        if self._passwords.pop(locker_id, None) is not None:
            _logger.info("Locker #%d released", locker_id)

    def allocation_range(self) -> range:
        """Locker numbers eligible for a dropoff."""
        upper = self._locker_count + 1 if ALLOCATE_TOP_LOCKER else self._locker_count
        return range(FIRST_LOCKER_ID, max(FIRST_LOCKER_ID, upper))

    def free_lockers(self) -> list[int]:
        return [locker_id for locker_id in self.allocation_range() if self.is_free(locker_id)]

    def allocate(self) -> int | None:
        """Pick a free locker uniformly at random, ``None`` when all are taken.

        Random choice spreads wear evenly across the lockers.
        """
        free = self.free_lockers()
        if not free:
            return None
        return self._rng.choice(free)
