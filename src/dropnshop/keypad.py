"""Customer keypad input."""

from __future__ import annotations

from dropnshop._constants import MASK_CHARACTER


class KeypadInput:
    """Digits a customer typed, bounded by *limit*.

    When *hidden* is set the echo shown on screen is masked with asterisks.
    """

    def __init__(self, hidden: bool, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"input limit must be positive, got {limit}")
        self.hidden = hidden
        self.limit = limit
        self._text = ""

    def __repr__(self) -> str:
        return f"KeypadInput(hidden={self.hidden}, limit={self.limit}, length={len(self._text)})"

    @property
    def text(self) -> str:
        return self._text

    def echo(self) -> str:
        if self.hidden:
            return MASK_CHARACTER * len(self._text)
        return self._text

    def append(self, digit: str) -> bool:
        """Add one digit; ``False`` (and no change) when the limit is reached."""
        if len(self._text) >= self.limit:
            return False
        self._text += digit
        return True

    def clear(self) -> None:
        self._text = ""
