"""LCD screen renderer.

Turns a :class:`~dropnshop.pages.Page` into row writes on the 20x4
character display, rewriting only the characters that actually changed.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from dropnshop.pages import Page

_logger = logging.getLogger(__name__)

# It's an actual resolution of the LCD screen: 20x4 characters.
CHARACTERS_PER_LINE = 20
NUMBER_OF_LINES = 4

EMPTY_LINE = " " * CHARACTERS_PER_LINE


class ScreenWriter(Protocol):
    async def clear_screen(self) -> bool: ...

    async def write_screen(self, row: int, column: int, text: str) -> bool: ...


def to_lines(message: str) -> list[str]:
    """Split *message* on newlines, hard-wrap long lines and keep what fits the screen."""
    lines: list[str] = []
    for line in message.split("\n"):
        while len(line) > CHARACTERS_PER_LINE:
            lines.append(line[:CHARACTERS_PER_LINE])
            line = line[CHARACTERS_PER_LINE:]
        lines.append(line)
    return lines[:NUMBER_OF_LINES]


def changed_span(previous: str, current: str) -> tuple[int, int] | None:
    """First and last differing positions of two equal-length rows."""
    first = -1
    last = -1
    for i, (old, new) in enumerate(zip(previous, current, strict=True)):
        if old != new:
            if first < 0:
                first = i
            last = i
    if first < 0:
        return None
    return first, last


class Screen:
    """Stateful view of the LCD that remembers what each row shows."""

    def __init__(self, writer: ScreenWriter) -> None:
        self._writer = writer
        self._rows: list[str] = [EMPTY_LINE] * NUMBER_OF_LINES
        self._page: Page | None = None
        # Input echo always goes on the first free line after the page text.
        self._input_echo_row = 0
        self._input_echo = ""

    @property
    def rows(self) -> tuple[str, ...]:
        return tuple(self._rows)

    @property
    def page(self) -> Page | None:
        return self._page

    def is_showing(self, page: Page) -> bool:
        return self._page is page

    async def show(self, page: Page, *args: Any) -> None:
        self._page = page
        lines = to_lines(page.render(*args))

        for row in range(NUMBER_OF_LINES):
            if row < len(lines):
                await self._write_line(row, lines[row], centered=True)
            else:
                await self._write_line(row, EMPTY_LINE, centered=False)

        self._input_echo_row = len(lines)
        self._input_echo = ""

    async def set_input_echo(self, text: str) -> None:
        if self._page is None:
            return
        if self._input_echo_row >= NUMBER_OF_LINES:
            _logger.debug("No room for input echo on page %s", self._page.name)
            return
        self._input_echo = text[:CHARACTERS_PER_LINE]
        await self._write_line(self._input_echo_row, self._input_echo, centered=True)

    async def clear(self) -> None:
        self._page = None
        self._rows = [EMPTY_LINE] * NUMBER_OF_LINES
        self._input_echo_row = 0
        self._input_echo = ""
        await self._writer.clear_screen()

    async def _write_line(self, row: int, line: str, *, centered: bool) -> None:
        if not line.strip():
            await self._write_row(row, EMPTY_LINE)
        elif centered:
            await self._write_row(row, line.strip().center(CHARACTERS_PER_LINE))
        else:
            await self._write_row(row, line.ljust(CHARACTERS_PER_LINE))

    async def _write_row(self, row: int, text: str) -> None:
        if not 0 <= row < NUMBER_OF_LINES:
            raise ValueError(f"An attempt to write LCD row #{row}")
        if len(text) != CHARACTERS_PER_LINE:
            raise ValueError(f"An attempt to write {len(text)} character(s) instead of {CHARACTERS_PER_LINE} to LCD row")

        previous = self._rows[row]
        self._rows[row] = text

        # The LCD is slow and flickers on rewrites, so only send what changed.
        span = changed_span(previous, text)
        if span is None:
            return
        first, last = span
        await self._writer.write_screen(row, first, text[first : last + 1])
