from __future__ import annotations

import pytest

from dropnshop.pages import Page
from dropnshop.screen import CHARACTERS_PER_LINE, EMPTY_LINE, Screen, changed_span, to_lines


class _FakeWriter:
    def __init__(self) -> None:
        self.writes: list[tuple[int, int, str]] = []
        self.cleared = 0

    async def clear_screen(self) -> bool:
        self.cleared += 1
        return True

    async def write_screen(self, row: int, column: int, text: str) -> bool:
        self.writes.append((row, column, text))
        return True


def _expected_rows(message: str) -> list[str]:
    lines = [line.center(CHARACTERS_PER_LINE) for line in message.split("\n")]
    return lines + [EMPTY_LINE] * (4 - len(lines))


@pytest.mark.asyncio
async def test_show_centers_every_line_and_writes_only_changes() -> None:
    writer = _FakeWriter()
    screen = Screen(writer)

    await screen.show(Page.STANDBY)

    expected = _expected_rows(Page.STANDBY.value)
    assert list(screen.rows) == expected
    assert len(writer.writes) == 4
    for row, column, text in writer.writes:
        assert expected[row][column : column + len(text)] == text
        assert text[0] != " " and text[-1] != " "


@pytest.mark.asyncio
async def test_showing_same_page_again_writes_nothing() -> None:
    writer = _FakeWriter()
    screen = Screen(writer)
    await screen.show(Page.STANDBY)
    writer.writes.clear()

    await screen.show(Page.STANDBY)

    assert writer.writes == []


@pytest.mark.asyncio
async def test_page_switch_blanks_unused_rows() -> None:
    writer = _FakeWriter()
    screen = Screen(writer)
    await screen.show(Page.STANDBY)

    await screen.show(Page.PICKUP_CHOOSE_LOCKER)

    assert list(screen.rows) == _expected_rows(Page.PICKUP_CHOOSE_LOCKER.value)
    assert screen.is_showing(Page.PICKUP_CHOOSE_LOCKER)


@pytest.mark.asyncio
async def test_page_arguments_are_rendered() -> None:
    screen = Screen(_FakeWriter())

    await screen.show(Page.DROPOFF, 12)

    assert screen.rows[2] == "to locker #12".center(CHARACTERS_PER_LINE)


@pytest.mark.asyncio
async def test_input_echo_goes_below_page_text() -> None:
    writer = _FakeWriter()
    screen = Screen(writer)
    await screen.show(Page.DROPOFF_PASSWORD)
    writer.writes.clear()

    await screen.set_input_echo("***")

    assert screen.rows[2] == "***".center(CHARACTERS_PER_LINE)
    assert [row for row, _, _ in writer.writes] == [2]

    await screen.set_input_echo("")

    assert screen.rows[2] == EMPTY_LINE


@pytest.mark.asyncio
async def test_input_echo_without_room_is_skipped() -> None:
    writer = _FakeWriter()
    screen = Screen(writer)
    await screen.show(Page.STANDBY)
    writer.writes.clear()

    await screen.set_input_echo("123")

    assert writer.writes == []


@pytest.mark.asyncio
async def test_clear_resets_screen() -> None:
    writer = _FakeWriter()
    screen = Screen(writer)
    await screen.show(Page.ERROR)

    await screen.clear()

    assert writer.cleared == 1
    assert screen.page is None
    assert screen.rows == (EMPTY_LINE,) * 4


def test_to_lines_wraps_and_truncates() -> None:
    assert to_lines("a" * 25) == ["a" * 20, "a" * 5]
    assert to_lines("1\n2\n3\n4\n5") == ["1", "2", "3", "4"]


def test_changed_span() -> None:
    assert changed_span("abcdef", "abcdef") is None
    assert changed_span("abcdef", "aXcdYf") == (1, 4)
