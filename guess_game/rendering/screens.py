"""Curses drawing for every screen of the guessing game."""

from __future__ import annotations

import curses
import textwrap
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from ..state import ErrorScreen, GuessEntry, MainMenu, ModelPicker, OptionsMenu, RangeEntry, ResultDisplay

if TYPE_CHECKING:
    from ..handlers import GameApp

SPINNER = "|/-\\"
CURSOR_BLOCK = "█"
SELECTED_MARKER = "•"
MIN_SIZE = (12, 44)


@dataclass(slots=True)
class Box:
    top: int
    left: int
    height: int
    width: int

    @property
    def inner_top(self) -> int:
        return self.top + 1

    @property
    def inner_left(self) -> int:
        return self.left + 2

    @property
    def inner_width(self) -> int:
        return self.width - 4

    @property
    def inner_height(self) -> int:
        return self.height - 2


class TerminalRenderer:
    """Render the active screen of a ``GameApp`` onto a curses window."""

    def __init__(self, stdscr) -> None:
        self._stdscr = stdscr
        self._frame = 0
        self._accent = curses.A_BOLD
        self._selected = curses.A_REVERSE
        self._alert = curses.A_BOLD

    def setup(self) -> None:
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        if curses.has_colors():
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(1, curses.COLOR_GREEN, -1)
            curses.init_pair(2, curses.COLOR_BLACK, curses.COLOR_GREEN)
            curses.init_pair(3, curses.COLOR_RED, -1)
            self._accent = curses.color_pair(1)
            self._selected = curses.color_pair(2)
            self._alert = curses.color_pair(3) | curses.A_BOLD

    # Primitives -------------------------------------------------------
    def _put(self, y: int, x: int, text: str, attr: int = 0) -> None:
        height, width = self._stdscr.getmaxyx()
        if y < 0 or y >= height or x >= width:
            return
        x = max(x, 0)
        try:
            self._stdscr.addstr(y, x, text[: max(width - x, 0)], attr)
        except curses.error:
            # Writing the bottom-right cell moves the cursor off screen.
            pass

    def _centered(self, y: int, box: Box, text: str, attr: int = 0) -> None:
        text = text[: box.inner_width]
        x = box.inner_left + max((box.inner_width - len(text)) // 2, 0)
        self._put(y, x, text, attr)

    def _box(self, height: int, width: int, title: str, hint: str = "") -> Box:
        screen_h, screen_w = self._stdscr.getmaxyx()
        width = min(width, screen_w - 2)
        height = min(height, screen_h - 3)
        box = Box(top=max((screen_h - height) // 2 - 1, 0), left=max((screen_w - width) // 2, 0), height=height, width=width)
        horizontal = "─" * (box.width - 2)
        self._put(box.top, box.left, f"╭{horizontal}╮", self._accent)
        for row in range(box.top + 1, box.top + box.height - 1):
            self._put(row, box.left, "│", self._accent)
            self._put(row, box.left + box.width - 1, "│", self._accent)
        self._put(box.top + box.height - 1, box.left, f"╰{horizontal}╯", self._accent)
        self._put(box.top, box.left + max((box.width - len(title) - 2) // 2, 1), f" {title} ", self._accent)
        if hint:
            hint = hint[: box.width - 4]
            self._put(box.top + box.height - 1, box.left + max((box.width - len(hint) - 2) // 2, 1), f" {hint} ", self._accent)
        return box

    def _menu(self, box: Box, first_row: int, items: Sequence[str], cursor: int) -> None:
        for index, item in enumerate(items):
            attr = self._selected if index == cursor else 0
            self._centered(first_row + index, box, f"  {item}  ", attr)

    def _paragraph(self, box: Box, first_row: int, text: str, attr: int = 0, limit: int | None = None) -> int:
        lines = textwrap.wrap(text, box.inner_width) or [""]
        if limit is not None:
            lines = lines[:limit]
        for offset, line in enumerate(lines):
            self._centered(first_row + offset, box, line, attr)
        return first_row + len(lines)

    # Screens ----------------------------------------------------------
    def render(self, app: "GameApp") -> None:
        self._frame += 1
        self._stdscr.erase()
        height, width = self._stdscr.getmaxyx()
        if height < MIN_SIZE[0] or width < MIN_SIZE[1]:
            self._put(0, 0, "Terminal too small, please resize. (q) quit", self._alert)
            self._stdscr.refresh()
            return

        screen = app.screen
        if isinstance(screen, (MainMenu, OptionsMenu)):
            self._draw_menu(screen)
        elif isinstance(screen, ModelPicker):
            self._draw_model_picker(app, screen)
        elif isinstance(screen, RangeEntry):
            self._draw_range_entry(screen)
        elif isinstance(screen, GuessEntry):
            self._draw_guess_entry(app, screen)
        elif isinstance(screen, ResultDisplay):
            self._draw_result(app, screen)
        elif isinstance(screen, ErrorScreen):
            self._draw_error(screen)

        status = f" model: {app.model} | score: {app.score} | (q) quit "
        self._put(height - 1, 0, status.ljust(width - 1), self._accent)
        self._stdscr.refresh()

    def _draw_menu(self, screen: MainMenu | OptionsMenu) -> None:
        title = "Main menu" if isinstance(screen, MainMenu) else "Options menu"
        box = self._box(len(screen.items) + 4, 36, title, "(j) down / (k) up / (l) select")
        self._menu(box, box.inner_top + 1, screen.items, screen.cursor)
        if isinstance(screen, OptionsMenu) and screen.loading:
            spinner = SPINNER[self._frame % len(SPINNER)]
            self._centered(box.inner_top + len(screen.items) + 1, box, f"{spinner} loading models...", self._accent)

    def _draw_model_picker(self, app: "GameApp", screen: ModelPicker) -> None:
        screen_h, screen_w = self._stdscr.getmaxyx()
        box = self._box(screen_h - 4, min(screen_w - 4, 72), "Model list", "(j) down / (k) up / (l) select / (h) return")
        app.list_rows = max(box.inner_height, 1)
        visible = screen.models[screen.offset : screen.offset + box.inner_height]
        for row, model in enumerate(visible):
            index = screen.offset + row
            marker = SELECTED_MARKER if model == app.model else " "
            attr = self._selected if index == screen.cursor else 0
            self._put(box.inner_top + row, box.inner_left, f"{marker} {model}".ljust(box.inner_width)[: box.inner_width], attr)

    def _draw_input(self, box: Box, row: int, buffer: str, active: bool) -> None:
        text = buffer + (CURSOR_BLOCK if active else "")
        self._centered(row, box, text[-box.inner_width :])

    def _draw_range_entry(self, screen: RangeEntry) -> None:
        box = self._box(7, 56, "Input a range in the format n..m where n < m", "(ret) continue / (h) back")
        self._draw_input(box, box.inner_top + 1, screen.buffer, active=True)
        if screen.error:
            self._paragraph(box, box.inner_top + 3, screen.error, self._alert, limit=2)

    def _draw_guess_entry(self, app: "GameApp", screen: GuessEntry) -> None:
        box = self._box(7, 56, f"Input a number in {screen.range}", "(ret) guess / (h) new range")
        self._draw_input(box, box.inner_top + 1, screen.buffer, active=not screen.pending)
        if screen.pending:
            spinner = SPINNER[self._frame % len(SPINNER)]
            self._centered(box.inner_top + 3, box, f"{spinner} waiting for the {app.settings.persona}...", self._accent)
        elif screen.error:
            self._paragraph(box, box.inner_top + 3, screen.error, self._alert, limit=2)

    def _draw_result(self, app: "GameApp", screen: ResultDisplay) -> None:
        screen_h, screen_w = self._stdscr.getmaxyx()
        box = self._box(min(screen_h - 4, 16), min(screen_w - 4, 64), "Result", "(j) down / (k) up / (l) select")
        row = box.inner_top + 1
        self._centered(row, box, f"You guessed {screen.guess}: {screen.outcome.label}", curses.A_BOLD)
        row += 2
        text_rows = max(box.inner_height - len(screen.items) - 5, 1)
        if screen.reaction is not None:
            row = self._paragraph(box, row, screen.reaction, limit=text_rows)
        elif screen.error is not None:
            note = "You can keep playing and try again." if screen.retryable else "Change the setup to get reactions back."
            row = self._paragraph(box, row, f"{screen.error} {note}", self._alert, limit=text_rows)
        self._menu(box, box.inner_top + box.inner_height - len(screen.items), screen.items, screen.cursor)

    def _draw_error(self, screen: ErrorScreen) -> None:
        box = self._box(8, 60, "Something went wrong", "(h) return")
        self._paragraph(box, box.inner_top + 1, screen.message, self._alert, limit=box.inner_height - 1)
