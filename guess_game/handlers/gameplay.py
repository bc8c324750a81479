"""Key handlers for range entry, guessing and the result screen."""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from ..services import GuessError, ParseError, parse_guess, parse_range, validate_guess
from ..state import GuessEntry, RangeEntry, ResultDisplay
from .keys import CONFIRM_KEYS, KEY_BACK, KEY_BACKSPACE, KEY_TAB, MAX_INPUT_LENGTH, is_text_key
from .menus import BUSY_MESSAGE, move_cursor

if TYPE_CHECKING:
    from .router import GameApp

EntryScreen = Union[RangeEntry, GuessEntry]


def edit_buffer(screen: EntryScreen, key: str) -> bool:
    """Apply text editing keys to the screen buffer; True when handled."""

    if key == KEY_BACKSPACE:
        screen.buffer = screen.buffer[:-1]
        screen.error = None
        return True
    if key == KEY_TAB:
        # Range and guess screens have a single field each.
        return True
    if is_text_key(key):
        if len(screen.buffer) < MAX_INPUT_LENGTH:
            screen.buffer += key
        screen.error = None
        return True
    return False


def handle_range_entry(app: "GameApp", screen: RangeEntry, key: str) -> None:
    if key == KEY_BACK:
        app.back()
        return
    if edit_buffer(screen, key) or key not in CONFIRM_KEYS:
        return
    try:
        spec = parse_range(screen.buffer)
    except ParseError as exc:
        screen.error = exc.describe()
        return
    screen.error = None
    app.start_round(spec)
    app.navigate(GuessEntry(range=spec))


def handle_guess_entry(app: "GameApp", screen: GuessEntry, key: str) -> None:
    if screen.pending:
        return
    if key == KEY_BACK:
        app.abandon_round()
        app.back()
        return
    if edit_buffer(screen, key) or key not in CONFIRM_KEYS:
        return
    try:
        guess = parse_guess(screen.buffer)
        validate_guess(guess, screen.range)
    except GuessError as exc:
        screen.error = str(exc)
        return
    if app.network_busy:
        screen.error = BUSY_MESSAGE
        return
    screen.error = None
    app.submit_guess(guess)


def handle_result(app: "GameApp", screen: ResultDisplay, key: str) -> None:
    if key == KEY_BACK:
        app.abandon_round()
        app.back()
        return
    if move_cursor(screen, key) or key not in CONFIRM_KEYS:
        return
    choice = screen.items[screen.cursor]
    if choice == "Guess again":
        if app.round is not None:
            app.replace(GuessEntry(range=app.round.range))
    elif choice in ("Play again", "New range"):
        app.abandon_round()
        app.restart_at(RangeEntry())
    else:
        app.quit()
