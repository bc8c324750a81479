"""Curses event loop: poll a key, dispatch it, collect finished calls, redraw."""

from __future__ import annotations

import curses
import logging
from typing import TYPE_CHECKING, Optional

from ..handlers.keys import KEY_BACKSPACE, KEY_ENTER, KEY_TAB
from .screens import TerminalRenderer

if TYPE_CHECKING:
    from ..handlers import GameApp

logger = logging.getLogger(__name__)

POLL_INTERVAL_MS = 100

_ENTER_CODES = frozenset({curses.KEY_ENTER, 10, 13})
_BACKSPACE_CODES = frozenset({curses.KEY_BACKSPACE, 127, 8})
_TAB_CODE = 9


def translate_key(code: int) -> Optional[str]:
    """Map a ``getch`` code to the key names understood by the handlers."""

    if code < 0:
        return None
    if code in _ENTER_CODES:
        return KEY_ENTER
    if code in _BACKSPACE_CODES:
        return KEY_BACKSPACE
    if code == _TAB_CODE:
        return KEY_TAB
    if 32 <= code < 127:
        return chr(code)
    return None


def run(stdscr, app: "GameApp") -> None:
    """Drive ``app`` until it stops running; meant for ``curses.wrapper``."""

    renderer = TerminalRenderer(stdscr)
    renderer.setup()
    stdscr.keypad(True)
    stdscr.timeout(POLL_INTERVAL_MS)
    logger.info("Event loop started")

    while app.running:
        app.tick()
        renderer.render(app)
        key = translate_key(stdscr.getch())
        if key is not None:
            app.handle_key(key)

    logger.info("Event loop stopped")
