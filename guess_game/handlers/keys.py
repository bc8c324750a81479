"""Named keys delivered to screen handlers."""

KEY_ENTER = "enter"
KEY_TAB = "tab"
KEY_BACKSPACE = "backspace"

KEY_DOWN = "j"
KEY_UP = "k"
KEY_BACK = "h"
KEY_SELECT = "l"
KEY_QUIT = "q"

CONFIRM_KEYS = frozenset({KEY_SELECT, KEY_ENTER})
NAVIGATION_KEYS = frozenset({KEY_DOWN, KEY_UP, KEY_BACK, KEY_SELECT, KEY_QUIT})

MAX_INPUT_LENGTH = 48


def is_text_key(key: str) -> bool:
    """Return True for printable characters that should land in a text buffer."""

    return len(key) == 1 and key.isprintable() and key not in NAVIGATION_KEYS
