"""Key handlers for the menu screens and the model picker."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Union

from llm_utils import CompletionError

from ..state import ErrorScreen, MainMenu, ModelPicker, OptionsMenu, RangeEntry, ResultDisplay
from .keys import CONFIRM_KEYS, KEY_BACK, KEY_DOWN, KEY_UP

if TYPE_CHECKING:
    from .router import GameApp

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "The previous request is still running, try again in a moment."

CursorScreen = Union[MainMenu, OptionsMenu, ResultDisplay]


def move_cursor(screen: CursorScreen, key: str) -> bool:
    """Move a menu cursor for ``j``/``k`` without wrapping; True when handled."""

    if key == KEY_DOWN:
        screen.cursor = min(screen.cursor + 1, len(screen.items) - 1)
        return True
    if key == KEY_UP:
        screen.cursor = max(screen.cursor - 1, 0)
        return True
    return False


def handle_main_menu(app: "GameApp", screen: MainMenu, key: str) -> None:
    if move_cursor(screen, key) or key not in CONFIRM_KEYS:
        return
    choice = screen.items[screen.cursor]
    if choice == "Play":
        app.navigate(RangeEntry())
    elif choice == "Options":
        app.navigate(OptionsMenu())
    else:
        app.quit()


def handle_options_menu(app: "GameApp", screen: OptionsMenu, key: str) -> None:
    if screen.loading:
        # Only leaving is possible until the model list arrives.
        if key == KEY_BACK:
            app.cancel_model_list()
            screen.loading = False
            app.back()
        return
    if key == KEY_BACK:
        app.back()
        return
    if move_cursor(screen, key) or key not in CONFIRM_KEYS:
        return
    if screen.items[screen.cursor] == "Return":
        app.reset_to_main_menu()
        return
    if app.request_models():
        screen.loading = True
    else:
        app.navigate(ErrorScreen(BUSY_MESSAGE))


def show_model_list_error(app: "GameApp", error: CompletionError) -> None:
    logger.warning("Could not load the model list: %s", error)
    app.navigate(ErrorScreen(f"Could not load the model list. {error.describe()}"))


def open_model_picker(app: "GameApp", models: List[str]) -> None:
    if not models:
        app.navigate(ErrorScreen("The service did not list any models."))
        return
    cursor = models.index(app.model) if app.model in models else 0
    picker = ModelPicker(models=models, cursor=cursor)
    scroll_into_view(picker, app.list_rows)
    app.navigate(picker)


def scroll_into_view(picker: ModelPicker, rows: int) -> None:
    rows = max(rows, 1)
    if picker.cursor < picker.offset:
        picker.offset = picker.cursor
    elif picker.cursor >= picker.offset + rows:
        picker.offset = picker.cursor - rows + 1


def handle_model_picker(app: "GameApp", screen: ModelPicker, key: str) -> None:
    if key == KEY_BACK:
        app.back()
        return
    if key in (KEY_DOWN, KEY_UP) and screen.models:
        step = 1 if key == KEY_DOWN else -1
        screen.cursor = max(0, min(len(screen.models) - 1, screen.cursor + step))
        scroll_into_view(screen, app.list_rows)
        return
    if key in CONFIRM_KEYS and screen.highlighted:
        app.select_model(screen.highlighted)
        app.reset_to_main_menu()


def handle_error_screen(app: "GameApp", screen: ErrorScreen, key: str) -> None:
    if key == KEY_BACK or key in CONFIRM_KEYS:
        app.back()
