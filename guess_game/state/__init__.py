"""State primitives for the guessing game."""

from .models import (
    ErrorScreen,
    GuessEntry,
    GuessOutcome,
    MainMenu,
    ModelPicker,
    OptionsMenu,
    RangeEntry,
    RangeSpec,
    ResultDisplay,
    Round,
    Score,
    Screen,
)

__all__ = [
    "ErrorScreen",
    "GuessEntry",
    "GuessOutcome",
    "MainMenu",
    "ModelPicker",
    "OptionsMenu",
    "RangeEntry",
    "RangeSpec",
    "ResultDisplay",
    "Round",
    "Score",
    "Screen",
]
