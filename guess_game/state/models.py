"""Dataclasses describing the guessing game and its screens."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union


class GuessOutcome(enum.Enum):
    """Classification of a single guess against the secret."""

    CORRECT = "correct"
    TOO_LOW = "too_low"
    TOO_HIGH = "too_high"

    @property
    def ends_round(self) -> bool:
        return self is GuessOutcome.CORRECT

    @property
    def label(self) -> str:
        return {
            GuessOutcome.CORRECT: "Correct!",
            GuessOutcome.TOO_LOW: "Too low",
            GuessOutcome.TOO_HIGH: "Too high",
        }[self]


@dataclass(frozen=True, slots=True)
class RangeSpec:
    """Closed integer interval picked by the player, ``low < high``."""

    low: int
    high: int

    def __post_init__(self) -> None:
        if self.low >= self.high:
            raise ValueError(f"RangeSpec requires low < high, got {self.low}..{self.high}")

    def __contains__(self, value: int) -> bool:
        return self.low <= value <= self.high

    def __str__(self) -> str:
        return f"{self.low}..{self.high}"


@dataclass(slots=True)
class Score:
    """Session-wide tally of resolved guesses."""

    correct: int = 0
    total: int = 0

    def record(self, outcome: GuessOutcome) -> None:
        self.total += 1
        if outcome is GuessOutcome.CORRECT:
            self.correct += 1

    def __str__(self) -> str:
        return f"{self.correct}/{self.total}"


@dataclass(slots=True)
class Round:
    """Lifetime of one secret, spanning every guess until it is found."""

    range: RangeSpec
    secret: int
    attempts: int = 0
    guesses: List[int] = field(default_factory=list)

    def register(self, guess: int) -> None:
        self.attempts += 1
        self.guesses.append(guess)


# Screens ---------------------------------------------------------------

MAIN_MENU_ITEMS: Tuple[str, ...] = ("Play", "Options", "Exit")
OPTIONS_MENU_ITEMS: Tuple[str, ...] = ("Model", "Return")
FINISHED_ROUND_ITEMS: Tuple[str, ...] = ("Play again", "Exit")
OPEN_ROUND_ITEMS: Tuple[str, ...] = ("Guess again", "New range", "Exit")


@dataclass(slots=True)
class MainMenu:
    cursor: int = 0

    @property
    def items(self) -> Tuple[str, ...]:
        return MAIN_MENU_ITEMS


@dataclass(slots=True)
class OptionsMenu:
    cursor: int = 0
    loading: bool = False

    @property
    def items(self) -> Tuple[str, ...]:
        return OPTIONS_MENU_ITEMS


@dataclass(slots=True)
class ModelPicker:
    """Scrollable list of model ids; ``offset`` is the first visible row."""

    models: List[str] = field(default_factory=list)
    cursor: int = 0
    offset: int = 0

    @property
    def highlighted(self) -> Optional[str]:
        if not self.models:
            return None
        return self.models[self.cursor]


@dataclass(slots=True)
class RangeEntry:
    buffer: str = ""
    error: Optional[str] = None


@dataclass(slots=True)
class GuessEntry:
    """Guess prompt for the active round; ``pending`` while a reaction is in flight."""

    range: RangeSpec
    buffer: str = ""
    error: Optional[str] = None
    pending: bool = False


@dataclass(slots=True)
class ResultDisplay:
    guess: int
    outcome: GuessOutcome
    reaction: Optional[str] = None
    error: Optional[str] = None
    retryable: bool = False
    cursor: int = 0

    @property
    def items(self) -> Tuple[str, ...]:
        return FINISHED_ROUND_ITEMS if self.outcome.ends_round else OPEN_ROUND_ITEMS


@dataclass(slots=True)
class ErrorScreen:
    message: str


Screen = Union[MainMenu, OptionsMenu, ModelPicker, RangeEntry, GuessEntry, ResultDisplay, ErrorScreen]
