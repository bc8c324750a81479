"""Guess validation, evaluation and secret drawing."""

from __future__ import annotations

import enum
import random
import re

from ..state import GuessOutcome, RangeSpec

_GUESS_RE = re.compile(r"\A\s*([+-]?\d+)\s*\Z")


class GuessErrorKind(enum.Enum):
    MALFORMED = "malformed"
    OUT_OF_RANGE = "out_of_range"


class GuessError(ValueError):
    """Raised for guesses that must not advance the round."""

    def __init__(self, kind: GuessErrorKind, message: str) -> None:
        self.kind = kind
        super().__init__(message)


def parse_guess(text: str) -> int:
    match = _GUESS_RE.match(text)
    if not match:
        raise GuessError(GuessErrorKind.MALFORMED, "Type a whole number.")
    return int(match.group(1))


def validate_guess(guess: int, spec: RangeSpec) -> None:
    """Reject guesses that fall outside ``spec``."""

    if guess < spec.low or guess > spec.high:
        raise GuessError(
            GuessErrorKind.OUT_OF_RANGE,
            f"{guess} is out of range, pick a number between {spec.low} and {spec.high}.",
        )


def evaluate(secret: int, guess: int) -> GuessOutcome:
    if guess == secret:
        return GuessOutcome.CORRECT
    if guess < secret:
        return GuessOutcome.TOO_LOW
    return GuessOutcome.TOO_HIGH


def draw_secret(spec: RangeSpec, rng: random.Random) -> int:
    """Draw uniformly from ``[low, high]``, both bounds included."""

    return rng.randint(spec.low, spec.high)


__all__ = [
    "GuessError",
    "GuessErrorKind",
    "draw_secret",
    "evaluate",
    "parse_guess",
    "validate_guess",
]
