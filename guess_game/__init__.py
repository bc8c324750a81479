"""Terminal number guessing game with language-model reactions."""

from .state import GuessOutcome, RangeSpec, Score

__all__ = ["GuessOutcome", "RangeSpec", "Score"]
