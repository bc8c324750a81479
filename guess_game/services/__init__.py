"""Service layer for the guessing game."""

from .evaluator import GuessError, GuessErrorKind, draw_secret, evaluate, parse_guess, validate_guess
from .network import Delivery, NetworkWorker
from .ranges import ParseError, ParseErrorKind, parse_range

__all__ = [
    "Delivery",
    "GuessError",
    "GuessErrorKind",
    "NetworkWorker",
    "ParseError",
    "ParseErrorKind",
    "draw_secret",
    "evaluate",
    "parse_guess",
    "parse_range",
    "validate_guess",
]
