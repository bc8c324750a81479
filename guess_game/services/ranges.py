"""Parsing of the ``n..m`` range typed by the player."""

from __future__ import annotations

import enum
import re

from ..state import RangeSpec

_RANGE_RE = re.compile(r"\A\s*([+-]?\d+)\s*\.\.\s*([+-]?\d+)\s*\Z")
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


class ParseErrorKind(enum.Enum):
    MALFORMED = "malformed"
    INVALID_ORDER = "invalid_order"


class ParseError(ValueError):
    """Raised when range text cannot be turned into a ``RangeSpec``."""

    def __init__(self, kind: ParseErrorKind, text: str) -> None:
        self.kind = kind
        self.text = text
        super().__init__(self.describe())

    def describe(self) -> str:
        if self.kind is ParseErrorKind.INVALID_ORDER:
            return "The first number must be smaller than the second (n < m)."
        return "Use the format n..m, for example 1..100."


def parse_range(text: str) -> RangeSpec:
    """Return the interval described by ``text`` or raise ``ParseError``."""

    match = _RANGE_RE.match(text)
    if not match:
        raise ParseError(ParseErrorKind.MALFORMED, text)
    low, high = int(match.group(1)), int(match.group(2))
    if not (INT_MIN <= low <= INT_MAX and INT_MIN <= high <= INT_MAX):
        raise ParseError(ParseErrorKind.MALFORMED, text)
    if low >= high:
        raise ParseError(ParseErrorKind.INVALID_ORDER, text)
    return RangeSpec(low=low, high=high)


__all__ = ["ParseError", "ParseErrorKind", "parse_range"]
