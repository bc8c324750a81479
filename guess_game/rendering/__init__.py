"""Rendering facade for the guessing game."""

from .screens import TerminalRenderer
from .terminal import run, translate_key

__all__ = ["TerminalRenderer", "run", "translate_key"]
