"""Key handlers and the state machine for the guessing game."""

from .router import GameApp, SCREEN_HANDLERS

__all__ = ["GameApp", "SCREEN_HANDLERS"]
