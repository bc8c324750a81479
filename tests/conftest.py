"""Shared fixtures for the guessing game tests."""

import random
import sys
from pathlib import Path
from typing import Callable, List

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

import llm_utils
from guess_game.handlers import GameApp
from guess_game.services import NetworkWorker
from llm_utils import ReactionResult
from shared.settings import Settings


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FixedRandom(random.Random):
    """Random source whose ``randint`` always returns ``value``."""

    def __init__(self, value: int) -> None:
        super().__init__(0)
        self.value = value

    def randint(self, a: int, b: int) -> int:
        return self.value


@pytest.fixture(autouse=True)
def _clear_model_cache():
    llm_utils._model_cache.clear()
    yield
    llm_utils._model_cache.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="sk-or-test-key", timeout=5.0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_app(settings, clock) -> Callable[..., GameApp]:
    """Build a ``GameApp`` whose worker runs calls inline when they are started."""

    def _factory(
        *,
        secret: int = 5,
        fetch=None,
        models: List[str] | None = None,
        fetch_models=None,
        spawn=None,
    ) -> GameApp:
        calls = []

        def _default_fetch(model, context):
            calls.append((model, context))
            return ReactionResult(text="Well shoot, partner.")

        worker = NetworkWorker(
            fetch or _default_fetch,
            fetch_models or (lambda: list(models or ["a/one", "b/two", "c/three"])),
            spawn=spawn or (lambda target: target()),
        )
        app = GameApp(settings, rng=FixedRandom(secret), worker=worker, clock=clock)
        app.fetch_calls = calls
        return app

    return _factory
