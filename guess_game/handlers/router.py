"""Application state machine that routes key events to the active screen."""

from __future__ import annotations

import functools
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

import llm_utils
from llm_utils import CompletionError, ErrorKind, ModelListResult, ReactionContext, ReactionResult
from shared.settings import Settings

from ..services import Delivery, NetworkWorker, draw_secret, evaluate
from ..state import (
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
from .gameplay import handle_guess_entry, handle_range_entry, handle_result
from .keys import KEY_QUIT
from .menus import (
    handle_error_screen,
    handle_main_menu,
    handle_model_picker,
    handle_options_menu,
    open_model_picker,
    show_model_list_error,
)

logger = logging.getLogger(__name__)

# Extra time granted on top of the transport timeout before a request is abandoned.
DEADLINE_GRACE_SECONDS = 2.0

SCREEN_HANDLERS: Dict[type, Callable[["GameApp", Screen, str], None]] = {
    MainMenu: handle_main_menu,
    OptionsMenu: handle_options_menu,
    ModelPicker: handle_model_picker,
    RangeEntry: handle_range_entry,
    GuessEntry: handle_guess_entry,
    ResultDisplay: handle_result,
    ErrorScreen: handle_error_screen,
}


@dataclass(slots=True)
class PendingReaction:
    ticket: int
    guess: int
    outcome: GuessOutcome
    deadline: float


@dataclass(slots=True)
class PendingModelList:
    ticket: int
    deadline: float


Pending = Union[PendingReaction, PendingModelList]


class GameApp:
    """Owns every piece of mutable game state and the navigation stack.

    Score and the model selection are written only here; the network worker
    reports back through ``tick``, which the event loop calls between keys.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        rng: Optional[random.Random] = None,
        worker: Optional[NetworkWorker] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.model = settings.model
        self.score = Score()
        self.screen: Screen = MainMenu()
        self.round: Optional[Round] = None
        self.running = True
        self.list_rows = 10
        self._history: List[Screen] = []
        self._rng = rng or random.Random()
        self._worker = worker or NetworkWorker(
            functools.partial(llm_utils.request_reaction, settings=settings),
            functools.partial(llm_utils.fetch_models, settings),
        )
        self._clock = clock
        self._pending: Optional[Pending] = None

    # Navigation -------------------------------------------------------
    @property
    def waiting(self) -> bool:
        return self._pending is not None

    @property
    def network_busy(self) -> bool:
        """True while any call, abandoned ones included, has not reported back."""
        return self._worker.busy

    def handle_key(self, key: str) -> None:
        """Dispatch one key event to the handler of the active screen."""

        if key == KEY_QUIT:
            self.quit()
            return
        handler = SCREEN_HANDLERS[type(self.screen)]
        handler(self, self.screen, key)

    def navigate(self, screen: Screen) -> None:
        self._history.append(self.screen)
        self.screen = screen

    def replace(self, screen: Screen) -> None:
        self.screen = screen

    def back(self) -> None:
        if self._history:
            self.screen = self._history.pop()

    def reset_to_main_menu(self) -> None:
        self._history.clear()
        self.screen = MainMenu()

    def restart_at(self, screen: Screen) -> None:
        self._history = [MainMenu()]
        self.screen = screen

    def quit(self) -> None:
        if self._pending is not None:
            logger.info("Quitting while request %s is still outstanding", self._pending.ticket)
        self.running = False

    # Options ----------------------------------------------------------
    def request_models(self) -> bool:
        """Start loading the model list; False while another call is running."""

        if self._worker.busy:
            logger.info("Model list not requested, a previous call is still running")
            return False
        ticket = self._worker.request_models()
        self._pending = PendingModelList(ticket=ticket, deadline=self._deadline())
        return True

    def cancel_model_list(self) -> None:
        if isinstance(self._pending, PendingModelList):
            logger.info("Model list request %s cancelled", self._pending.ticket)
            self._pending = None

    def select_model(self, model: str) -> None:
        logger.info("Model changed from %s to %s", self.model, model)
        self.model = model

    # Rounds -----------------------------------------------------------
    def start_round(self, spec: RangeSpec) -> Round:
        secret = draw_secret(spec, self._rng)
        self.round = Round(range=spec, secret=secret)
        logger.info("New round in %s", spec)
        logger.debug("Secret for this round: %s", secret)
        return self.round

    def abandon_round(self) -> None:
        if self.round is not None:
            logger.info("Round in %s abandoned after %d attempts", self.round.range, self.round.attempts)
        self.round = None

    def submit_guess(self, guess: int) -> GuessOutcome:
        """Evaluate a validated guess, update the score and request a reaction."""

        current = self.round
        if current is None:
            raise RuntimeError("submit_guess called without an active round")
        if self._worker.busy:
            raise RuntimeError("submit_guess called while a previous call is still running")
        current.register(guess)
        outcome = evaluate(current.secret, guess)
        self.score.record(outcome)
        logger.info("Guess %s -> %s (score %s)", guess, outcome.value, self.score)

        context = ReactionContext(
            range=current.range,
            guess=guess,
            outcome=outcome,
            attempt=current.attempts,
            secret=current.secret,
        )
        if outcome.ends_round:
            self.round = None

        ticket = self._worker.request_reaction(self.model, context)
        self._pending = PendingReaction(
            ticket=ticket,
            guess=guess,
            outcome=outcome,
            deadline=self._deadline(),
        )
        if isinstance(self.screen, GuessEntry):
            self.screen.pending = True
        return outcome

    # Event loop hooks -------------------------------------------------
    def tick(self) -> None:
        """Collect finished calls and enforce the request deadline."""

        delivery = self._worker.poll()
        while delivery is not None:
            self._deliver(delivery)
            delivery = self._worker.poll()

        pending = self._pending
        if pending is None or self._clock() < pending.deadline:
            return
        logger.warning("Request %s exceeded its deadline, giving up", pending.ticket)
        self._pending = None
        error = CompletionError(ErrorKind.TIMEOUT, "No answer before the deadline.")
        if isinstance(pending, PendingModelList):
            self._show_model_list(ModelListResult(error=error))
        else:
            self._show_result(pending, ReactionResult(error=error))

    def _deadline(self) -> float:
        return self._clock() + self.settings.timeout + DEADLINE_GRACE_SECONDS

    def _deliver(self, delivery: Delivery) -> None:
        pending = self._pending
        if pending is None or delivery.ticket != pending.ticket:
            logger.info("Dropping stale result of request %s", delivery.ticket)
            return
        self._pending = None
        if isinstance(pending, PendingModelList):
            self._show_model_list(delivery.result)
        else:
            self._show_result(pending, delivery.result)

    def _show_model_list(self, result: ModelListResult) -> None:
        if isinstance(self.screen, OptionsMenu):
            self.screen.loading = False
        if result.error is not None:
            show_model_list_error(self, result.error)
        else:
            open_model_picker(self, result.models)

    def _show_result(self, pending: PendingReaction, result: ReactionResult) -> None:
        error = result.error
        self.replace(
            ResultDisplay(
                guess=pending.guess,
                outcome=pending.outcome,
                reaction=result.text,
                error=error.describe() if error else None,
                retryable=error.retryable if error else False,
            )
        )
