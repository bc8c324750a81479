"""Background worker that runs model-service calls without blocking the event loop."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from llm_utils import CompletionError, ErrorKind, ModelListResult, ReactionContext, ReactionResult

logger = logging.getLogger(__name__)

ReactionFetcher = Callable[[str, ReactionContext], ReactionResult]
ModelFetcher = Callable[[], List[str]]
Spawner = Callable[[Callable[[], None]], None]


def _spawn_daemon(target: Callable[[], None]) -> None:
    threading.Thread(target=target, name="network-worker", daemon=True).start()


@dataclass(slots=True)
class Delivery:
    """A finished call, tagged with the ticket issued when it was started."""

    ticket: int
    result: Any


class NetworkWorker:
    """Run one network call per request and hand results back over a queue.

    The spawned thread is the only producer and the event loop the only
    consumer of ``_queue``. ``busy`` counts calls whose result has not been
    polled yet, abandoned ones included, and is only touched from the
    event-loop thread.
    """

    def __init__(
        self,
        fetch_reaction: ReactionFetcher,
        fetch_models: ModelFetcher,
        *,
        spawn: Optional[Spawner] = None,
    ) -> None:
        self._fetch_reaction = fetch_reaction
        self._fetch_models = fetch_models
        self._spawn = spawn or _spawn_daemon
        self._queue: "queue.Queue[Delivery]" = queue.Queue()
        self._last_ticket = 0
        self._outstanding = 0

    @property
    def busy(self) -> bool:
        return self._outstanding > 0

    def request_reaction(self, model: str, context: ReactionContext) -> int:
        return self._start(
            "Reaction request",
            lambda: self._fetch_reaction(model, context),
            lambda exc: ReactionResult(error=CompletionError(ErrorKind.NETWORK, str(exc))),
        )

    def request_models(self) -> int:
        def _list() -> ModelListResult:
            try:
                return ModelListResult(models=list(self._fetch_models()))
            except CompletionError as exc:
                return ModelListResult(error=exc)

        return self._start(
            "Model list request",
            _list,
            lambda exc: ModelListResult(error=CompletionError(ErrorKind.NETWORK, str(exc))),
        )

    def _start(self, label: str, job: Callable[[], Any], recover: Callable[[Exception], Any]) -> int:
        self._last_ticket += 1
        self._outstanding += 1
        ticket = self._last_ticket

        def _run() -> None:
            try:
                result = job()
            except Exception as exc:
                logger.exception("%s %s crashed", label, ticket)
                result = recover(exc)
            self._queue.put(Delivery(ticket=ticket, result=result))

        self._spawn(_run)
        return ticket

    def poll(self) -> Optional[Delivery]:
        """Return the next finished call, or ``None`` when nothing arrived yet."""

        try:
            delivery = self._queue.get_nowait()
        except queue.Empty:
            return None
        self._outstanding -= 1
        return delivery


__all__ = ["Delivery", "NetworkWorker"]
