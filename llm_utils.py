"""Chat-completion client that voices reactions to guesses using LangChain prompts."""

from __future__ import annotations

import enum
import http.client
import json
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from urllib import request
from urllib.error import HTTPError, URLError

from langchain_core.messages import convert_to_openai_messages
from langchain_core.prompts import ChatPromptTemplate

from guess_game.state import GuessOutcome, RangeSpec
from shared.settings import Settings

logger = logging.getLogger(__name__)


class ErrorKind(enum.Enum):
    NETWORK = "network"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    FLAGGED = "flagged"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_INVALID = "upstream_invalid"
    NO_PROVIDER = "no_provider"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        return self in RETRYABLE_KINDS

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self][0]

    @property
    def hint(self) -> str:
        return _ERROR_MESSAGES[self][1]


RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.NETWORK,
        ErrorKind.TIMEOUT,
        ErrorKind.RATE_LIMITED,
        ErrorKind.UPSTREAM_INVALID,
        ErrorKind.NO_PROVIDER,
    }
)

STATUS_KINDS: Dict[int, ErrorKind] = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    402: ErrorKind.INSUFFICIENT_CREDITS,
    403: ErrorKind.FLAGGED,
    408: ErrorKind.TIMEOUT,
    429: ErrorKind.RATE_LIMITED,
    502: ErrorKind.UPSTREAM_INVALID,
    503: ErrorKind.NO_PROVIDER,
}

_ERROR_MESSAGES: Dict[ErrorKind, tuple[str, str]] = {
    ErrorKind.NETWORK: ("Could not reach the model service.", "Check your connection and try again."),
    ErrorKind.BAD_REQUEST: ("The model service rejected the request.", "Pick another model in Options."),
    ErrorKind.UNAUTHORIZED: ("The API key was refused.", "Fix OPENROUTER_API_KEY and restart."),
    ErrorKind.INSUFFICIENT_CREDITS: ("The account is out of credits.", "Top up the account or pick a free model."),
    ErrorKind.FLAGGED: ("The request was filtered by moderation.", "Pick another model in Options."),
    ErrorKind.TIMEOUT: ("The model took too long to answer.", "Try again in a moment."),
    ErrorKind.RATE_LIMITED: ("Too many requests.", "Wait a little before guessing again."),
    ErrorKind.UPSTREAM_INVALID: ("The model is unavailable or answered badly.", "Try again or pick another model."),
    ErrorKind.NO_PROVIDER: ("No provider is serving this model right now.", "Try again later or pick another model."),
    ErrorKind.MALFORMED_RESPONSE: ("The model answer could not be read.", "Pick another model in Options."),
    ErrorKind.UNKNOWN: ("Unexpected answer from the model service.", "Pick another model or check the log."),
}


class CompletionError(Exception):
    """Classified failure of a request to the completion endpoint."""

    def __init__(self, kind: ErrorKind, detail: str = "", *, status: Optional[int] = None) -> None:
        self.kind = kind
        self.detail = detail
        self.status = status
        super().__init__(detail or kind.message)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def describe(self) -> str:
        """Return the text shown to the player in place of the reaction."""

        headline = self.kind.message
        if self.status is not None:
            headline = f"{headline} (HTTP {self.status})"
        if self.detail and self.kind is not ErrorKind.NETWORK:
            headline = f"{headline} {self.detail}"
        return f"{headline} {self.kind.hint}"


# Transport ----------------------------------------------------------------


@dataclass(slots=True)
class HttpResponse:
    status: int
    body: bytes


class TransportError(Exception):
    """Raised by a send function when no HTTP response was received."""

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        self.timed_out = timed_out
        super().__init__(message)


HttpSend = Callable[[str, str, Mapping[str, str], Optional[bytes], float], HttpResponse]


def urllib_send(
    method: str,
    url: str,
    headers: Mapping[str, str],
    body: Optional[bytes],
    timeout: float,
) -> HttpResponse:
    """Perform one HTTP exchange with ``urllib`` so it can be easily mocked in tests."""

    req = request.Request(url, data=body, headers=dict(headers), method=method)
    try:
        with request.urlopen(req, timeout=timeout) as resp:  # pragma: no cover - network
            return HttpResponse(status=resp.status, body=resp.read())
    except HTTPError as exc:
        try:
            payload = exc.read()
        except OSError:
            payload = b""
        return HttpResponse(status=exc.code, body=payload or b"")
    except TimeoutError as exc:
        raise TransportError(f"timed out after {timeout}s", timed_out=True) from exc
    except URLError as exc:
        timed_out = isinstance(exc.reason, TimeoutError)
        raise TransportError(str(exc.reason), timed_out=timed_out) from exc
    except (OSError, http.client.HTTPException) as exc:
        raise TransportError(str(exc) or exc.__class__.__name__) from exc


# Prompting ----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReactionContext:
    """What the model needs to know about the guess it reacts to."""

    range: RangeSpec
    guess: int
    outcome: GuessOutcome
    attempt: int
    secret: int

    @property
    def secret_revealed(self) -> bool:
        return self.outcome is GuessOutcome.CORRECT


@dataclass(slots=True)
class ReactionResult:
    text: Optional[str] = None
    error: Optional[CompletionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class ModelListResult:
    models: List[str] = field(default_factory=list)
    error: Optional[CompletionError] = None


_prompt = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a {persona} commenting on a player's attempts in a number guessing game. "
            "You will be told how the latest guess went. Answer in character with a short text "
            "of one or two sentences. Include just your answer and nothing more. "
            "Don't include emoji or otherwise non-verbal content. Never invent the secret number.",
        ),
        ("human", "{situation}"),
    ]
)


def describe_round(context: ReactionContext) -> str:
    """Render the round into the situation sentence sent as the user message."""

    spec = context.range
    opening = f"The player is guessing a secret number between {spec.low} and {spec.high}."
    if context.outcome is GuessOutcome.CORRECT:
        return (
            f"{opening} On attempt {context.attempt} they guessed {context.guess}, "
            f"which is exactly the secret number {context.secret}. Congratulate them."
        )
    direction = "lower" if context.outcome is GuessOutcome.TOO_LOW else "higher"
    advice = "higher" if context.outcome is GuessOutcome.TOO_LOW else "lower"
    return (
        f"{opening} On attempt {context.attempt} they guessed {context.guess}, "
        f"which is {direction} than the secret number. Tease them and tell them to go {advice}."
    )


def build_messages(context: ReactionContext, persona: str) -> List[Dict[str, str]]:
    messages = _prompt.format_messages(persona=persona, situation=describe_round(context))
    return convert_to_openai_messages(messages)


def build_payload(model: str, messages: List[Dict[str, str]]) -> Dict[str, object]:
    return {"model": model, "messages": messages}


# Responses ----------------------------------------------------------------


def classify_status(status: int) -> ErrorKind:
    return STATUS_KINDS.get(status, ErrorKind.UNKNOWN)


def _error_detail(body: bytes) -> str:
    """Pull ``error.message`` out of an OpenRouter error body when present."""

    try:
        data = json.loads(body)
    except (TypeError, ValueError):
        return ""
    if not isinstance(data, dict):
        return ""
    error = data.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return ""


def parse_completion(body: bytes) -> str:
    """Return the content of the first choice or raise ``MALFORMED_RESPONSE``."""

    try:
        data = json.loads(body)
    except (TypeError, ValueError) as exc:
        raise CompletionError(ErrorKind.MALFORMED_RESPONSE, "Response is not JSON.") from exc
    choices = data.get("choices") if isinstance(data, dict) else None
    if not isinstance(choices, list) or not choices:
        raise CompletionError(ErrorKind.MALFORMED_RESPONSE, "Response has no choices.")
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content.strip():
        raise CompletionError(ErrorKind.MALFORMED_RESPONSE, "Response has no message content.")
    return content


def request_reaction(
    model: str,
    context: ReactionContext,
    *,
    settings: Settings,
    send: HttpSend = urllib_send,
) -> ReactionResult:
    """Ask ``model`` for a themed reaction to the guess described by ``context``."""

    messages = build_messages(context, settings.persona)
    payload = json.dumps(build_payload(model, messages)).encode("utf-8")
    headers = {
        "Authorization": f"Bearer {settings.api_key}",
        "Content-Type": "application/json",
    }
    logger.info("Requesting reaction from %s for guess %s (%s)", model, context.guess, context.outcome.value)

    try:
        response = send("POST", settings.completions_url, headers, payload, settings.timeout)
    except TransportError as exc:
        kind = ErrorKind.TIMEOUT if exc.timed_out else ErrorKind.NETWORK
        logger.warning("Completion request to %s failed: %s", settings.completions_url, exc)
        return ReactionResult(error=CompletionError(kind, str(exc)))

    if response.status != 200:
        kind = classify_status(response.status)
        detail = _error_detail(response.body)
        logger.warning("Completion request returned HTTP %s (%s): %s", response.status, kind.value, detail)
        return ReactionResult(error=CompletionError(kind, detail, status=response.status))

    try:
        text = parse_completion(response.body)
    except CompletionError as exc:
        logger.error("Failed to parse completion response: %s", exc)
        return ReactionResult(error=exc)
    logger.info("LLM raw response: %s", text)
    return ReactionResult(text=text)


# Model list ---------------------------------------------------------------

_model_cache: Dict[str, List[str]] = {}


def fetch_models(settings: Settings, send: HttpSend = urllib_send) -> List[str]:
    """Return the model ids served by the endpoint; the list is cached per URL."""

    url = settings.models_url
    cached = _model_cache.get(url)
    if cached is not None:
        logger.info("Cache hit for model list: %s", url)
        return list(cached)

    try:
        response = send("GET", url, {"Accept": "application/json"}, None, settings.timeout)
    except TransportError as exc:
        logger.warning("Model list request to %s failed: %s", url, exc)
        raise CompletionError(ErrorKind.TIMEOUT if exc.timed_out else ErrorKind.NETWORK, str(exc)) from exc
    if response.status != 200:
        raise CompletionError(
            classify_status(response.status), _error_detail(response.body), status=response.status
        )

    try:
        data = json.loads(response.body)
        entries = data["data"]
        models = [str(entry["id"]) for entry in entries]
    except (TypeError, ValueError, KeyError) as exc:
        logger.error("Failed to parse model list: %s", exc)
        raise CompletionError(ErrorKind.MALFORMED_RESPONSE, "Model list could not be read.") from exc

    logger.info("Fetched %d models from %s", len(models), url)
    _model_cache[url] = models
    return list(models)


__all__ = [
    "CompletionError",
    "ErrorKind",
    "HttpResponse",
    "ModelListResult",
    "ReactionContext",
    "ReactionResult",
    "TransportError",
    "build_messages",
    "classify_status",
    "fetch_models",
    "parse_completion",
    "request_reaction",
    "urllib_send",
]
