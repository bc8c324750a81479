"""Tests for the chat-completion client and its error taxonomy."""

import io
import json
import logging
import sys
from pathlib import Path
from unittest.mock import patch
from urllib.error import HTTPError, URLError

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

import llm_utils
from guess_game.state import GuessOutcome, RangeSpec
from llm_utils import (
    CompletionError,
    ErrorKind,
    HttpResponse,
    ReactionContext,
    TransportError,
    request_reaction,
)


def make_context(outcome=GuessOutcome.CORRECT, guess=5, secret=5):
    return ReactionContext(range=RangeSpec(1, 10), guess=guess, outcome=outcome, attempt=2, secret=secret)


def make_body(content="Yeehaw, you got it!"):
    data = {"id": "gen-1", "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}
    return json.dumps(data).encode("utf-8")


class RecordingSend:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def __call__(self, method, url, headers, body, timeout):
        self.calls.append(
            {"method": method, "url": url, "headers": dict(headers), "body": body, "timeout": timeout}
        )
        if self.error is not None:
            raise self.error
        return self.response


def test_request_reaction_success_returns_text_unchanged(settings):
    send = RecordingSend(HttpResponse(200, make_body("  Well I'll be, partner!\n")))
    result = request_reaction("qwen/qwen3-32b:free", make_context(), settings=settings, send=send)
    assert result.ok
    assert result.text == "  Well I'll be, partner!\n"


def test_request_reaction_builds_one_authorized_post(settings):
    send = RecordingSend(HttpResponse(200, make_body()))
    request_reaction("some/model", make_context(), settings=settings, send=send)

    assert len(send.calls) == 1
    call = send.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer sk-or-test-key"
    assert call["timeout"] == settings.timeout
    payload = json.loads(call["body"])
    assert payload["model"] == "some/model"
    roles = [message["role"] for message in payload["messages"]]
    assert roles == ["system", "user"]
    assert "cowboy" in payload["messages"][0]["content"]


def test_prompt_hides_secret_until_correct():
    wrong = llm_utils.build_messages(make_context(GuessOutcome.TOO_LOW, guess=3, secret=8), "pirate")
    right = llm_utils.build_messages(make_context(GuessOutcome.CORRECT, guess=8, secret=8), "pirate")
    assert "8" not in wrong[1]["content"]
    assert "lower than the secret" in wrong[1]["content"]
    assert "exactly the secret number 8" in right[1]["content"]
    assert "pirate" in wrong[0]["content"]


def test_transport_failure_is_network(settings):
    send = RecordingSend(error=TransportError("connection refused"))
    result = request_reaction("m", make_context(), settings=settings, send=send)
    assert not result.ok
    assert result.error.kind is ErrorKind.NETWORK
    assert result.error.retryable


def test_transport_timeout_is_timeout(settings):
    send = RecordingSend(error=TransportError("timed out", timed_out=True))
    result = request_reaction("m", make_context(), settings=settings, send=send)
    assert result.error.kind is ErrorKind.TIMEOUT


@pytest.mark.parametrize(
    "status, kind",
    [
        (400, ErrorKind.BAD_REQUEST),
        (401, ErrorKind.UNAUTHORIZED),
        (402, ErrorKind.INSUFFICIENT_CREDITS),
        (403, ErrorKind.FLAGGED),
        (408, ErrorKind.TIMEOUT),
        (429, ErrorKind.RATE_LIMITED),
        (502, ErrorKind.UPSTREAM_INVALID),
        (503, ErrorKind.NO_PROVIDER),
        (500, ErrorKind.UNKNOWN),
        (418, ErrorKind.UNKNOWN),
    ],
)
def test_status_taxonomy(settings, status, kind):
    send = RecordingSend(HttpResponse(status, b""))
    result = request_reaction("m", make_context(), settings=settings, send=send)
    assert result.error.kind is kind
    assert result.error.status == status


def test_unknown_status_is_preserved_for_display(settings):
    send = RecordingSend(HttpResponse(599, b"oops"))
    result = request_reaction("m", make_context(), settings=settings, send=send)
    assert "HTTP 599" in result.error.describe()


def test_error_body_message_is_kept(settings):
    body = json.dumps({"error": {"code": 429, "message": "Rate limit exceeded: free-models-per-min"}}).encode()
    send = RecordingSend(HttpResponse(429, body))
    result = request_reaction("m", make_context(), settings=settings, send=send)
    assert result.error.detail == "Rate limit exceeded: free-models-per-min"
    assert "free-models-per-min" in result.error.describe()


@pytest.mark.parametrize(
    "body",
    [
        json.dumps({"choices": []}).encode(),
        json.dumps({"id": "gen"}).encode(),
        json.dumps({"choices": [{"message": {}}]}).encode(),
        json.dumps({"choices": [{"text": "legacy"}]}).encode(),
        json.dumps({"choices": [{"message": {"content": ""}}]}).encode(),
        b"<html>not json</html>",
        b"[1, 2, 3]",
    ],
)
def test_malformed_success_body(settings, body):
    send = RecordingSend(HttpResponse(200, body))
    result = request_reaction("m", make_context(), settings=settings, send=send)
    assert result.error.kind is ErrorKind.MALFORMED_RESPONSE
    assert not result.error.retryable


def test_first_choice_wins():
    body = json.dumps(
        {"choices": [{"message": {"content": "first"}}, {"message": {"content": "second"}}]}
    ).encode()
    assert llm_utils.parse_completion(body) == "first"


def test_retry_classification():
    retryable = {kind for kind in ErrorKind if kind.retryable}
    assert retryable == {
        ErrorKind.NETWORK,
        ErrorKind.TIMEOUT,
        ErrorKind.RATE_LIMITED,
        ErrorKind.UPSTREAM_INVALID,
        ErrorKind.NO_PROVIDER,
    }
    for kind in ErrorKind:
        assert kind.message and kind.hint


def test_api_key_not_logged(settings, caplog):
    send = RecordingSend(HttpResponse(401, b'{"error": {"message": "No auth credentials found"}}'))
    with caplog.at_level(logging.INFO):
        request_reaction("m", make_context(), settings=settings, send=send)
    assert settings.api_key not in caplog.text
    assert any("HTTP 401" in record.getMessage() for record in caplog.records)


# urllib transport ---------------------------------------------------------


class DummyResponse(io.BytesIO):
    status = 200

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def test_urllib_send_returns_status_and_body():
    def fake_urlopen(req, timeout):
        assert req.get_method() == "POST"
        assert req.get_header("Authorization") == "Bearer k"
        assert timeout == 3
        return DummyResponse(make_body())

    with patch("llm_utils.request.urlopen", fake_urlopen):
        response = llm_utils.urllib_send("POST", "https://example.test/x", {"Authorization": "Bearer k"}, b"{}", 3)
    assert response.status == 200
    assert json.loads(response.body)["choices"]


def test_urllib_send_maps_http_errors_to_responses():
    def fake_urlopen(req, timeout):
        raise HTTPError(req.full_url, 429, "Too Many Requests", {}, io.BytesIO(b'{"error": {}}'))

    with patch("llm_utils.request.urlopen", fake_urlopen):
        response = llm_utils.urllib_send("POST", "https://example.test/x", {}, b"{}", 3)
    assert response.status == 429
    assert response.body == b'{"error": {}}'


def test_urllib_send_raises_transport_errors():
    def refused(req, timeout):
        raise URLError(ConnectionRefusedError("refused"))

    def slow(req, timeout):
        raise TimeoutError("timed out")

    with patch("llm_utils.request.urlopen", refused):
        with pytest.raises(TransportError) as excinfo:
            llm_utils.urllib_send("GET", "https://example.test/x", {}, None, 3)
    assert not excinfo.value.timed_out

    with patch("llm_utils.request.urlopen", slow):
        with pytest.raises(TransportError) as excinfo:
            llm_utils.urllib_send("GET", "https://example.test/x", {}, None, 3)
    assert excinfo.value.timed_out


# Model list -------------------------------------------------------------


def test_fetch_models_parses_and_caches(settings):
    body = json.dumps({"data": [{"id": "a/one", "name": "One"}, {"id": "b/two"}]}).encode()
    send = RecordingSend(HttpResponse(200, body))
    first = llm_utils.fetch_models(settings, send)
    second = llm_utils.fetch_models(settings, send)
    assert first == second == ["a/one", "b/two"]
    assert len(send.calls) == 1
    assert send.calls[0]["method"] == "GET"
    assert send.calls[0]["url"] == "https://openrouter.ai/api/v1/models"
    assert "Authorization" not in send.calls[0]["headers"]


def test_fetch_models_failures_are_classified(settings):
    with pytest.raises(CompletionError) as excinfo:
        llm_utils.fetch_models(settings, RecordingSend(error=TransportError("dns")))
    assert excinfo.value.kind is ErrorKind.NETWORK

    with pytest.raises(CompletionError) as excinfo:
        llm_utils.fetch_models(settings, RecordingSend(HttpResponse(503, b"")))
    assert excinfo.value.kind is ErrorKind.NO_PROVIDER

    with pytest.raises(CompletionError) as excinfo:
        llm_utils.fetch_models(settings, RecordingSend(HttpResponse(200, b'{"models": []}')))
    assert excinfo.value.kind is ErrorKind.MALFORMED_RESPONSE
