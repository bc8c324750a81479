"""Tests for credential redaction in log output."""

import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from shared.logging_utils import RedactingFormatter, configure_logging, sensitive_values


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("randy", logging.INFO, __file__, 1, message, None, None)


def test_redacting_formatter_hides_secrets():
    formatter = RedactingFormatter(logging.Formatter("%(message)s"), secrets=["sk-or-secret"])
    assert formatter.format(_record("Bearer sk-or-secret sent")) == "Bearer [REDACTED] sent"


def test_update_secrets_replaces_list():
    formatter = RedactingFormatter(logging.Formatter("%(message)s"), secrets=["old"])
    formatter.update_secrets(["new"])
    assert formatter.format(_record("old new")) == "old [REDACTED]"


def test_configure_logging_wraps_existing_handlers(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-from-env")
    root = logging.getLogger()
    handler = logging.StreamHandler()
    root.addHandler(handler)
    previous_level = root.level
    try:
        configure_logging(level="INFO", extra_values=["extra-secret", None])
        assert isinstance(handler.formatter, RedactingFormatter)
        text = handler.formatter.format(_record("sk-from-env and extra-secret"))
        assert "sk-from-env" not in text
        assert "extra-secret" not in text
    finally:
        root.removeHandler(handler)
        root.setLevel(previous_level)


def test_configure_logging_writes_to_file(tmp_path, monkeypatch):
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    previous_level = root.level
    for existing in saved_handlers:
        root.removeHandler(existing)
    log_file = tmp_path / "logs" / "randy.log"
    try:
        configure_logging(level="INFO", extra_values=["sk-file-secret"], log_file=log_file)
        logging.getLogger("randy.test").info("key is sk-file-secret")
        for handler in root.handlers:
            handler.flush()
        assert "key is [REDACTED]" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for existing in saved_handlers:
            root.addHandler(existing)
        root.setLevel(previous_level)


def test_short_values_are_not_treated_as_secrets(monkeypatch):
    monkeypatch.setenv("RANDY_TEST_KEY_REPEAT", "25")
    monkeypatch.setenv("RANDY_TEST_TOKEN", "tok-123456")
    values = sensitive_values(["sk-or-long-key", "7", None])
    assert "25" not in values
    assert "7" not in values
    assert "tok-123456" in values
    assert "sk-or-long-key" in values


def test_overlapping_secrets_are_masked_whole():
    secrets = sensitive_values(["sk-or-abcdef", "sk-or-abcdef-extended"])
    assert secrets.index("sk-or-abcdef-extended") < secrets.index("sk-or-abcdef")
    formatter = RedactingFormatter(logging.Formatter("%(message)s"), secrets=secrets)
    assert formatter.format(_record("key sk-or-abcdef-extended, guess 25")) == "key [REDACTED], guess 25"
