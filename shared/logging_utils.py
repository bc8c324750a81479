import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Iterable, Iterator, Optional, Pattern, Sequence

REDACTED = "[REDACTED]"
_SENSITIVE_NAME_PARTS = ("TOKEN", "SECRET", "KEY", "PASS", "PWD")
# Shorter values would mask guesses and scores in the log.
_MIN_SECRET_LENGTH = 6
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

DEFAULT_LOG_FILE = Path(tempfile.gettempdir()) / "randy-ng.log"


def _environment_secrets() -> Iterator[str]:
    for name, value in os.environ.items():
        if any(part in name.upper() for part in _SENSITIVE_NAME_PARTS):
            yield value


def sensitive_values(extra_values: Optional[Iterable[Optional[str]]] = None) -> Sequence[str]:
    """Gather the strings to scrub: sensitive-looking env values plus ``extra_values``.

    Values shorter than ``_MIN_SECRET_LENGTH`` are skipped. The result is sorted
    longest first so a secret containing another one is masked as a whole.
    """

    candidates = set(_environment_secrets())
    candidates.update(value for value in extra_values or () if isinstance(value, str))
    kept = (value for value in candidates if len(value) >= _MIN_SECRET_LENGTH)
    return tuple(sorted(kept, key=len, reverse=True))


def _secrets_pattern(secrets: Sequence[str]) -> Optional[Pattern[str]]:
    if not secrets:
        return None
    ordered = sorted(secrets, key=len, reverse=True)
    return re.compile("|".join(re.escape(secret) for secret in ordered))


class RedactingFormatter(logging.Formatter):
    """Delegate to ``base_formatter``, then mask every known secret."""

    def __init__(
        self,
        base_formatter: Optional[logging.Formatter] = None,
        secrets: Optional[Sequence[str]] = None,
        placeholder: str = REDACTED,
    ) -> None:
        super().__init__()
        self._base = base_formatter or logging.Formatter(_LOG_FORMAT)
        self._placeholder = placeholder
        self._pattern = _secrets_pattern(tuple(secrets or ()))
        self.converter = self._base.converter

    def update_secrets(self, secrets: Sequence[str]) -> None:
        self._pattern = _secrets_pattern(tuple(secrets))

    def format(self, record: logging.LogRecord) -> str:
        text = self._base.format(record)
        if self._pattern is None:
            return text
        return self._pattern.sub(self._placeholder, text)

    def formatException(self, ei):
        return self._base.formatException(ei)

    def formatTime(self, record, datefmt=None):
        return self._base.formatTime(record, datefmt)


def _install_redaction(handler: logging.Handler, secrets: Sequence[str]) -> None:
    if isinstance(handler.formatter, RedactingFormatter):
        handler.formatter.update_secrets(secrets)
    else:
        handler.setFormatter(RedactingFormatter(handler.formatter, secrets))


def _all_handlers() -> Iterator[logging.Handler]:
    yield from logging.getLogger().handlers
    for logger_obj in logging.Logger.manager.loggerDict.values():
        if isinstance(logger_obj, logging.Logger):
            yield from logger_obj.handlers


def configure_logging(
    *,
    level: Optional[str] = None,
    extra_values: Optional[Iterable[Optional[str]]] = None,
    log_file: Optional[Path] = None,
) -> None:
    """Send log records to a file and scrub credentials from every handler.

    curses owns the terminal while the game runs, so when nothing is attached
    yet a file handler is installed on ``log_file`` (``DEFAULT_LOG_FILE`` when
    omitted). Handlers that already exist, such as pytest's capture handler,
    are left in place and only get the redacting formatter.
    """

    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        target = Path(log_file or DEFAULT_LOG_FILE)
        target.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(level=level, filename=str(target), format=_LOG_FORMAT, encoding="utf-8")
    root_logger.setLevel(level)

    secrets = sensitive_values(extra_values)
    for handler in _all_handlers():
        _install_redaction(handler, secrets)
