"""Resolve command-line flags and environment variables into game settings."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

DEFAULT_MODEL = "qwen/qwen3-32b:free"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PERSONA = "cowboy"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when the resolved configuration cannot be used to start the game."""


@dataclass(frozen=True, slots=True)
class Settings:
    """Already-resolved startup configuration."""

    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    persona: str = DEFAULT_PERSONA
    log_file: Optional[Path] = None
    log_level: str = "INFO"

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    @property
    def models_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/models"


def build_parser(environ: Mapping[str, str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="randy-ng",
        description="Guess the number and let a language model react to every attempt.",
    )
    parser.add_argument(
        "-m",
        "--model",
        default=environ.get("OPENROUTER_MODEL", DEFAULT_MODEL),
        metavar="MODEL_NAME",
        help="OpenRouter model id used for reactions (env: OPENROUTER_MODEL).",
    )
    parser.add_argument(
        "--api-key",
        default=environ.get("OPENROUTER_API_KEY"),
        metavar="YOUR_API_KEY",
        help="OpenRouter API key (env: OPENROUTER_API_KEY).",
    )
    parser.add_argument(
        "--base-url",
        default=environ.get("OPENROUTER_BASE_URL", DEFAULT_BASE_URL),
        help="Base URL of the OpenAI-compatible API (env: OPENROUTER_BASE_URL).",
    )
    parser.add_argument(
        "--timeout",
        default=environ.get("RANDY_TIMEOUT", str(DEFAULT_TIMEOUT)),
        help="Seconds to wait for a reaction before giving up (env: RANDY_TIMEOUT).",
    )
    parser.add_argument(
        "--persona",
        default=environ.get("RANDY_PERSONA", DEFAULT_PERSONA),
        help="Character the model should play when reacting (env: RANDY_PERSONA).",
    )
    parser.add_argument(
        "--log-file",
        default=environ.get("RANDY_LOG_FILE"),
        help="Where to write the log, the terminal is taken by the game (env: RANDY_LOG_FILE).",
    )
    parser.add_argument(
        "--log-level",
        default=environ.get("LOG_LEVEL", "INFO"),
        help="Logging level (env: LOG_LEVEL).",
    )
    return parser


def load_settings(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Parse ``argv`` with environment fallbacks and validate the result."""

    env = os.environ if environ is None else environ
    args = build_parser(env).parse_args(argv)

    api_key = (args.api_key or "").strip()
    if not api_key:
        raise ConfigError("An OpenRouter API key is required: pass --api-key or set OPENROUTER_API_KEY.")

    try:
        timeout = float(args.timeout)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid timeout value: {args.timeout!r}") from exc
    if not timeout > 0:
        raise ConfigError(f"Timeout must be positive, got {timeout}")

    log_level = str(args.log_level).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"Unknown log level: {args.log_level!r}")

    model = (args.model or "").strip() or DEFAULT_MODEL
    return Settings(
        api_key=api_key,
        model=model,
        base_url=args.base_url,
        timeout=timeout,
        persona=(args.persona or "").strip() or DEFAULT_PERSONA,
        log_file=Path(args.log_file) if args.log_file else None,
        log_level=log_level,
    )


__all__ = ["ConfigError", "Settings", "load_settings", "build_parser", "DEFAULT_MODEL"]
