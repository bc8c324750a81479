import curses
import logging
import sys
from typing import Optional, Sequence

from guess_game.handlers import GameApp
from guess_game.rendering import run
from shared.logging_utils import configure_logging
from shared.settings import ConfigError, load_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TERMINAL_ERROR = 1
EXIT_CONFIG_ERROR = 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Resolve configuration, then hand the terminal to the game loop."""

    try:
        settings = load_settings(argv)
    except ConfigError as exc:
        configure_logging()
        logger.error("Invalid configuration: %s", exc)
        print(f"randy-ng: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(
        level=settings.log_level,
        extra_values=[settings.api_key],
        log_file=settings.log_file,
    )
    logger.info("Starting randy-ng with model %s against %s", settings.model, settings.base_url)

    app = GameApp(settings)
    try:
        curses.wrapper(run, app)
    except KeyboardInterrupt:
        logger.info("Interrupted by the user")
    except curses.error as exc:
        logger.error("Terminal error: %s", exc)
        print(f"Terminal error: {exc}", file=sys.stderr)
        return EXIT_TERMINAL_ERROR

    logger.info("Session finished with score %s", app.score)
    print(f"Thanks for playing! Final score: {app.score}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
