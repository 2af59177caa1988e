"""
Main entry point for the Fortune Cookie application.

Reads the environment (simulator or telegram) and launches
the appropriate binding.
"""

import asyncio
import logging
import sys

from dotenv import load_dotenv

from fortune_cookie.config.settings import Settings, get_settings
from fortune_cookie.config.themes.base import load_theme
from fortune_cookie.fortunes.store import CorpusFormatError, EmptyCorpusError, FortuneStore


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )
    # Polling noise
    logging.getLogger("httpx").setLevel(logging.WARNING)


def load_store(settings: Settings) -> FortuneStore:
    """Load the fortune corpus. Fails fast on an empty or malformed corpus."""
    return FortuneStore.from_file(settings.corpus_path)


async def run_simulator(settings: Settings, store: FortuneStore) -> None:
    """Run the desktop simulator."""
    from fortune_cookie.simulator.main import run_simulator as _run

    await _run(settings, store)


async def run_telegram(settings: Settings, store: FortuneStore) -> None:
    """Run the Telegram bot."""
    from fortune_cookie.telegram.bot import run_telegram as _run

    await _run(settings, store, theme=load_theme(settings.theme, settings.themes_path))


def main() -> None:
    """Main entry point."""
    # Load environment variables
    load_dotenv()

    settings = get_settings()
    setup_logging(settings.debug)

    logger = logging.getLogger(__name__)
    logger.info("Fortune Cookie starting...")

    try:
        store = load_store(settings)
    except (EmptyCorpusError, CorpusFormatError, OSError) as e:
        logger.error(f"Cannot load fortunes: {e}")
        sys.exit(1)

    try:
        if settings.is_simulator:
            logger.info("Running in simulator mode")
            asyncio.run(run_simulator(settings, store))
        elif settings.is_telegram:
            logger.info("Running in telegram mode")
            asyncio.run(run_telegram(settings, store))
        else:
            logger.error(f"Unknown environment: {settings.env}")
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)

    logger.info("Fortune Cookie stopped")


if __name__ == "__main__":
    main()
