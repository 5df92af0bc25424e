"""Process-wide settings and logging, loaded once at import."""

from __future__ import annotations

import logging

from dotenv import load_dotenv

from config import Settings
from logging_config import logger, setup_logging

load_dotenv()

try:
    settings = Settings()
except ValueError as exc:
    logging.basicConfig(level=logging.ERROR, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("thesis_proxy").error("Invalid configuration: %s", exc)
    raise

setup_logging(settings.debug)

logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)
