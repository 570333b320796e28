"""Logging setup shared by the API process and CLI helpers."""
import logging

from app.core.config import settings


def setup_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(levelname)s:%(name)s: %(message)s",
    )
    logging.getLogger("app").setLevel(level)
