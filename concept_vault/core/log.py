"""Process-wide logging setup, called once by each entry point."""
from __future__ import annotations
import logging

from concept_vault.core.config import LOG_LEVEL


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
