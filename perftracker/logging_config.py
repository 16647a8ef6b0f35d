"""Logging setup shared by the pipeline, the probes and the tests."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s: %(message)s"

# bruit des dépendances : toujours WARNING au minimum
NOISY_LOGGERS = ("aiohttp", "redis", "sqlalchemy.engine", "uvicorn.access")


def _parse_level(level: Optional[str]) -> int:
    if not level:
        return logging.INFO
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: Optional[str] = None) -> None:
    """Configure stdout logging once; unknown level names fall back to INFO."""
    log_level = _parse_level(level)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("perftracker").setLevel(log_level)
    # une ligne par requête Riot / clé Redis en DEBUG : plafonné à INFO
    for name in ("perftracker.riot", "perftracker.cache"):
        logging.getLogger(name).setLevel(max(log_level, logging.INFO))

    logging.getLogger(__name__).info(f"Logging initialized at level: {logging.getLevelName(log_level)}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
