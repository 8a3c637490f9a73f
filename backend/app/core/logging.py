"""Loguru sink configuration shared by the API and the batch pipelines."""

from __future__ import annotations

import sys

from loguru import logger

_HUMAN_FORMAT = (
    "<green>{time:HH:mm:ss}</green> <level>{level: <8}</level> "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> {message}"
)


def configure_logging(level: str = "INFO", *, json: bool = False) -> None:
    """Replace loguru's default stderr sink.

    Development runs get colourised single-line output; production runs emit one
    JSON document per record so log aggregation can index the bound context.
    """

    logger.remove()
    if json:
        logger.add(sys.stderr, level=level, serialize=True, backtrace=False, diagnose=False)
    else:
        logger.add(sys.stderr, level=level, format=_HUMAN_FORMAT, colorize=True)
