"""Loguru sink configuration for the CLI and long-running callers."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from loguru import logger

from src.utils.config import LoggingConfig

TEXT_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def setup_logging(config: LoggingConfig | None = None, *, verbose: bool = False) -> None:
    """Replace Loguru's default sink with the configured ones."""
    config = config or LoggingConfig()
    level = "DEBUG" if verbose else os.getenv("KG_ENTITY_LOG_LEVEL", config.level).upper()
    serialize = config.format == "json"

    logger.remove()
    logger.add(sys.stderr, level=level, format=TEXT_FORMAT, serialize=serialize)

    if config.file:
        target = Path(config.file)
        target.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(target),
            level=level,
            rotation=config.rotation,
            retention=config.retention,
            serialize=serialize,
        )
