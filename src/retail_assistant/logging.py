"""Logging configuration using loguru."""

import sys
from pathlib import Path

from loguru import logger
from loguru._logger import Logger as LoguruLogger

from retail_assistant.config import settings


def get_logger(name: str) -> LoguruLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured logger instance
    """
    # Remove default logger to avoid duplicates
    logger.remove()

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>",
        level=settings.log_level,
        colorize=True,
    )

    # Everything, including routing records
    logger.add(
        log_dir / "assistant.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
        "{name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="10 MB",
        retention="7 days",
        compression="zip",
    )

    logger.add(
        log_dir / "errors.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
        "{name}:{function}:{line} - {message}",
        level="ERROR",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
    )

    # One line per tier visited; records are tagged by ResolutionRouter with bind(tier=...)
    logger.add(
        log_dir / "routing.log",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[tier]: <10} | {message}",
        level="DEBUG",
        filter=lambda record: "tier" in record["extra"],
        rotation="10 MB",
        retention="7 days",
        compression="zip",
    )

    bound_logger = logger.bind(name=name)
    return bound_logger  # type: ignore[return-value]
