"""
Logging configuration for tokenwatch

Provides:
- Console and file logging
- Log rotation
- Configurable log levels
"""

import sys
from typing import Any, Dict

from loguru import logger

LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"

# Replace the default handler with a plain console handler
logger.remove()
logger.add(sys.stderr, format=LOG_FORMAT, level="INFO", enqueue=True)


def setup_logger(config: Dict[str, Any] = None) -> None:
    """
    Configure logging sinks

    Args:
        config: Logging configuration with:
            - level: Log level
            - file: Log file path
            - rotation: Log rotation setting
            - retention: Log retention setting
    """
    if not config:
        return

    logger.remove()

    logger.add(
        sys.stderr, format=LOG_FORMAT, level=config.get("level", "INFO"), enqueue=True
    )

    if log_file := config.get("file"):
        logger.add(
            log_file,
            format=LOG_FORMAT,
            level=config.get("level", "INFO"),
            rotation=config.get("rotation", "500 MB"),
            retention=config.get("retention", "7 days"),
            compression="zip",
            enqueue=True,
        )
