"""
Logging configuration for the stock tracker entry points (API and CLI).
"""

import sys
from loguru import logger


def setup_logger(log_file: str = "logs/stocktrack.log", level: str = "DEBUG", rotation: str = "50 MB", retention: str = "14 days", compression: str = "zip") -> None:
    """
    Configure loguru with a console sink and a rotating file sink.

    Args:
        log_file: Path to the log file
        level: Minimum log level for file output
        rotation: When to rotate the log file (e.g., "50 MB", "1 day")
        retention: How long to keep old log files
        compression: Compression format for rotated files
    """
    logger.remove()

    # Console: INFO and up, coloured
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level="INFO",
    )

    logger.add(
        log_file,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level=level,
        rotation=rotation,
        retention=retention,
        compression=compression,
        encoding="utf-8",
    )

