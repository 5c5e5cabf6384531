"""
Utility functions for receipt line parsing
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def format_processing_time(milliseconds: int) -> str:
    """
    Format processing time in human-readable format

    Args:
        milliseconds: Time in milliseconds

    Returns:
        Formatted string (e.g., "1.23s", "456ms")
    """
    if milliseconds < 1000:
        return f"{milliseconds}ms"
    else:
        seconds = milliseconds / 1000
        return f"{seconds:.2f}s"


def ensure_directory(dir_path: str) -> str:
    """
    Ensure directory exists, create if it doesn't

    Returns:
        Absolute path to directory
    """
    path = Path(dir_path)
    path.mkdir(parents=True, exist_ok=True)
    return str(path.absolute())


# Logging setup helper
def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """
    Setup logging configuration

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to a rotating log file
    """
    # Remove default handler
    logger.remove()

    # Console goes to stderr so JSON on stdout stays clean
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=level
    )

    if log_file:
        ensure_directory(str(Path(log_file).parent))
        logger.add(
            log_file,
            rotation="10 MB",
            retention="30 days",
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
        )

    logger.debug("Logging initialized")
