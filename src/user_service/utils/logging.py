"""
loguru sink setup.

loguru installs a DEBUG-level stderr sink on import; 'configure_logging'
replaces it with a single sink at the configured level.
"""

import sys

from loguru import logger

LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | {name}:{line} - {message}"


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
