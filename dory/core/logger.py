import os
import sys

from loguru import logger

from dory.core.constants import LOG_FILE

STDERR_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
DEBUG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"

# Configure logger
logger.remove()  # Remove default handler

if sys.stderr:
    logger.add(sys.stderr, format=STDERR_FORMAT, level="INFO")


def setup_logging(debug: bool = False) -> None:
    """
    Reconfigure sinks for a CLI run.

    In debug mode stderr gets DEBUG records with source locations and a
    rotating log file is added under TMPDIR.
    """
    logger.remove()

    if sys.stderr:
        logger.add(
            sys.stderr,
            format=DEBUG_FORMAT if debug else STDERR_FORMAT,
            level="DEBUG" if debug else "INFO",
        )

    if debug:
        os.makedirs(os.path.dirname(LOG_FILE), exist_ok=True)
        logger.add(
            LOG_FILE,
            rotation="1 MB",
            retention="10 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG",
        )
