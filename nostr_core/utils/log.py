"""
Logging setup for nostr_core.

Library modules only call ``logging.getLogger(__name__)``; applications
(including the CLI) call configure_logging once to get JSON-line output.
"""

import json
import logging
import os
import sys
import time
from typing import Optional, Union

LOGGER_NAME = "nostr_core"
LOG_LEVEL_ENV = "NOSTR_CORE_LOG_LEVEL"
LOG_FILE_ENV = "NOSTR_CORE_LOG_FILE"
DEFAULT_LOG_LEVEL = "WARNING"

_FORMAT = json.dumps({
    "ts": "%(asctime)s",
    "level": "%(levelname)s",
    "name": "%(name)s",
    "msg": "%(message)s"
})


def resolve_level(level: Union[str, int, None]) -> int:
    """Turn a level name (or None, meaning the environment) into a logging level."""
    if isinstance(level, int):
        return level
    name = (level or os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)).upper()
    return getattr(logging, name, logging.WARNING)


def configure_logging(
    level: Union[str, int, None] = None,
    to_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the package logger with a JSON formatter on stderr.

    Calling it again only updates the level, handlers are added once.

    Args:
        level: Level name or number; defaults to $NOSTR_CORE_LOG_LEVEL or WARNING
        to_file: Optional path of an additional log file

    Returns:
        logging.Logger: The ``nostr_core`` logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(level))

    if not logger.handlers:
        formatter = logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%dT%H:%M:%SZ")
        formatter.converter = time.gmtime

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        to_file = to_file or os.getenv(LOG_FILE_ENV)
        if to_file:
            directory = os.path.dirname(to_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            file_handler = logging.FileHandler(to_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
