"""
Logging setup for the command line runner.

Library modules only create loggers under the ``treelox`` hierarchy;
handlers are installed here and nowhere else.
"""

import logging
from typing import Optional, Union

LOGGER_NAME = "treelox"
COMPONENTS = ("lexer", "parser", "interpreter", "cli")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: Union[int, str] = logging.WARNING,
                  log_file: Optional[str] = None) -> logging.Logger:
    """Configure the treelox logger with a console handler and an optional file handler."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    # Child loggers for components
    for component in COMPONENTS:
        child = logging.getLogger(f"{LOGGER_NAME}.{component}")
        child.setLevel(level)
        child.propagate = True

    logger.propagate = False
    return logger
