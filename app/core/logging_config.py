"""
Logging setup - one stream handler for every notebridge.* logger.

Call configure_logging() once at startup (app/main.py does this).
Modules only ever do:

    logger = logging.getLogger("notebridge.<area>")
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a console handler to the "notebridge" logger.

    Safe to call more than once; the handler is only added the first time.
    """
    logger = logging.getLogger("notebridge")
    logger.setLevel(level.upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
