# listsearch/logger.py
import logging

from .config import LOG_LEVEL

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("listsearch")
    if logger.handlers:
        return logger
    logger.setLevel(LOG_LEVEL.upper())

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return logger
