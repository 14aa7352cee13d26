from __future__ import annotations

import logging
import sys
from typing import TextIO

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
_HANDLER_NAME = "chopsticks-console"


def configure_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Attach one console handler to the package logger and set its level.

    Calling this again replaces the handler rather than stacking a second one.
    """
    logger = logging.getLogger("chopsticks")
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
