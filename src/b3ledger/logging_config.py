"""Logging setup for the command line."""

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Union[str, int] = logging.WARNING) -> logging.Logger:
    """Install a single stream handler on the b3ledger logger.

    Calling it again updates the level and rebinds the handler to the
    current stderr.
    """
    logger = logging.getLogger("b3ledger")
    logger.setLevel(level)
    for handler in logger.handlers:
        if getattr(handler, "_b3ledger", False):
            handler.setStream(sys.stderr)
            break
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._b3ledger = True
        logger.addHandler(handler)
    return logger
