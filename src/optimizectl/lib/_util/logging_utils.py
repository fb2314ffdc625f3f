"""Logging setup for the command line front end.

Library modules only create loggers (``logging.getLogger(__name__)``); the
handlers are installed here, once, by the CLI.
"""

import logging
import sys

_FORMAT = "%(levelname)s %(name)s: %(message)s"


def verbosity_level(verbose: int) -> int:
    """Map the number of ``-v`` flags to a logging level."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(verbose: int = 0) -> None:
    """Send optimizectl log records to stderr at the level chosen by *verbose*."""
    logger = logging.getLogger("optimizectl")
    logger.setLevel(verbosity_level(verbose))
    if not any(getattr(h, "_optimizectl", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._optimizectl = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
