"""Logging helpers. Everything logs under ``crypto_voice_lib`` and stays silent until an application opts in."""

import logging
import sys
from typing import IO, Optional

LIBRARY_LOGGER = "crypto_voice_lib"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_CONSOLE_HANDLER = "crypto_voice_lib.console"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the library logger, or a child of it.

    Module paths inside the package (``get_logger(__name__)``) are used as they
    are; any other name is nested under the library logger.
    """
    if not name or name == LIBRARY_LOGGER:
        return logging.getLogger(LIBRARY_LOGGER)
    if name.startswith(f"{LIBRARY_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LIBRARY_LOGGER}.{name}")


def setup_logging(
    level: int | str = logging.INFO,
    format_str: str = DEFAULT_FORMAT,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """Send library logs to a console stream.

    Meant for applications and the command line entry point. Logs go to stderr
    by default so that stdout carries nothing but the spoken answer. A second
    call replaces the handler installed by the first one.

    Args:
        level: Logging level, as an int or a name such as ``"DEBUG"``.
        format_str: Log record format.
        stream: Target stream. Defaults to ``sys.stderr``.

    Returns:
        The installed handler.
    """
    logger = logging.getLogger(LIBRARY_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    for existing in list(logger.handlers):
        if existing.get_name() == _CONSOLE_HANDLER:
            logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_CONSOLE_HANDLER)
    handler.setFormatter(logging.Formatter(format_str))
    logger.addHandler(handler)
    return handler


logging.getLogger(LIBRARY_LOGGER).addHandler(logging.NullHandler())
