"""Logging setup for the household service."""

import logging

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s %(message)s"

# Client libraries that log every request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "hpack")


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Attach one stream handler to the package logger and apply ``level``.

    Calling it again only changes the level, so settings loaded at startup
    can raise or lower verbosity after the app module has been imported.
    """
    logger = logging.getLogger("aisle_be_back")
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
