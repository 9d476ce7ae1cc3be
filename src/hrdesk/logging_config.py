"""Logging setup for the service and the admin CLI."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a single stream handler to the ``hrdesk`` logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    logger = logging.getLogger("hrdesk")
    logger.setLevel(level)
    if not any(getattr(h, "_hrdesk", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._hrdesk = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
