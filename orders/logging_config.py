"""JSON logging setup for the ``orders`` logger tree."""

import logging

from pythonjsonlogger import jsonlogger

from .logging_filters import RequestIdFilter

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a JSON stream handler to the ``orders`` logger once.

    Calling it again only updates the level.
    """
    logger = logging.getLogger("orders")
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
        h.addFilter(RequestIdFilter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger
