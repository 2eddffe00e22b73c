"""Module logger setup shared by the application."""
import logging


def get_logger(name: str) -> logging.Logger:
    """Return a module logger printing ``LEVEL: message`` to stderr.

    Args:
        name: Logger name, usually ``__name__``
    """
    log = logging.getLogger(name)
    log.setLevel(logging.DEBUG)
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        log.addHandler(handler)
    return log
