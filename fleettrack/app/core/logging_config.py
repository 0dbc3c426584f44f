"""
Logging setup for the FleetTrack backend.

All modules log through named children of the "fleettrack" logger.
"""

import logging

LOGGER_NAME = "fleettrack"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a single stream handler to the application logger.

    Safe to call more than once (e.g. on every app startup in tests).
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    # Avoid duplicated handlers
    if logger.handlers:
        return logger

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)

    return logger
