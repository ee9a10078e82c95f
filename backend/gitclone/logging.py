"""Logging configuration for the gitclone service."""

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to the `gitclone` logger.

    Safe to call more than once; only the level is updated on later calls.
    """
    app_logger = logging.getLogger("gitclone")

    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        app_logger.addHandler(handler)
        # Records also reach the root logger (uvicorn, pytest's caplog).
        app_logger.propagate = True

    if isinstance(level, str):
        level = level.upper()
    app_logger.setLevel(level)
    return app_logger
