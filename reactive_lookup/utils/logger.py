"""Logging setup for reactive_lookup."""

import logging
import sys

LOGGER_NAME = "reactive_lookup"

# Results arrive on worker threads, so the thread name is part of every line
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"


def _resolve_level(level: int | str) -> int:
    """Accept logging.DEBUG or "debug"; unknown names mean INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(name: str = LOGGER_NAME, level: int | str = logging.INFO) -> logging.Logger:
    """
    Attach a stderr handler to the named logger once.

    Streamlit re-runs app.py on every interaction; later calls return the
    already configured logger unchanged.
    """
    log = logging.getLogger(name)
    if log.handlers:
        return log
    log.setLevel(_resolve_level(level))
    h = logging.StreamHandler(sys.stderr)
    h.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    log.addHandler(h)
    return log


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return the application logger. Use after setup_logger has been called."""
    return logging.getLogger(name)
