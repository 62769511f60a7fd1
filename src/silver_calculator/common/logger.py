"""Shared logger for the evaluator, the calculator session and the batch runner."""
import logging
import sys


LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _build_logger(name: str = "silver_calculator") -> logging.Logger:
    """
    Create the package logger with a single stream handler.

    Calling it twice returns the same logger without stacking handlers.

    :param str name: Logger name

    :return: Configured logger
    :rtype: logging.Logger
    """
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
        log.setLevel(logging.INFO)
    return log


logger: logging.Logger = _build_logger()
