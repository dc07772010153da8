# pos_analytics/utilities/log.py
from __future__ import annotations

from pathlib import Path
from typing import Optional
import logging


LOG_LEVEL = logging.INFO

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str = "pos_analytics") -> logging.Logger:
    """
    Returns a configured logger (console).
    Safe to call multiple times: handlers are added only once.
    """
    logger = logging.getLogger(name)

    if getattr(logger, "_configured", False):
        return logger

    logger.setLevel(LOG_LEVEL)
    logger.propagate = False

    ch = logging.StreamHandler()
    ch.setLevel(LOG_LEVEL)
    ch.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    logger.addHandler(ch)

    logger._configured = True  # type: ignore[attr-defined]
    return logger


def setup_logger(
    name: str,
    *,
    verbose: bool,
    log_to_file: bool,
    log_file_path: Optional[Path] = None,
    debug: bool = False,
) -> logging.Logger:
    """
    Create a logger for a CLI run:

    - verbose=True  -> log to stderr
    - log_to_file=True -> also log to log_file_path
    - verbose=False and log_to_file=False -> logger disabled (no output)
    """
    logger = logging.getLogger(name)

    # reset handlers to avoid duplicates (tests, repeated runs)
    for h in list(logger.handlers):
        logger.removeHandler(h)

    if not verbose and not log_to_file:
        logger.addHandler(logging.NullHandler())
        logger.propagate = False
        logger.disabled = True
        logger._configured = True  # type: ignore[attr-defined]
        return logger

    level = logging.DEBUG if debug else LOG_LEVEL
    logger.disabled = False
    logger.setLevel(level)
    logger.propagate = False

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    if verbose:
        sh = logging.StreamHandler()
        sh.setFormatter(fmt)
        logger.addHandler(sh)

    if log_to_file:
        if log_file_path is None:
            raise ValueError("log_file_path is required when log_to_file=True")
        log_file_path = Path(log_file_path)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file_path, encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    logger._configured = True  # type: ignore[attr-defined]
    return logger
