"""
utils.py
--------
Logging setup, a timing decorator and small helpers shared by the
walkthrough.
"""

import os
import logging
import time
import functools
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT  = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_NAMESPACES = ("main", "marketwalk")


def _file_handler(log_dir: str, fmt: logging.Formatter) -> logging.FileHandler:
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d")
    fh = logging.FileHandler(os.path.join(log_dir, f"marketwalk_{stamp}.log"))
    fh.setFormatter(fmt)
    return fh


def get_logger(name: str, log_dir: Optional[str] = None,
               level: str = "INFO") -> logging.Logger:
    """
    Named logger writing to stdout and, when ``log_dir`` is given, to a
    daily file ``marketwalk_YYYYMMDD.log``.

    Parameters
    ----------
    name    : Logger name (typically the module __name__).
    log_dir : Directory for log files. None keeps logging console-only.
    level   : "DEBUG", "INFO", "WARNING" or "ERROR".
    """
    logger = logging.getLogger(name)
    if logger.handlers:          # already configured by an earlier import
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    fmt = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    logger.addHandler(console)
    if log_dir:
        logger.addHandler(_file_handler(log_dir, fmt))
    return logger


def set_level(level: str) -> None:
    """Apply ``level`` to the entry-point logger and every package logger."""
    lvl = getattr(logging, level.upper(), logging.INFO)
    for name in list(logging.root.manager.loggerDict):
        if name.split(".")[0] in _NAMESPACES:
            logging.getLogger(name).setLevel(lvl)


def timeit(func):
    """Log the wall-clock duration of each call at DEBUG level."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        t0 = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            logging.getLogger(func.__module__).debug(
                "%s took %.3f s", func.__qualname__, time.perf_counter() - t0
            )
    return wrapper


def preview(series, n: int = 6) -> str:
    """First ``n`` rows of a TimeSeries as a plain-text table for log output."""
    return series.head(n).to_frame().to_string(float_format=lambda v: f"{v:,.4f}")


def ensure_dir(path: str) -> str:
    os.makedirs(path, exist_ok=True)
    return path
