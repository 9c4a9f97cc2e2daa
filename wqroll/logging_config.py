"""
Logging Configuration
=====================

Console logging for every module, plus an optional per-run log file.
Modules call get_logger(__name__); the entry point calls setup_logging once.
"""

import logging
import os
from datetime import datetime

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ROOT_NAME = "wqroll"


def setup_logging(log_level="INFO", enable_file_logging=False, log_dir="./logs"):
    """
    Configure the package logger.

    Args:
        log_level: Level name for the console handler (e.g. "INFO", "DEBUG")
        enable_file_logging: Also write a DEBUG-level log file under log_dir
        log_dir: Directory for log files

    Returns:
        logging.Logger: The configured package logger
    """
    logger = logging.getLogger(_ROOT_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    console = logging.StreamHandler()
    console.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console)

    if enable_file_logging:
        os.makedirs(log_dir, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        file_handler = logging.FileHandler(os.path.join(log_dir, f"wqroll_{stamp}.log"), mode="w")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name):
    """Return a logger under the package hierarchy."""
    if name == _ROOT_NAME or name.startswith(_ROOT_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
