"""
Utility functions and helpers.

Components:
    - setup_logging: Configure the ``reask`` logger with a Rich console handler

Example:
    ```python
    from reask.utils import setup_logging

    setup_logging(level="DEBUG", log_file="reask.log")
    ```
"""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(filename)s:%(lineno)d - %(funcName)s] %(message)s"


def setup_logging(
    level: Union[int, str] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure logging for the ``reask`` package.

    Args:
        level: Log level name or number
        log_file: Optional file that receives the same records, plain-formatted

    Returns:
        logging.Logger: The configured ``reask`` logger
    """
    logger = logging.getLogger("reask")
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(RichHandler(rich_tracebacks=True, show_path=False))

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


__all__ = ["setup_logging", "LOG_FORMAT"]
