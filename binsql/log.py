"""Logging setup for the binsql logger hierarchy"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Mapping, Optional

LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(name)s | %(message)s"
DATE_FORMAT = "%H:%M:%S"

logger = logging.getLogger("binsql")


def setup_logging(interactive: bool, environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Configure the ``binsql`` logger.

    BINSQL_LOG_LEVEL picks the level (default WARNING) and BINSQL_LOG_FILE
    adds a rotating file. The full-screen console must never see log output,
    so in interactive mode nothing goes to stderr.
    """
    env = os.environ if environ is None else environ
    level_name = env.get("BINSQL_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    logger.handlers.clear()
    logger.setLevel(level)
    logger.propagate = False

    log_file = env.get("BINSQL_LOG_FILE")
    if log_file:
        # 10MB max, 3 backups
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=3)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not interactive:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
