"""Logging setup for VisionVoice.

Everything logs through module loggers under the ``visionvoice`` namespace.
Console output goes to stderr so the interactive session on stdout stays
readable; the full record goes to a rotating file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from visionvoice.core.constants import LOGS_DIR

LOG_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_file: str = "visionvoice.log",
    log_dir: Optional[Union[str, Path]] = None,
    console: bool = True,
    max_bytes: int = 5_242_880,
    backup_count: int = 3,
) -> logging.Logger:
    """Configure the ``visionvoice`` logger. Safe to call more than once."""
    directory = Path(log_dir) if log_dir else LOGS_DIR
    directory.mkdir(parents=True, exist_ok=True)

    app_logger = logging.getLogger("visionvoice")
    app_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    app_logger.propagate = False

    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(formatter)
        app_logger.addHandler(stream)

    file_handler = RotatingFileHandler(
        directory / log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    app_logger.addHandler(file_handler)

    return app_logger
