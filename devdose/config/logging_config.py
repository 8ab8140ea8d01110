"""
Logging setup for the DevDose pipeline and API.

Every module logs through ``logging.getLogger(__name__)``; this module only
attaches handlers to the package logger so records from all stages end up
on the console and in one rotating log file.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(
    log_dir: Path | None = None,
    level: int = logging.INFO,
    log_file: str = "devdose.log",
) -> logging.Logger:
    """
    Attach console and (optionally) file handlers to the ``devdose`` logger.

    Repeated calls are no-ops once handlers exist, so every CLI entrypoint
    can call this unconditionally.
    """
    package_logger = logging.getLogger("devdose")
    package_logger.setLevel(level)

    if package_logger.handlers:
        return package_logger

    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    stream = logging.StreamHandler(sys.stdout)
    stream.setLevel(level)
    stream.setFormatter(formatter)
    package_logger.addHandler(stream)

    if log_dir is None:
        return package_logger

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            filename=log_dir / log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
    except OSError as exc:
        package_logger.warning("File logging disabled (%s): %s", log_dir, exc)
        return package_logger

    rotating.setLevel(level)
    rotating.setFormatter(formatter)
    package_logger.addHandler(rotating)
    return package_logger
