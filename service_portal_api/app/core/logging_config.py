"""
Logging configuration for the Service Portal API.

``setup_logging`` attaches a console handler, and optionally a file
handler, to the root logger.  The ``service_portal_api`` logger and the
uvicorn loggers are routed through those handlers, so application,
server and access messages share one format and one log file.
"""

import logging
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "service_portal_api"
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure application and server logging.

    The package and uvicorn loggers always get ``level``.  Handlers
    are attached to the root logger only if it has none yet, so calling
    this once per ``create_app`` (or under pytest) does not duplicate
    output.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive; unknown names fall back to ``INFO``.
    logfile : Optional[str]
        Path to a file to log messages to.  If omitted, no file
        handler is added.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.getLogger(PACKAGE_LOGGER).setLevel(numeric_level)
    for name in UVICORN_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
        server_logger.setLevel(numeric_level)

    root = logging.getLogger()
    if root.handlers:
        return
    root.setLevel(numeric_level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
