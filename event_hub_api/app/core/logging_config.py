"""
Basic logging configuration for the application.

``setup_logging`` attaches a console handler (and a file handler when
``LOG_FILE`` is configured) to the root logger.  Every record carries
the timestamp, logger name, level and message.  Configuration happens
once per process; repeated calls are ignored.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

# Third-party loggers that are too chatty at INFO for day-to-day use.
NOISY_LOGGERS = ("uvicorn.access", "httpx")


def setup_logging(
    level: str = "INFO",
    logfile: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Configure the root logger.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive; unknown names fall back to ``INFO``.
    logfile : Optional[str]
        Path of a file to mirror log output to.  Resolved relative to
        the current working directory.
    quiet : Iterable[str]
        Logger names raised to ``WARNING`` unless ``level`` is ``DEBUG``.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if numeric_level > logging.DEBUG:
        for name in quiet:
            logging.getLogger(name).setLevel(logging.WARNING)
