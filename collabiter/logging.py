"""Logging for the collabiter CLI and library.

Console records go to stderr because several commands print JSON on stdout.
The optional file sink lives under the manager home and may be shared by
several agent processes, so its records carry the process id.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "collabiter"
_CONSOLE_FORMAT = "[collabiter] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s pid=%(process)d %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``collabiter.<name>``, or the package logger when ``name`` is empty."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        # Appends, so concurrent agents interleave whole records.
        sink = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        sink.setLevel(level)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


__all__ = ["configure_logging", "get_logger"]
