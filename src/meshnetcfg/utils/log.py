"""Logging setup: leveled, timestamped messages to the console and a log file."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

from meshnetcfg.utils.terminal import BOLD_RED, CYAN, GREEN, RED, YELLOW, colorize, use_color

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVEL_COLORS = {
    logging.DEBUG: CYAN,
    logging.INFO: GREEN,
    logging.WARNING: YELLOW,
    logging.ERROR: RED,
    logging.CRITICAL: BOLD_RED,
}


class ConsoleFormatter(logging.Formatter):
    """Formatter that colors the level name when writing to a terminal."""

    def __init__(self, color: bool) -> None:
        super().__init__(LOG_FORMAT, DATE_FORMAT)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        if not self.color:
            return super().format(record)
        original = record.levelname
        record.levelname = colorize(original, _LEVEL_COLORS.get(record.levelno, ""), True)
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(
    level: str | int = logging.INFO,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure the ``meshnetcfg`` logger.

    Replaces any handlers from an earlier call. If the log file cannot
    be opened (e.g. /var/log without root) logging continues on the
    console only.
    """
    logger = logging.getLogger("meshnetcfg")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    logger.propagate = False

    stream = stream or sys.stderr
    console = logging.StreamHandler(stream)
    console.setFormatter(ConsoleFormatter(color=use_color(stream)))
    logger.addHandler(console)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot write log file %s (%s); logging to console only", log_file, e)
        else:
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
            logger.addHandler(file_handler)

    return logger
