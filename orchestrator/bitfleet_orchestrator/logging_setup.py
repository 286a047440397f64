"""Console logging for the orchestrator entrypoint."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_RESET = "\033[0m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_BLUE = "\033[34m"
_GREEN = "\033[32m"


class ConsoleFormatter(logging.Formatter):
    """Render ``YYYY-MM-DD HH:MM:SS [LEVEL] message``.

    With ``colour`` enabled errors and warnings are coloured entirely, info
    and debug records only get a coloured level tag.
    """

    def __init__(self, *, colour: bool = False) -> None:
        super().__init__(datefmt=DATE_FORMAT)
        self._colour = colour

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, self.datefmt)
        tag = f"[{record.levelname.upper()}]"
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if self._colour:
            if record.levelno >= logging.ERROR:
                tag, message = _paint(tag, _RED), _paint(message, _RED)
            elif record.levelno >= logging.WARNING:
                tag, message = _paint(tag, _YELLOW), _paint(message, _YELLOW)
            elif record.levelno >= logging.INFO:
                tag = _paint(tag, _BLUE)
            else:
                tag = _paint(tag, _GREEN)
        return f"{timestamp} {tag} {message}"


def _paint(text: str, colour: str) -> str:
    return f"{colour}{text}{_RESET}"


def configure_logging(level: str | int = "INFO", *, stream: TextIO | None = None) -> logging.Handler:
    """Attach a console handler to the package logger and return it."""

    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ConsoleFormatter(colour=stream.isatty()))
    logger = logging.getLogger("bitfleet_orchestrator")
    for existing in list(logger.handlers):
        if getattr(existing, "_bitfleet_console", False):
            logger.removeHandler(existing)
    handler._bitfleet_console = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


__all__ = ["ConsoleFormatter", "DATE_FORMAT", "configure_logging"]
