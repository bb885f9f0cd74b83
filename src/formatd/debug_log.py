"""Diagnostic logging to stderr.

Stdout is reserved for protocol frames, so every log record produced by the
``formatd`` package is routed to a single stderr handler.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from formatd.limits import MAX_LOG_MESSAGE_LENGTH

TRUNCATION_SUFFIX = "... [truncated]"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class TruncatingFormatter(logging.Formatter):
    """Formatter that caps the rendered message to prevent log bloat.

    Request bodies can be arbitrarily large and several error messages embed
    them verbatim, so the message part is cut at ``max_length`` characters.
    """

    def __init__(self, fmt: str | None = None, *, max_length: int = MAX_LOG_MESSAGE_LENGTH) -> None:
        super().__init__(fmt)
        self._max_length = max_length

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        if len(record.message) > self._max_length:
            record.message = record.message[: self._max_length] + TRUNCATION_SUFFIX
        return super().formatMessage(record)


_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO", *, stream: TextIO | None = None) -> logging.Logger:
    """Attach the stderr handler to the ``formatd`` logger.

    This is idempotent - later calls only adjust the level.
    """
    global _handler

    package_logger = logging.getLogger("formatd")
    package_logger.setLevel(level)
    if _handler is None:
        _handler = logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(TruncatingFormatter(LOG_FORMAT))
        package_logger.addHandler(_handler)
        package_logger.propagate = False
    return package_logger


def reset_logging() -> None:
    """Detach the handler installed by ``setup_logging``."""
    global _handler

    if _handler is None:
        return
    package_logger = logging.getLogger("formatd")
    package_logger.removeHandler(_handler)
    package_logger.propagate = True
    _handler = None


__all__ = ["TRUNCATION_SUFFIX", "TruncatingFormatter", "reset_logging", "setup_logging"]
