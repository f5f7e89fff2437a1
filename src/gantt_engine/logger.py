"""Scheduler logging with verbosity levels between the standard ones.

Verbosity 1 reports committed schedule entries, verbosity 2 adds the
per-task checks (which tasks are considered, skipped or reported as
unschedulable) and verbosity 3 adds per-day ledger allocations.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

CHANGES_LEVEL = 25  # Between INFO and WARNING
CHECKS_LEVEL = 15  # Between DEBUG and INFO

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0
VERBOSITY_CHANGES = 1
VERBOSITY_CHECKS = 2
VERBOSITY_DEBUG = 3

_LEVELS = {
    VERBOSITY_SILENT: logging.ERROR,
    VERBOSITY_CHANGES: CHANGES_LEVEL,
    VERBOSITY_CHECKS: CHECKS_LEVEL,
    VERBOSITY_DEBUG: logging.DEBUG,
}

LOGGER_NAME = "gantt_engine"


class EngineLogger(logging.Logger):
    """Logger with ``changes()`` and ``checks()`` alongside ``debug()``."""

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a committed scheduling decision."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a per-task check, skip or failure."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> EngineLogger:
    """Get the shared engine logger."""
    logging.setLoggerClass(EngineLogger)
    logger = logging.getLogger(LOGGER_NAME)
    assert isinstance(logger, EngineLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Send engine log messages up to ``verbosity`` to ``stream``.

    Replaces any handler installed by an earlier call. Verbosity above
    VERBOSITY_DEBUG is treated as debug.

    Args:
        verbosity: 0=errors only, 1=schedule entries, 2=checks, 3=allocations
        stream: Output stream, sys.stderr when omitted
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_LEVELS[max(VERBOSITY_SILENT, min(verbosity, VERBOSITY_DEBUG))])

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    # Plain messages; the verbosity already says what kind they are
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and go back to errors only."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)
