"""Fatal error type, warning channel, and logging setup for course processing.

Processing has two severities. Fatal conditions raise
:class:`CourseProcessingError` and abort the run; everything else is reported
through :class:`Diagnostics`, which logs each warning on the package logger and
keeps the messages so callers and tests can inspect them after a run.

Examples
--------
>>> from course_processor.diagnostics import Diagnostics
>>> diagnostics = Diagnostics()
>>> diagnostics.warn("Anchor 'intro' redefined in basics/start/step02.html")
>>> diagnostics.warnings
["Anchor 'intro' redefined in basics/start/step02.html"]
"""

from __future__ import annotations

import dataclasses as dc
import logging

LOG = logging.getLogger("course_processor")
LOG_FORMAT = "%(levelname)s: %(message)s"


class CourseProcessingError(RuntimeError):
    """Raised when processing cannot continue; the run must stop."""


@dc.dataclass(slots=True)
class Diagnostics:
    """Accumulate non-fatal warnings emitted during a processing run."""

    warnings: list[str] = dc.field(default_factory=list)

    def warn(self, message: str) -> None:
        """Record ``message`` and log it at WARNING level."""
        self.warnings.append(message)
        LOG.warning(message)

    def matching(self, fragment: str) -> list[str]:
        """Return every recorded warning containing ``fragment``."""
        return [message for message in self.warnings if fragment in message]


def _resolve_log_level(verbose: bool, debug: bool) -> int:
    return logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)


def setup_logging(*, verbose: bool = False, debug: bool = False) -> None:
    """Configure the package logger for command-line use.

    Parameters
    ----------
    verbose : bool, optional
        Emit progress messages at INFO level.
    debug : bool, optional
        Emit per-file detail at DEBUG level; takes precedence over ``verbose``.
    """
    level = _resolve_log_level(verbose, debug)
    LOG.setLevel(level)
    LOG.propagate = False
    if not LOG.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        LOG.addHandler(handler)
    for handler in LOG.handlers:
        handler.setLevel(level)


__all__ = [
    "LOG",
    "CourseProcessingError",
    "Diagnostics",
    "setup_logging",
]
