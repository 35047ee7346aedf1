"""Report sink used to surface mirror outcomes.

Every notable event (including successful fast-forwards and pushes) flows
through a single callable taking a ``logging`` level and a formatted message.
Reporting never feeds back into control flow.
"""

from __future__ import annotations

import logging
import sys
import typing as typ

_logger = logging.getLogger("branchmirror")


class Reporter(typ.Protocol):
    """Callable receiving a log level and a formatted message."""

    def __call__(self, level: int, message: str) -> None:
        """Record the message at the given level."""


def log_reporter(level: int, message: str) -> None:
    """Forward the message to the ``branchmirror`` logger."""
    _logger.log(level, message)


def stream_reporter(
    stream: typ.IO[str] | None = None,
    *,
    threshold: int = logging.INFO,
) -> Reporter:
    """Return a reporter writing ``branchmirror: <message>`` lines to a stream.

    Messages below ``threshold`` are still forwarded to the logger but are not
    written to the stream.
    """

    def report(level: int, message: str) -> None:
        log_reporter(level, message)
        if level < threshold:
            return
        target = stream or sys.stderr
        target.write(f"branchmirror: {message}\n")
        target.flush()

    return report
