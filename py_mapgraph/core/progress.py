"""
Progress reporting side channel.

Generators call ``report(percent, message)`` at stage boundaries. Reports
are advisory only: the same inputs produce the same outputs whatever sink
is attached.
"""

from typing import Optional, Protocol

import structlog


class ProgressSink(Protocol):
    """Receiver for stage progress."""

    def report(self, percent: float, message: str) -> None:
        ...


class NullProgress:
    """Sink that discards every report."""

    def report(self, percent: float, message: str) -> None:
        pass


class LoggingProgress:
    """Sink that forwards reports to structlog."""

    def __init__(self, source: str = "generator"):
        self._logger = structlog.get_logger().bind(source=source)

    def report(self, percent: float, message: str) -> None:
        self._logger.debug("Progress", percent=round(percent, 1), message=message)


def ensure_progress(progress: Optional[ProgressSink]) -> ProgressSink:
    """Return the given sink, or a no-op sink when None."""
    return progress if progress is not None else NullProgress()
