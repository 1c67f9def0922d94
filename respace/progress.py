"""Progress reporting sinks.

The engine reports through the ProgressSink protocol only: transient
`update` calls with a running done/total count and exactly one terminal
`finish` per batch. Concrete sinks decide how to present them.
"""

import logging
import sys
from typing import List, Optional, Protocol, TextIO, Tuple

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    """Status collaborator for launch and close batches."""

    def update(self, done: int, total: int, message: str) -> None:
        ...

    def finish(self, success: bool, title: str, message: str) -> None:
        ...


class LoggingProgressSink:
    """Reports progress to the module logger (default sink)."""

    def update(self, done: int, total: int, message: str) -> None:
        logger.info(f"[{done}/{total}] {message}")

    def finish(self, success: bool, title: str, message: str) -> None:
        if success:
            logger.info(f"{title}: {message}")
        else:
            logger.warning(f"{title}: {message}")


class ConsoleProgressSink:
    """Reports progress on a terminal stream, rewriting the status line."""

    def __init__(self, stream: Optional[TextIO] = None, quiet: bool = False):
        self.stream = stream or sys.stderr
        self.quiet = quiet

    def update(self, done: int, total: int, message: str) -> None:
        if self.quiet:
            return
        self.stream.write(f"\r{message}")
        self.stream.flush()

    def finish(self, success: bool, title: str, message: str) -> None:
        marker = "✅" if success else "⚠️ "
        self.stream.write(f"\r{marker} {title}\n   {message}\n")
        self.stream.flush()


class RecordingProgressSink:
    """Keeps every report in memory; used by tests and JSON output."""

    def __init__(self):
        self.updates: List[Tuple[int, int, str]] = []
        self.finished: List[Tuple[bool, str, str]] = []

    def update(self, done: int, total: int, message: str) -> None:
        self.updates.append((done, total, message))

    def finish(self, success: bool, title: str, message: str) -> None:
        self.finished.append((success, title, message))
