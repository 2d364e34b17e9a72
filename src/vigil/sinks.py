"""Progress and persistence sinks.

The repository orchestrator reports progress and hands each completed
FileResult to a sink. Hosts supply their own implementations (a websocket
notifier, a database writer); the defaults do nothing.
"""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, Protocol

from vigil.models import FileResult, RepositoryResult

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    """Receives ``(processed, total, phase)`` after each file and at the end."""

    def __call__(self, processed: int, total: int, phase: str) -> None: ...


class FindingSink(Protocol):
    """Receives every completed FileResult, then the final RepositoryResult."""

    def write(self, file_result: FileResult) -> None: ...

    def close(self, result: RepositoryResult) -> None: ...


def null_progress(processed: int, total: int, phase: str) -> None:
    """Progress sink that ignores all updates."""


class NullFindingSink:
    """Finding sink that discards everything."""

    def write(self, file_result: FileResult) -> None:
        pass

    def close(self, result: RepositoryResult) -> None:
        pass


class LoggingProgressSink:
    """Progress sink that logs at a fixed percentage step."""

    def __init__(self, step: int = 10) -> None:
        self.step = step
        self._last_reported = -1

    def __call__(self, processed: int, total: int, phase: str) -> None:
        percent = int(processed * 100 / total) if total else 100
        bucket = percent // self.step
        if phase != "analyzing" or bucket != self._last_reported:
            self._last_reported = bucket
            logger.info("Progress: %d/%d files (%d%%) [%s]", processed, total, percent, phase)


class JSONLinesSink:
    """Appends one JSON record per file and a final summary record.

    Record shapes:
        {"type": "file", "ts": ..., "file": {...FileResult.to_dict()}}
        {"type": "summary", "ts": ..., "status": ..., "summary": {...}}
    """

    def __init__(self, path: Path) -> None:
        """Open the output file for appending.

        Args:
            path: JSON Lines file; parent directories are created
        """
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        self._handle: IO[str] | None = path.open("a", encoding="utf-8")

    def _emit(self, record: dict) -> None:
        if self._handle is None:
            raise ValueError(f"Sink for {self.path} is closed")
        record["ts"] = datetime.now(UTC).isoformat()
        self._handle.write(json.dumps(record, default=str) + "\n")
        self._handle.flush()

    def write(self, file_result: FileResult) -> None:
        self._emit({"type": "file", "file": file_result.to_dict()})

    def close(self, result: RepositoryResult) -> None:
        if self._handle is None:
            return
        try:
            self._emit({
                "type": "summary",
                "status": result.status.value,
                "summary": result.summary(),
                "errors": [e.to_dict() for e in result.errors],
            })
        finally:
            self._handle.close()
            self._handle = None
            logger.debug("Closed findings log %s", self.path)
