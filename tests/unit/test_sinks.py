"""Unit tests for progress and persistence sinks."""

import json
import logging
from pathlib import Path

import pytest

from vigil.models import AnalysisStatus, FileMetrics, FileResult, RepositoryResult
from vigil.sinks import JSONLinesSink, LoggingProgressSink, NullFindingSink, null_progress


def finished_result() -> RepositoryResult:
    result = RepositoryResult(total_files=1)
    result.add_file(FileResult(path="a.py", language="python", metrics=FileMetrics(lines=3)))
    result.finalize(AnalysisStatus.COMPLETED)
    return result


class TestNullSinks:
    """Tests for the no-op sinks."""

    def test_accept_everything(self) -> None:
        """Null sinks accept calls and do nothing."""
        null_progress(1, 2, "analyzing")
        sink = NullFindingSink()
        sink.write(FileResult(path="a.py", language="python"))
        sink.close(finished_result())


class TestLoggingProgressSink:
    """Tests for LoggingProgressSink."""

    def test_logs_at_step_boundaries(self, caplog: pytest.LogCaptureFixture) -> None:
        """Updates inside one step bucket are logged once."""
        sink = LoggingProgressSink(step=50)

        with caplog.at_level(logging.INFO, logger="vigil.sinks"):
            for processed in range(1, 11):
                sink(processed, 10, "analyzing")
            sink(10, 10, "completed")

        messages = [r.getMessage() for r in caplog.records]
        assert len(messages) == 4
        assert messages[-1] == "Progress: 10/10 files (100%) [completed]"

    def test_empty_run(self, caplog: pytest.LogCaptureFixture) -> None:
        """A run with no files reports 100%."""
        with caplog.at_level(logging.INFO, logger="vigil.sinks"):
            LoggingProgressSink()(0, 0, "completed")

        assert "(100%)" in caplog.records[0].getMessage()


class TestJSONLinesSink:
    """Tests for JSONLinesSink."""

    def test_writes_file_and_summary_records(self, tmp_path: Path) -> None:
        """One record per file, then a summary on close."""
        path = tmp_path / "logs" / "findings.jsonl"
        sink = JSONLinesSink(path)

        sink.write(FileResult(path="a.py", language="python", parsed=True))
        sink.close(finished_result())

        records = [json.loads(line) for line in path.read_text().splitlines()]
        assert [r["type"] for r in records] == ["file", "summary"]
        assert records[0]["file"]["path"] == "a.py"
        assert records[1]["status"] == "completed"
        assert records[1]["summary"]["analyzed_files"] == 1
        assert "ts" in records[0]

    def test_write_after_close(self, tmp_path: Path) -> None:
        """Writing to a closed sink is an error; closing twice is not."""
        sink = JSONLinesSink(tmp_path / "findings.jsonl")
        sink.close(finished_result())
        sink.close(finished_result())

        with pytest.raises(ValueError, match="closed"):
            sink.write(FileResult(path="a.py", language="python"))

    def test_appends(self, tmp_path: Path) -> None:
        """Separate runs append to the same file."""
        path = tmp_path / "findings.jsonl"
        for _ in range(2):
            JSONLinesSink(path).close(finished_result())

        assert len(path.read_text().splitlines()) == 2

    def test_close_releases_file_when_summary_fails(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The file is closed even if the summary record cannot be built."""
        sink = JSONLinesSink(tmp_path / "findings.jsonl")
        result = finished_result()

        def broken_summary() -> dict:
            raise RuntimeError("summary unavailable")

        monkeypatch.setattr(result, "summary", broken_summary)

        with pytest.raises(RuntimeError, match="summary unavailable"):
            sink.close(result)
        with pytest.raises(ValueError, match="closed"):
            sink.write(FileResult(path="a.py", language="python"))
