"""Unit tests for the report renderer."""

import json
from datetime import UTC, datetime

import pytest

from vigil.models import (
    AnalysisError,
    AnalysisStatus,
    Category,
    FileMetrics,
    FileResult,
    Finding,
    Location,
    RepositoryResult,
    RuleRef,
    Severity,
    Suggestion,
)
from vigil.templates import REPORT_FORMATS, ReportRenderer
from vigil.templates.renderer import format_datetime, severity_label


@pytest.fixture
def result() -> RepositoryResult:
    """A finished run with two findings and one error."""
    finding = Finding(
        id="no-eval:src/app.js:6:1",
        category=Category.SECURITY,
        severity=Severity.CRITICAL,
        title="Dangerous eval() usage",
        description="Using eval() can lead to code injection vulnerabilities.",
        location=Location(path="src/app.js", line=6, column=10),
        rule=RuleRef(id="no-eval", name="No eval()", category=Category.SECURITY),
    )
    complexity = Finding(
        id="complexity:src/app.js:1:2",
        category=Category.COMPLEXITY,
        severity=Severity.MEDIUM,
        title="High Cyclomatic Complexity (13)",
        description="This file has a cyclomatic complexity of 13.",
        location=Location(path="src/app.js", line=1, column=1),
        rule=RuleRef(id="complexity", name="Cyclomatic Complexity", category=Category.COMPLEXITY),
        suggestion=Suggestion(fix="Break it up.", confidence=80),
    )
    result = RepositoryResult(total_files=2)
    result.add_file(
        FileResult(
            path="src/app.js",
            language="javascript",
            metrics=FileMetrics(complexity=13, lines=120, functions=4),
            findings=(finding, complexity),
            parsed=True,
        )
    )
    result.add_file(
        FileResult(
            path="src/util.py",
            language="python",
            metrics=FileMetrics(complexity=2, lines=30),
            parsed=True,
        )
    )
    result.add_error(AnalysisError(component="provider", message="gone", file_path="x.js"))
    result.finalize(AnalysisStatus.COMPLETED)
    return result


class TestFilters:
    """Tests for template filters."""

    def test_format_datetime(self) -> None:
        """Datetimes render in UTC; missing values render as N/A."""
        dt = datetime(2026, 3, 1, 12, 30, 0, tzinfo=UTC)

        assert format_datetime(dt) == "2026-03-01 12:30:00 UTC"
        assert format_datetime("2026-03-01T12:30:00") == "2026-03-01 12:30:00 UTC"
        assert format_datetime("not a date") == "not a date"
        assert format_datetime(None) == "N/A"

    def test_severity_label(self) -> None:
        """Labels are upper-case and padded."""
        assert severity_label(Severity.LOW) == "LOW     "


class TestReportRenderer:
    """Tests for ReportRenderer."""

    @pytest.fixture
    def renderer(self) -> ReportRenderer:
        """Create a renderer."""
        return ReportRenderer()

    def test_formats(self) -> None:
        """Text, JSON and Markdown are supported."""
        assert REPORT_FORMATS == ("text", "json", "markdown")

    def test_json(self, renderer: ReportRenderer, result: RepositoryResult) -> None:
        """JSON output is the serialized result plus the title."""
        data = json.loads(renderer.render(result, "json", title="web"))

        assert data["title"] == "web"
        assert data["status"] == "completed"
        assert data["summary"]["critical_issues"] == 1
        assert data["summary"]["medium_issues"] == 1
        assert data["files"][0]["findings"][0]["rule"]["id"] == "no-eval"

    def test_text(self, renderer: ReportRenderer, result: RepositoryResult) -> None:
        """Text output lists the summary and one line per finding."""
        text = renderer.render(result, "text", title="web")

        assert text.startswith("web: completed\n")
        assert "Files: 2/2 analyzed, 150 lines" in text
        assert "Issues: 2 (critical 1, high 0, medium 1, low 0)" in text
        assert "  6:10  CRITICAL Dangerous eval() usage [no-eval]" in text
        assert "provider x.js: gone" in text

    def test_markdown(self, renderer: ReportRenderer, result: RepositoryResult) -> None:
        """Markdown output has severity, complexity, findings and errors sections."""
        markdown = renderer.render(result, "markdown", title="web")

        assert markdown.startswith("# Code Analysis: web")
        assert "| critical | 1 |" in markdown
        assert "| **total** | **2** |" in markdown
        assert "## Complexity" in markdown
        assert "| `src/app.js` | 13 |" in markdown
        assert "| 6 | critical | `no-eval` | Dangerous eval() usage |" in markdown
        assert "- Line 1: Break it up." in markdown
        assert "## Errors" in markdown
        assert markdown.index("`src/app.js` | 13") < markdown.index("`src/util.py` | 2")

    def test_markdown_without_findings(self, renderer: ReportRenderer) -> None:
        """An empty run says so."""
        empty = RepositoryResult()
        empty.finalize(AnalysisStatus.COMPLETED)

        markdown = renderer.render(empty, "markdown")

        assert "No issues found." in markdown
        assert "## Errors" not in markdown
        assert "## Complexity" not in markdown

    def test_unknown_format(self, renderer: ReportRenderer, result: RepositoryResult) -> None:
        """Unknown formats raise ValueError."""
        with pytest.raises(ValueError, match="Unknown report format"):
            renderer.render(result, "html")
