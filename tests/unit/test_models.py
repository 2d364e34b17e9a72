"""Unit tests for Vigil data models."""

from dataclasses import FrozenInstanceError, replace

import pytest

from vigil.models import (
    AnalysisError,
    AnalysisStatus,
    Category,
    ComplexitySummary,
    FileMetrics,
    FileResult,
    Finding,
    FindingStatus,
    Location,
    RepositoryResult,
    RuleRef,
    Severity,
    SeverityTally,
    Suggestion,
)


def make_finding(severity: Severity = Severity.HIGH, line: int = 3) -> Finding:
    return Finding(
        id="no-eval:app.js:3:1",
        category=Category.SECURITY,
        severity=severity,
        title="Dangerous eval() usage",
        description="Using eval() can lead to code injection vulnerabilities.",
        location=Location(path="app.js", line=line, column=10),
        rule=RuleRef(id="no-eval", name="No eval()", category=Category.SECURITY),
    )


class TestSeverity:
    """Tests for Severity ordering and parsing."""

    def test_total_order(self) -> None:
        """Severities are ordered critical > high > medium > low."""
        assert Severity.CRITICAL > Severity.HIGH > Severity.MEDIUM > Severity.LOW
        assert Severity.LOW <= Severity.LOW
        assert sorted(Severity) == [
            Severity.LOW,
            Severity.MEDIUM,
            Severity.HIGH,
            Severity.CRITICAL,
        ]

    def test_parse_is_case_insensitive(self) -> None:
        """Severity names parse regardless of case and whitespace."""
        assert Severity.parse(" HIGH ") is Severity.HIGH
        assert Severity.parse(Severity.LOW) is Severity.LOW

    def test_parse_rejects_unknown(self) -> None:
        """Unknown names raise ValueError listing the valid names."""
        with pytest.raises(ValueError, match="Invalid severity"):
            Severity.parse("severe")

    def test_comparison_with_other_types(self) -> None:
        """Comparing with a non-severity is a TypeError."""
        with pytest.raises(TypeError):
            _ = Severity.HIGH < 3


class TestSuggestion:
    """Tests for Suggestion validation."""

    def test_confidence_bounds(self) -> None:
        """Confidence must be within [0, 100]."""
        Suggestion(fix="Split it", confidence=0)
        Suggestion(fix="Split it", confidence=100)
        with pytest.raises(ValueError):
            Suggestion(fix="Split it", confidence=101)

    def test_to_dict_omits_unset_fields(self) -> None:
        """Optional fields are left out of the dictionary."""
        assert Suggestion(fix="Use textContent").to_dict() == {"fix": "Use textContent"}


class TestRuleRef:
    """Tests for RuleRef."""

    def test_requires_id(self) -> None:
        """An empty rule id is rejected."""
        with pytest.raises(ValueError):
            RuleRef(id="", name="Nameless", category=Category.BUG)


class TestFinding:
    """Tests for Finding."""

    def test_is_immutable(self) -> None:
        """Findings cannot be modified after creation."""
        finding = make_finding()
        with pytest.raises(FrozenInstanceError):
            finding.title = "changed"  # type: ignore[misc]

    def test_metadata_is_read_only(self) -> None:
        """Metadata cannot be changed through the finding."""
        finding = replace(make_finding(), metadata={"tags": ("injection",)})

        with pytest.raises(TypeError):
            finding.metadata["tags"] = ("other",)  # type: ignore[index]
        assert finding.to_dict()["metadata"] == {"tags": ["injection"]}

    def test_defaults_to_open(self) -> None:
        """New findings start with status OPEN."""
        assert make_finding().status is FindingStatus.OPEN

    def test_with_status_returns_copy(self) -> None:
        """with_status leaves the original untouched."""
        finding = make_finding()
        ignored = finding.with_status("ignored")

        assert ignored.status is FindingStatus.IGNORED
        assert finding.status is FindingStatus.OPEN

    def test_content_key_ignores_id(self) -> None:
        """Two findings differing only by id share a content key."""
        finding = make_finding()
        assert finding.with_id("other").content_key() == finding.content_key()

    def test_to_dict(self) -> None:
        """Serialization flattens enums to their values."""
        data = make_finding().to_dict()

        assert data["severity"] == "high"
        assert data["category"] == "security"
        assert data["status"] == "open"
        assert data["location"] == {"path": "app.js", "line": 3, "column": 10}
        assert data["rule"]["id"] == "no-eval"
        assert "suggestion" not in data
        assert "metadata" not in data


class TestSeverityTally:
    """Tests for SeverityTally."""

    def test_add_and_total(self) -> None:
        """Counters add up to the total."""
        tally = SeverityTally()
        tally.add(Severity.CRITICAL)
        tally.add(Severity.MEDIUM)
        tally.add(Severity.MEDIUM)

        assert tally.to_dict() == {"critical": 1, "high": 0, "medium": 2, "low": 0}
        assert tally.total == 3

    def test_at_or_above(self) -> None:
        """at_or_above counts findings at the threshold and higher."""
        tally = SeverityTally(critical=1, high=2, medium=3, low=4)

        assert tally.at_or_above(Severity.HIGH) == 3
        assert tally.at_or_above(Severity.LOW) == 10


class TestComplexitySummary:
    """Tests for ComplexitySummary."""

    def test_from_files_skips_unparsed(self) -> None:
        """Files with complexity 0 (parse failures) are not averaged."""
        files = [
            FileResult(path="a.js", language="javascript", metrics=FileMetrics(complexity=3)),
            FileResult(path="b.js", language="javascript", metrics=FileMetrics(complexity=6)),
            FileResult(path="c.js", language="javascript", metrics=FileMetrics(complexity=0)),
        ]

        summary = ComplexitySummary.from_files(files)

        assert summary.average == 4.5
        assert summary.max == 6
        assert [p for p, _ in summary.files] == ["a.js", "b.js"]

    def test_empty(self) -> None:
        """No parsed files gives a zeroed summary."""
        assert ComplexitySummary.from_files([]) == ComplexitySummary()


class TestRepositoryResult:
    """Tests for RepositoryResult aggregation."""

    def test_add_file_updates_tallies(self) -> None:
        """Adding a file updates counts, lines, and findings."""
        result = RepositoryResult(total_files=2)
        result.add_file(
            FileResult(
                path="app.js",
                language="javascript",
                metrics=FileMetrics(complexity=2, lines=40),
                findings=(make_finding(Severity.CRITICAL), make_finding(Severity.MEDIUM)),
                parsed=True,
            )
        )

        assert result.analyzed_files == 1
        assert result.total_lines == 40
        assert result.total_issues == 2
        assert result.tally.critical == 1
        assert result.tally.medium == 1
        assert len(result.findings) == 2

    def test_score_without_findings(self) -> None:
        """A clean run scores 100."""
        result = RepositoryResult()
        result.finalize(AnalysisStatus.COMPLETED)

        assert result.score == 100
        assert result.status is AnalysisStatus.COMPLETED
        assert result.finished_at is not None

    def test_score_is_weighted(self) -> None:
        """One critical finding in 200 lines costs 50 points."""
        result = RepositoryResult(total_files=1)
        result.add_file(
            FileResult(
                path="app.js",
                language="javascript",
                metrics=FileMetrics(complexity=1, lines=200),
                findings=(make_finding(Severity.CRITICAL),),
                parsed=True,
            )
        )
        result.finalize(AnalysisStatus.COMPLETED)

        assert result.score == 50

    def test_score_is_clamped(self) -> None:
        """Many findings in few lines floor the score at 0."""
        result = RepositoryResult(total_files=1)
        result.add_file(
            FileResult(
                path="app.js",
                language="javascript",
                metrics=FileMetrics(lines=1),
                findings=tuple(make_finding(Severity.CRITICAL) for _ in range(5)),
            )
        )

        assert result.calculate_score() == 0

    def test_to_dict(self) -> None:
        """Serialization includes summary, languages, files and errors."""
        result = RepositoryResult(total_files=1)
        result.add_file(FileResult(path="main.py", language="python", parsed=True))
        result.add_error(AnalysisError(component="provider", message="gone", file_path="x.py"))
        result.finalize(AnalysisStatus.CANCELLED)

        data = result.to_dict()

        assert data["status"] == "cancelled"
        assert data["summary"]["analyzed_files"] == 1
        assert data["languages"] == ["python"]
        assert data["errors"][0]["component"] == "provider"
        assert data["files"][0]["path"] == "main.py"
