"""Analysis result entities.

This module contains entities related to analysis results:
- AnalysisStatus: Lifecycle of a repository run
- AnalysisError: Non-fatal errors encountered during analysis
- FileMetrics: Scalar statistics derived from one file's syntax tree
- FileResult: Outcome of analyzing one file
- SeverityTally: Running per-severity finding counts
- ComplexitySummary: Average/max complexity across analyzed files
- RepositoryResult: Aggregated outcome of a repository run
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from vigil.models.finding import Finding, Severity

# Weights used by the quality score (critical issues hurt the most)
SCORE_WEIGHTS: dict[Severity, int] = {
    Severity.CRITICAL: 10,
    Severity.HIGH: 5,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


class AnalysisStatus(Enum):
    """Status of an analysis run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalysisError:
    """Non-fatal error encountered during analysis.

    Attributes:
        component: Component that failed (analyzer name, metrics, provider, engine)
        message: Error description
        file_path: File that caused the error (if applicable)
        recoverable: Whether analysis continued after this error
    """

    component: str
    message: str
    file_path: str | None = None
    recoverable: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "component": self.component,
            "message": self.message,
            "file_path": self.file_path,
            "recoverable": self.recoverable,
        }


@dataclass(frozen=True)
class FileMetrics:
    """Scalar statistics for one file.

    Attributes:
        complexity: File-level cyclomatic complexity (0 when the file did not parse)
        lines: Line count of the raw content
        functions: Number of function-like nodes
        classes: Number of class-like declarations
    """

    complexity: int = 0
    lines: int = 0
    functions: int = 0
    classes: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "complexity": self.complexity,
            "lines": self.lines,
            "functions": self.functions,
            "classes": self.classes,
        }


@dataclass(frozen=True)
class FileResult:
    """Outcome of analyzing a single file.

    Created once per analyzed file and never modified afterwards.

    Attributes:
        path: File path
        language: Resolved language id (None if unsupported)
        metrics: Derived file metrics
        findings: Findings in analyzer-declaration order
        errors: Non-fatal errors recorded while analyzing the file
        parsed: Whether the file produced a syntax tree
        duration: Wall-clock analysis time in seconds
    """

    path: str
    language: str | None
    metrics: FileMetrics = field(default_factory=FileMetrics)
    findings: tuple[Finding, ...] = ()
    errors: tuple[AnalysisError, ...] = ()
    parsed: bool = False
    duration: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "path": self.path,
            "language": self.language,
            "parsed": self.parsed,
            "metrics": self.metrics.to_dict(),
            "findings": [f.to_dict() for f in self.findings],
            "issues_count": len(self.findings),
            "errors": [e.to_dict() for e in self.errors],
            "duration": round(self.duration, 6),
        }


@dataclass
class SeverityTally:
    """Running per-severity counts."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    def add(self, severity: Severity) -> None:
        """Increment the counter matching a severity."""
        name = severity.value
        setattr(self, name, getattr(self, name) + 1)

    def count(self, severity: Severity) -> int:
        """Return the count for a severity."""
        return getattr(self, severity.value)

    @property
    def total(self) -> int:
        """Return the sum of all counters."""
        return self.critical + self.high + self.medium + self.low

    def at_or_above(self, severity: Severity) -> int:
        """Return the number of findings at or above a severity."""
        return sum(self.count(s) for s in Severity if s >= severity)

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for serialization."""
        return {
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
        }


@dataclass(frozen=True)
class ComplexitySummary:
    """Complexity statistics across analyzed files."""

    average: float = 0.0
    max: int = 0
    files: tuple[tuple[str, int], ...] = ()

    @classmethod
    def from_files(cls, files: list[FileResult]) -> "ComplexitySummary":
        """Summarize complexity over files that parsed."""
        entries = tuple(
            (f.path, f.metrics.complexity) for f in files if f.metrics.complexity > 0
        )
        if not entries:
            return cls()
        values = [c for _, c in entries]
        return cls(
            average=round(sum(values) / len(values), 2),
            max=max(values),
            files=entries,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "average": self.average,
            "max": self.max,
            "files": [{"path": p, "complexity": c} for p, c in self.files],
        }


@dataclass
class RepositoryResult:
    """Aggregated outcome of a repository run.

    Mutated incrementally by the repository orchestrator as each file
    completes, then finalized when the file set is exhausted or the run is
    cancelled.

    Attributes:
        total_files: Files offered to the engine (after path filtering)
        analyzed_files: Files whose analysis completed
        tally: Per-severity finding counts
        total_lines: Sum of line counts over analyzed files
        files: FileResults in processing order
        findings: All findings, flattened in processing order
        status: Run status
        errors: Non-fatal errors (provider failures, skipped files)
        started_at: Run start (UTC)
        finished_at: Run end (UTC), set on finalization
        score: Quality score in [0, 100], set on finalization
        complexity: Complexity summary, set on finalization
    """

    total_files: int = 0
    analyzed_files: int = 0
    tally: SeverityTally = field(default_factory=SeverityTally)
    total_lines: int = 0
    files: list[FileResult] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    status: AnalysisStatus = AnalysisStatus.PENDING
    errors: list[AnalysisError] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    score: int | None = None
    complexity: ComplexitySummary = field(default_factory=ComplexitySummary)

    @property
    def total_issues(self) -> int:
        """Return the total number of findings."""
        return self.tally.total

    @property
    def languages(self) -> list[str]:
        """Return the sorted list of languages seen in analyzed files."""
        return sorted({f.language for f in self.files if f.language})

    @property
    def duration(self) -> float | None:
        """Return the run duration in seconds once finalized."""
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def add_file(self, file_result: FileResult) -> None:
        """Append a completed file and update the running tallies."""
        self.files.append(file_result)
        self.findings.extend(file_result.findings)
        self.analyzed_files += 1
        self.total_lines += file_result.metrics.lines
        for finding in file_result.findings:
            self.tally.add(finding.severity)

    def add_error(self, error: AnalysisError) -> None:
        """Record a non-fatal error."""
        self.errors.append(error)

    def calculate_score(self) -> int:
        """Compute the quality score from the severity tally.

        100 when there are no findings. Otherwise the weighted finding count
        is compared to one issue per ten analyzed lines, which scores 0.
        """
        if self.total_issues == 0:
            return 100

        weighted = sum(SCORE_WEIGHTS[s] * self.tally.count(s) for s in Severity)
        max_possible = self.total_lines * 0.1
        score = 100 - (weighted / max(1, max_possible)) * 100
        return round(max(0.0, min(100.0, score)))

    def finalize(self, status: AnalysisStatus) -> None:
        """Stamp the final status, timing, score, and complexity summary."""
        self.status = status
        self.finished_at = datetime.now(UTC)
        self.score = self.calculate_score()
        self.complexity = ComplexitySummary.from_files(self.files)

    def summary(self) -> dict[str, Any]:
        """Return the summary block (counts, tallies, score)."""
        return {
            "total_files": self.total_files,
            "analyzed_files": self.analyzed_files,
            "total_issues": self.total_issues,
            "critical_issues": self.tally.critical,
            "high_issues": self.tally.high,
            "medium_issues": self.tally.medium,
            "low_issues": self.tally.low,
            "total_lines": self.total_lines,
            "score": self.score,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "status": self.status.value,
            "summary": self.summary(),
            "languages": self.languages,
            "complexity": self.complexity.to_dict(),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "files": [f.to_dict() for f in self.files],
            "errors": [e.to_dict() for e in self.errors],
        }
