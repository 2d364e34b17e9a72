"""Finding entities.

This module contains the entities that describe a single detected issue:
- Severity: Totally ordered severity levels (critical > high > medium > low)
- Category: Finding categories shared with the rule set
- FindingStatus: Reviewer lifecycle flag (never changed by the engine)
- Location: Source position of a finding
- RuleRef: Reference to the rule that produced a finding
- Suggestion: Proposed fix with a confidence score
- Finding: One reported issue instance
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any


class Severity(Enum):
    """Severity of a finding, ordered for aggregation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        """Parse a severity name (case-insensitive).

        Raises:
            ValueError: If the name is not a known severity
        """
        if isinstance(value, Severity):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = [s.value for s in cls]
            raise ValueError(f"Invalid severity: {value}. Valid: {valid}") from None


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class Category(Enum):
    """Category of a finding."""

    BUG = "bug"
    SECURITY = "security"
    PERFORMANCE = "performance"
    STYLE = "style"
    COMPLEXITY = "complexity"
    MAINTAINABILITY = "maintainability"
    SUGGESTION = "suggestion"


class FindingStatus(Enum):
    """Reviewer lifecycle status of a finding."""

    OPEN = "open"
    FIXED = "fixed"
    IGNORED = "ignored"
    FALSE_POSITIVE = "false_positive"


@dataclass(frozen=True)
class Location:
    """Source position of a finding.

    Attributes:
        path: File path as supplied by the file provider
        line: 1-based line number
        column: 1-based column number
        end_line: Optional 1-based end line
        end_column: Optional 1-based end column
    """

    path: str
    line: int
    column: int
    end_line: int | None = None
    end_column: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "path": self.path,
            "line": self.line,
            "column": self.column,
        }
        if self.end_line is not None:
            result["end_line"] = self.end_line
        if self.end_column is not None:
            result["end_column"] = self.end_column
        return result


@dataclass(frozen=True)
class RuleRef:
    """Reference to the rule that produced a finding."""

    id: str
    name: str
    category: Category
    documentation: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Rule reference requires a non-empty id")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
        }
        if self.documentation:
            result["documentation"] = self.documentation
        return result


@dataclass(frozen=True)
class Suggestion:
    """Proposed fix for a finding.

    Attributes:
        fix: Human-readable fix text
        before: Optional snippet showing the problem
        after: Optional snippet showing the fix
        confidence: Confidence score in [0, 100]
    """

    fix: str
    before: str | None = None
    after: str | None = None
    confidence: int | None = None

    def __post_init__(self) -> None:
        if self.confidence is not None and not 0 <= self.confidence <= 100:
            raise ValueError(
                f"Suggestion confidence must be within [0, 100] (got {self.confidence})"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {"fix": self.fix}
        if self.before is not None:
            result["before"] = self.before
        if self.after is not None:
            result["after"] = self.after
        if self.confidence is not None:
            result["confidence"] = self.confidence
        return result


@dataclass(frozen=True)
class Finding:
    """One detected issue.

    Findings are immutable once created. The engine always emits them with
    status OPEN; reviewers change the status through ``with_status``, which
    returns a new instance.

    Attributes:
        id: Identifier unique within an analysis run
        category: Finding category
        severity: Finding severity
        title: Short human-readable title
        description: Longer explanation
        location: Where the issue was found
        rule: Rule that produced the finding
        suggestion: Optional proposed fix
        status: Reviewer lifecycle flag
        metadata: Analyzer-specific tags and weakness ids (``cwe``, ``tags``)
    """

    id: str
    category: Category
    severity: Severity
    title: str
    description: str
    location: Location
    rule: RuleRef
    suggestion: Suggestion | None = None
    status: FindingStatus = FindingStatus.OPEN
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def line(self) -> int:
        """Return the line the finding is located at."""
        return self.location.line

    def with_id(self, finding_id: str) -> "Finding":
        """Return a copy carrying the given id."""
        return replace(self, id=finding_id)

    def with_status(self, status: FindingStatus | str) -> "Finding":
        """Return a copy with a reviewer-assigned status."""
        if isinstance(status, str):
            status = FindingStatus(status)
        return replace(self, status=status)

    def content_key(self) -> tuple[Any, ...]:
        """Return everything that identifies the finding except its id."""
        return (
            self.rule.id,
            self.category,
            self.severity,
            self.location,
            self.title,
            self.description,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "id": self.id,
            "category": self.category.value,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "location": self.location.to_dict(),
            "rule": self.rule.to_dict(),
            "status": self.status.value,
        }
        if self.suggestion is not None:
            result["suggestion"] = self.suggestion.to_dict()
        if self.metadata:
            result["metadata"] = {
                key: list(value) if isinstance(value, tuple) else value
                for key, value in self.metadata.items()
            }
        return result
