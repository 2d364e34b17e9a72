"""Abstract base class for analyzers.

All analyzers MUST implement this interface. Each analyzer:
1. Receives the canonical syntax tree of one parsed file
2. Walks it, checking only the rules of its own group that are enabled
3. Yields Findings through ``make_finding``, which stamps rule metadata
4. Never mutates the tree or the rule set
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from vigil.analyzers.walker import Deadline
from vigil.models import Finding, Location, Severity, Suggestion
from vigil.models.canonical import SyntaxNode
from vigil.rules import RuleSet


@dataclass(frozen=True)
class AnalysisContext:
    """Per-file inputs shared by all analyzers.

    Attributes:
        path: File path as supplied by the caller
        language: Resolved language id
        rules: Rule set in effect for the run
        deadline: Optional time budget for the file
    """

    path: str
    language: str
    rules: RuleSet
    deadline: Deadline | None = None


class Analyzer(ABC):
    """Abstract interface for pluggable analysis passes.

    Adding a new analyzer MUST NOT require changes outside its module and the
    registry that lists it.

    Attributes:
        name: Analyzer group name; matches ``Rule.analyzer``
        languages: Languages the analyzer applies to (None means all)
    """

    languages: frozenset[str] | None = None

    def __init__(self, name: str) -> None:
        """Initialize the analyzer.

        Args:
            name: Analyzer group name
        """
        self.name = name

    def applies_to(self, context: AnalysisContext) -> bool:
        """Return True if the analyzer should run for this file.

        An analyzer runs only for its languages and only when at least one of
        its rules is enabled.
        """
        if self.languages is not None and context.language not in self.languages:
            return False
        return any(rule.enabled for rule in context.rules.for_analyzer(self.name))

    @abstractmethod
    def analyze(self, root: SyntaxNode, context: AnalysisContext) -> Iterator[Finding]:
        """Yield findings for one file.

        Args:
            root: Canonical tree of the file
            context: Path, language, rule set and deadline

        Yields:
            Findings in traversal order

        Raises:
            AnalysisTimeout: If the context deadline expires
        """

    def make_finding(
        self,
        context: AnalysisContext,
        rule_id: str,
        severity: Severity,
        title: str,
        description: str,
        line: int,
        column: int,
        suggestion: Suggestion | None = None,
        tags: list[str] | None = None,
    ) -> Finding:
        """Build a finding for one of this analyzer's rules.

        The finding's category and rule reference always come from the rule
        set, so a finding can never disagree with the rule that produced it.

        Raises:
            AnalyzerFailure: If the rule is unknown, disabled, or belongs to a
                different analyzer
        """
        rule = context.rules.get(rule_id)
        if rule is None or not rule.enabled or rule.analyzer != self.name:
            raise AnalyzerFailure(self.name, f"Rule {rule_id} is not an enabled {self.name} rule")

        metadata: dict[str, Any] = {}
        if rule.cwe:
            metadata["cwe"] = tuple(rule.cwe)
        if tags:
            metadata["tags"] = tuple(tags)

        return Finding(
            id=f"{rule.id}:{context.path}:{line}",
            category=rule.category,
            severity=severity,
            title=title,
            description=description,
            location=Location(path=context.path, line=line, column=column),
            rule=rule.ref(),
            suggestion=suggestion,
            metadata=metadata,
        )

    def make_node_finding(
        self,
        context: AnalysisContext,
        rule_id: str,
        severity: Severity,
        title: str,
        description: str,
        node: SyntaxNode,
        **kwargs: Any,
    ) -> Finding:
        """Build a finding located at a syntax node."""
        return self.make_finding(
            context,
            rule_id,
            severity,
            title,
            description,
            line=node.line,
            column=node.column,
            **kwargs,
        )

    def get_metadata(self) -> dict[str, Any]:
        """Get analyzer metadata for logging and debugging."""
        return {
            "name": self.name,
            "languages": sorted(self.languages) if self.languages else "all",
        }


class AnalyzerFailure(Exception):
    """Raised when an analyzer cannot complete its pass."""

    def __init__(self, analyzer: str, message: str) -> None:
        self.analyzer = analyzer
        self.message = message
        super().__init__(f"Analyzer failed: {analyzer} - {message}")
