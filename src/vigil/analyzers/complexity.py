"""Cyclomatic complexity analyzer."""

from collections.abc import Iterator

from vigil.analyzers.base import AnalysisContext, Analyzer
from vigil.analyzers.metrics import cyclomatic_complexity
from vigil.models import Finding, Severity, Suggestion
from vigil.models.canonical import SyntaxNode
from vigil.rules import HIGH_COMPLEXITY_THRESHOLD

DEFAULT_THRESHOLD = 10


class ComplexityAnalyzer(Analyzer):
    """Reports files whose cyclomatic complexity exceeds the rule threshold.

    Complexity is measured for the whole file, so the finding is always
    placed at line 1, column 1.
    """

    def __init__(self) -> None:
        super().__init__("complexity")

    def analyze(self, root: SyntaxNode, context: AnalysisContext) -> Iterator[Finding]:
        if not context.rules.is_enabled("complexity"):
            return

        threshold = context.rules.threshold("complexity", DEFAULT_THRESHOLD)
        complexity = cyclomatic_complexity(root, context.deadline)
        if complexity <= threshold:
            return

        severity = Severity.HIGH if complexity > HIGH_COMPLEXITY_THRESHOLD else Severity.MEDIUM
        yield self.make_finding(
            context,
            "complexity",
            severity,
            title=f"High Cyclomatic Complexity ({complexity})",
            description=(
                f"This file has a cyclomatic complexity of {complexity}, which exceeds "
                f"the recommended threshold of {threshold}."
            ),
            line=1,
            column=1,
            suggestion=Suggestion(
                fix="Consider breaking down complex functions into smaller, more manageable pieces.",
                confidence=80,
            ),
        )
