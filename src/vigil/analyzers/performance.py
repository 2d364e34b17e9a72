"""Performance analyzer.

Checks:
- max-nested-loops: loops nested deeper than the threshold
- max-array-size: array literals with more elements than the threshold
"""

from collections.abc import Iterator

from vigil.analyzers.base import AnalysisContext, Analyzer
from vigil.analyzers.walker import max_loop_depth, traverse
from vigil.models import Finding, Severity
from vigil.models.canonical import NodeKind, SyntaxNode

DEFAULT_MAX_LOOP_DEPTH = 2
DEFAULT_MAX_ARRAY_SIZE = 1000


class PerformanceAnalyzer(Analyzer):
    """Flags deeply nested loops and oversized array literals."""

    def __init__(self) -> None:
        super().__init__("performance")

    def analyze(self, root: SyntaxNode, context: AnalysisContext) -> Iterator[Finding]:
        rules = context.rules
        check_loops = rules.is_enabled("max-nested-loops")
        check_arrays = rules.is_enabled("max-array-size")
        max_depth = rules.threshold("max-nested-loops", DEFAULT_MAX_LOOP_DEPTH)
        max_size = rules.threshold("max-array-size", DEFAULT_MAX_ARRAY_SIZE)

        for node, _parent in traverse(root, context.deadline):
            if check_loops and node.is_loop:
                depth = max_loop_depth(node)
                if depth > max_depth:
                    yield self.make_node_finding(
                        context,
                        "max-nested-loops",
                        Severity.MEDIUM,
                        f"Deeply nested loops ({depth} levels)",
                        "Deeply nested loops can cause performance issues.",
                        node,
                    )

            elif check_arrays and node.kind is NodeKind.ARRAY:
                count = node.element_count or 0
                if count > max_size:
                    yield self.make_node_finding(
                        context,
                        "max-array-size",
                        Severity.LOW,
                        "Large array literal",
                        f"Array with {count} elements may impact performance.",
                        node,
                    )
