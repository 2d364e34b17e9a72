"""Bug pattern analyzer.

Checks:
- no-unreachable: statements following a return in the same block
- no-assignment-in-condition: assignment used as an if/while test
"""

from collections.abc import Iterator

from vigil.analyzers.base import AnalysisContext, Analyzer
from vigil.analyzers.walker import traverse
from vigil.models import Finding, Severity
from vigil.models.canonical import NodeKind, SyntaxNode

# Statement wrappers a return can sit in (e.g. Rust `return x;`)
STATEMENT_WRAPPERS = frozenset({"expression_statement"})


def _is_return_statement(node: SyntaxNode) -> bool:
    if node.kind is NodeKind.RETURN:
        return True
    return (
        node.type in STATEMENT_WRAPPERS
        and len(node.children) == 1
        and node.children[0].kind is NodeKind.RETURN
    )


class BugAnalyzer(Analyzer):
    """Flags code that is almost certainly a mistake."""

    def __init__(self) -> None:
        super().__init__("bugs")

    def analyze(self, root: SyntaxNode, context: AnalysisContext) -> Iterator[Finding]:
        check_unreachable = context.rules.is_enabled("no-unreachable")
        check_assignment = context.rules.is_enabled("no-assignment-in-condition")

        for node, _parent in traverse(root, context.deadline):
            if check_unreachable and node.kind is NodeKind.BLOCK:
                yield from self._unreachable(node, context)

            elif (
                check_assignment
                and node.kind in (NodeKind.IF, NodeKind.WHILE)
                and node.test is not None
                and node.test.kind is NodeKind.ASSIGNMENT
            ):
                yield self.make_node_finding(
                    context,
                    "no-assignment-in-condition",
                    Severity.HIGH,
                    "Assignment in condition",
                    "Assignment in condition is likely a mistake. Did you mean to use == or ===?",
                    node.test,
                )

    def _unreachable(self, block: SyntaxNode, context: AnalysisContext) -> Iterator[Finding]:
        statements = block.children
        for index, statement in enumerate(statements[:-1]):
            if _is_return_statement(statement):
                yield self.make_node_finding(
                    context,
                    "no-unreachable",
                    Severity.MEDIUM,
                    "Unreachable code after return",
                    "Code after return statement will never be executed.",
                    statements[index + 1],
                )
