"""Security analyzer for JavaScript and TypeScript.

Checks:
- no-eval: direct calls to ``eval`` (CWE-95, code injection)
- no-innerHTML: reads or writes of ``.innerHTML`` (CWE-79, XSS)
"""

from collections.abc import Iterator

from vigil.analyzers.base import AnalysisContext, Analyzer
from vigil.analyzers.walker import traverse
from vigil.models import Finding, Severity
from vigil.models.canonical import NodeKind, SyntaxNode


class SecurityAnalyzer(Analyzer):
    """Flags dangerous DOM and dynamic-code APIs."""

    languages = frozenset({"javascript", "typescript"})

    def __init__(self) -> None:
        super().__init__("security")

    def analyze(self, root: SyntaxNode, context: AnalysisContext) -> Iterator[Finding]:
        check_eval = context.rules.is_enabled("no-eval")
        check_inner_html = context.rules.is_enabled("no-innerHTML")

        for node, _parent in traverse(root, context.deadline):
            if check_eval and node.kind is NodeKind.CALL and node.name == "eval":
                yield self.make_node_finding(
                    context,
                    "no-eval",
                    Severity.CRITICAL,
                    "Dangerous eval() usage",
                    "Using eval() can lead to code injection vulnerabilities.",
                    node,
                    tags=["injection"],
                )

            elif check_inner_html and node.kind is NodeKind.MEMBER and node.name == "innerHTML":
                yield self.make_node_finding(
                    context,
                    "no-innerHTML",
                    Severity.HIGH,
                    "Potential XSS vulnerability",
                    "Direct innerHTML manipulation can lead to XSS attacks.",
                    node,
                    tags=["xss"],
                )
