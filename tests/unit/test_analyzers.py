"""Unit tests for the analyzer passes."""

from collections.abc import Iterator

import pytest

from vigil.analyzers import (
    AnalysisContext,
    Analyzer,
    AnalyzerFailure,
    BugAnalyzer,
    ComplexityAnalyzer,
    PerformanceAnalyzer,
    SecurityAnalyzer,
)
from vigil.models import Category, Finding, Severity
from vigil.models.canonical import NodeKind, SyntaxNode
from vigil.rules import RuleSet
from tests.fixtures import make_node, nested_loops


def context_for(
    language: str = "javascript",
    overrides: dict | None = None,
    path: str = "src/app.js",
) -> AnalysisContext:
    rules = RuleSet.default().with_overrides(overrides or {})
    return AnalysisContext(path=path, language=language, rules=rules)


def ifs(count: int) -> SyntaxNode:
    return make_node(NodeKind.MODULE, *(make_node(NodeKind.IF, line=i + 1) for i in range(count)))


class TestAnalyzerBase:
    """Tests for the Analyzer base class."""

    class Probe(Analyzer):
        def __init__(self, name: str = "bugs") -> None:
            super().__init__(name)

        def analyze(self, root: SyntaxNode, context: AnalysisContext) -> Iterator[Finding]:
            yield self.make_finding(
                context, "no-unreachable", Severity.LOW, "t", "d", line=4, column=2, tags=["x"]
            )

    def test_applies_when_any_rule_enabled(self) -> None:
        """An analyzer runs while one of its rules is enabled."""
        probe = self.Probe()

        assert probe.applies_to(context_for(overrides={"no-unreachable": False}))
        assert not probe.applies_to(context_for(overrides={"bugs": False}))

    def test_language_gate(self) -> None:
        """Analyzers with a language set skip other languages."""
        security = SecurityAnalyzer()

        assert security.applies_to(context_for("typescript"))
        assert not security.applies_to(context_for("python"))

    def test_make_finding_uses_rule_metadata(self) -> None:
        """Category and rule reference come from the rule set."""
        (finding,) = self.Probe().analyze(make_node(NodeKind.MODULE), context_for())

        assert finding.category is Category.BUG
        assert finding.rule.id == "no-unreachable"
        assert finding.location.path == "src/app.js"
        assert (finding.location.line, finding.location.column) == (4, 2)
        assert finding.metadata == {"tags": ("x",)}

    def test_make_finding_rejects_foreign_rule(self) -> None:
        """An analyzer cannot emit another group's rule."""
        probe = self.Probe(name="performance")

        with pytest.raises(AnalyzerFailure):
            list(probe.analyze(make_node(NodeKind.MODULE), context_for()))

    def test_make_finding_rejects_disabled_rule(self) -> None:
        """Disabled rules cannot produce findings."""
        with pytest.raises(AnalyzerFailure):
            list(
                self.Probe().analyze(
                    make_node(NodeKind.MODULE), context_for(overrides={"no-unreachable": False})
                )
            )

    def test_get_metadata(self) -> None:
        """Metadata lists the analyzer languages."""
        assert SecurityAnalyzer().get_metadata() == {
            "name": "security",
            "languages": ["javascript", "typescript"],
        }
        assert BugAnalyzer().get_metadata()["languages"] == "all"


class TestComplexityAnalyzer:
    """Tests for ComplexityAnalyzer."""

    @pytest.fixture
    def analyzer(self) -> ComplexityAnalyzer:
        """Create the analyzer."""
        return ComplexityAnalyzer()

    def test_at_threshold_is_clean(self, analyzer: ComplexityAnalyzer) -> None:
        """Complexity equal to the threshold is not reported."""
        assert list(analyzer.analyze(ifs(9), context_for())) == []

    def test_above_threshold_is_medium(self, analyzer: ComplexityAnalyzer) -> None:
        """Complexity above the threshold gives one medium finding at 1:1."""
        (finding,) = analyzer.analyze(ifs(12), context_for())

        assert finding.severity is Severity.MEDIUM
        assert finding.title == "High Cyclomatic Complexity (13)"
        assert "threshold of 10" in finding.description
        assert (finding.location.line, finding.location.column) == (1, 1)
        assert finding.suggestion is not None
        assert finding.suggestion.confidence == 80

    def test_very_high_is_high(self, analyzer: ComplexityAnalyzer) -> None:
        """Complexity above 20 is reported as high."""
        (finding,) = analyzer.analyze(ifs(20), context_for())
        assert finding.severity is Severity.HIGH

    def test_custom_threshold(self, analyzer: ComplexityAnalyzer) -> None:
        """The rule threshold is honoured."""
        context = context_for(overrides={"complexity": {"threshold": 15}})
        assert list(analyzer.analyze(ifs(12), context)) == []


class TestSecurityAnalyzer:
    """Tests for SecurityAnalyzer."""

    @pytest.fixture
    def analyzer(self) -> SecurityAnalyzer:
        """Create the analyzer."""
        return SecurityAnalyzer()

    def test_eval(self, analyzer: SecurityAnalyzer) -> None:
        """A call named eval is critical."""
        root = make_node(NodeKind.MODULE, make_node(NodeKind.CALL, name="eval", line=3, column=5))

        (finding,) = analyzer.analyze(root, context_for())

        assert finding.severity is Severity.CRITICAL
        assert finding.rule.id == "no-eval"
        assert finding.title == "Dangerous eval() usage"
        assert (finding.location.line, finding.location.column) == (3, 5)
        assert finding.metadata == {"cwe": ("CWE-95",), "tags": ("injection",)}

    def test_other_calls_ignored(self, analyzer: SecurityAnalyzer) -> None:
        """Calls with other names, or computed callees, are not flagged."""
        root = make_node(
            NodeKind.MODULE,
            make_node(NodeKind.CALL, name="evaluate"),
            make_node(NodeKind.CALL, name=None),
        )
        assert list(analyzer.analyze(root, context_for())) == []

    def test_inner_html(self, analyzer: SecurityAnalyzer) -> None:
        """Member access to innerHTML is high."""
        root = make_node(NodeKind.MODULE, make_node(NodeKind.MEMBER, name="innerHTML", line=2))

        (finding,) = analyzer.analyze(root, context_for())

        assert finding.severity is Severity.HIGH
        assert finding.title == "Potential XSS vulnerability"
        assert finding.metadata["tags"] == ("xss",)

    def test_disabled_rule(self, analyzer: SecurityAnalyzer) -> None:
        """Disabled rules are skipped while the others still run."""
        root = make_node(
            NodeKind.MODULE,
            make_node(NodeKind.CALL, name="eval"),
            make_node(NodeKind.MEMBER, name="innerHTML"),
        )

        findings = list(analyzer.analyze(root, context_for(overrides={"no-eval": False})))

        assert [f.rule.id for f in findings] == ["no-innerHTML"]


class TestPerformanceAnalyzer:
    """Tests for PerformanceAnalyzer."""

    @pytest.fixture
    def analyzer(self) -> PerformanceAnalyzer:
        """Create the analyzer."""
        return PerformanceAnalyzer()

    def test_two_levels_is_clean(self, analyzer: PerformanceAnalyzer) -> None:
        """Depth equal to the threshold is allowed."""
        root = make_node(NodeKind.MODULE, nested_loops(2))
        assert list(analyzer.analyze(root, context_for())) == []

    def test_three_levels(self, analyzer: PerformanceAnalyzer) -> None:
        """Three nested loops give one finding at the outer loop."""
        root = make_node(NodeKind.MODULE, nested_loops(3, line=4))

        (finding,) = analyzer.analyze(root, context_for())

        assert finding.severity is Severity.MEDIUM
        assert finding.title == "Deeply nested loops (3 levels)"
        assert finding.location.line == 4

    def test_four_levels_reports_each_offending_loop(self, analyzer: PerformanceAnalyzer) -> None:
        """Every loop whose own nest exceeds the threshold is reported."""
        root = make_node(NodeKind.MODULE, nested_loops(4))

        titles = [f.title for f in analyzer.analyze(root, context_for())]

        assert titles == ["Deeply nested loops (4 levels)", "Deeply nested loops (3 levels)"]

    def test_large_array(self, analyzer: PerformanceAnalyzer) -> None:
        """Arrays above the size threshold are low severity."""
        root = make_node(
            NodeKind.MODULE,
            make_node(NodeKind.ARRAY, element_count=1000),
            make_node(NodeKind.ARRAY, element_count=1001, line=7),
        )

        (finding,) = analyzer.analyze(root, context_for())

        assert finding.severity is Severity.LOW
        assert finding.description == "Array with 1001 elements may impact performance."
        assert finding.location.line == 7

    def test_custom_loop_threshold(self, analyzer: PerformanceAnalyzer) -> None:
        """The loop depth threshold is configurable."""
        context = context_for(overrides={"max-nested-loops": {"threshold": 3}})
        root = make_node(NodeKind.MODULE, nested_loops(3))
        assert list(analyzer.analyze(root, context)) == []


class TestBugAnalyzer:
    """Tests for BugAnalyzer."""

    @pytest.fixture
    def analyzer(self) -> BugAnalyzer:
        """Create the analyzer."""
        return BugAnalyzer()

    def test_statement_after_return(self, analyzer: BugAnalyzer) -> None:
        """The statement following a return is reported."""
        after = make_node(NodeKind.CALL, line=3, column=3)
        block = make_node(NodeKind.BLOCK, make_node(NodeKind.RETURN, line=2), after)

        (finding,) = analyzer.analyze(make_node(NodeKind.MODULE, block), context_for())

        assert finding.rule.id == "no-unreachable"
        assert finding.severity is Severity.MEDIUM
        assert (finding.location.line, finding.location.column) == (3, 3)

    def test_trailing_return_is_clean(self, analyzer: BugAnalyzer) -> None:
        """A return that ends its block is fine."""
        block = make_node(NodeKind.BLOCK, make_node(NodeKind.CALL), make_node(NodeKind.RETURN))
        assert list(analyzer.analyze(block, context_for())) == []

    def test_wrapped_return(self, analyzer: BugAnalyzer) -> None:
        """Returns wrapped in an expression statement are recognized."""
        wrapped = make_node(NodeKind.OTHER, make_node(NodeKind.RETURN), type="expression_statement")
        block = make_node(NodeKind.BLOCK, wrapped, make_node(NodeKind.OTHER, line=3))

        (finding,) = analyzer.analyze(block, context_for("rust"))

        assert finding.location.line == 3

    def test_assignment_in_condition(self, analyzer: BugAnalyzer) -> None:
        """Assignment as an if/while test is high severity, located at the test."""
        test = make_node(NodeKind.ASSIGNMENT, line=2, column=5)
        root = make_node(
            NodeKind.MODULE,
            make_node(NodeKind.IF, test=test, line=2),
            make_node(NodeKind.WHILE, test=make_node(NodeKind.BINARY, operator="==")),
        )

        (finding,) = analyzer.analyze(root, context_for())

        assert finding.rule.id == "no-assignment-in-condition"
        assert finding.severity is Severity.HIGH
        assert (finding.location.line, finding.location.column) == (2, 5)
