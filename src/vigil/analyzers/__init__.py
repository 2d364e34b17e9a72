"""Vigil analyzers - syntax tree passes that produce findings.

Analyzers:
- Language resolution: file extension to language id
- Parser Adapter: tree-sitter source parsing into the canonical tree
- Tree Walker: iterative traversal and loop-depth measurement
- Complexity / Security / Performance / Bugs: rule-driven finding passes
- Metrics: cyclomatic complexity, function and class counts
"""

from vigil.analyzers.ast_parser import ParseError, ParserAdapter, TreeSitterUnavailableError
from vigil.analyzers.base import AnalysisContext, Analyzer, AnalyzerFailure
from vigil.analyzers.bugs import BugAnalyzer
from vigil.analyzers.complexity import ComplexityAnalyzer
from vigil.analyzers.languages import resolve_language, supported_languages
from vigil.analyzers.metrics import collect_metrics, cyclomatic_complexity
from vigil.analyzers.performance import PerformanceAnalyzer
from vigil.analyzers.registry import AnalyzerRegistry
from vigil.analyzers.security import SecurityAnalyzer
from vigil.analyzers.walker import AnalysisTimeout, Deadline, max_loop_depth, traverse, walk

__all__ = [
    "AnalysisContext",
    "AnalysisTimeout",
    "Analyzer",
    "AnalyzerFailure",
    "AnalyzerRegistry",
    "BugAnalyzer",
    "ComplexityAnalyzer",
    "Deadline",
    "ParseError",
    "ParserAdapter",
    "PerformanceAnalyzer",
    "SecurityAnalyzer",
    "TreeSitterUnavailableError",
    "collect_metrics",
    "cyclomatic_complexity",
    "default_analyzers",
    "max_loop_depth",
    "resolve_language",
    "supported_languages",
    "traverse",
    "walk",
]


def default_analyzers(registry: AnalyzerRegistry | None = None) -> AnalyzerRegistry:
    """Register the built-in analyzers in their run order.

    Args:
        registry: Registry to populate (a new one if None)

    Returns:
        Populated AnalyzerRegistry
    """
    if registry is None:
        registry = AnalyzerRegistry()

    registry.register(ComplexityAnalyzer())
    registry.register(SecurityAnalyzer())
    registry.register(PerformanceAnalyzer())
    registry.register(BugAnalyzer())

    return registry
