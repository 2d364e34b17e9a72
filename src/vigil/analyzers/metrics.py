"""File metrics: cyclomatic complexity, function and class counts."""

from vigil.analyzers.walker import Deadline, traverse
from vigil.models import FileMetrics
from vigil.models.canonical import BRANCH_KINDS, NodeKind, SyntaxNode


def cyclomatic_complexity(root: SyntaxNode, deadline: Deadline | None = None) -> int:
    """Compute the cyclomatic complexity of a whole file.

    Starts at 1 and adds one per if (including else-if/elif), ternary, switch
    case (including default), loop of any kind, catch clause, and each
    short-circuit `&&` / `||` operator.
    """
    complexity = 1
    for node, _parent in traverse(root, deadline):
        if node.kind in BRANCH_KINDS or node.is_short_circuit:
            complexity += 1
    return complexity


def collect_metrics(
    root: SyntaxNode,
    lines: int,
    deadline: Deadline | None = None,
) -> FileMetrics:
    """Collect all metrics for a parsed file in one traversal.

    Args:
        root: Canonical tree of the file
        lines: Line count of the raw content
        deadline: Optional time budget

    Returns:
        FileMetrics for the file
    """
    complexity = 1
    functions = 0
    classes = 0

    for node, _parent in traverse(root, deadline):
        if node.kind in BRANCH_KINDS or node.is_short_circuit:
            complexity += 1
        elif node.kind is NodeKind.FUNCTION:
            functions += 1
        elif node.kind is NodeKind.CLASS:
            classes += 1

    return FileMetrics(
        complexity=complexity,
        lines=lines,
        functions=functions,
        classes=classes,
    )
