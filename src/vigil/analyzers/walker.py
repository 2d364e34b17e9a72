"""Traversal utilities over the canonical syntax tree.

The walker is iterative so that deeply nested trees cannot exhaust the
interpreter stack. Parent context travels on the traversal stack; nodes are
never mutated.
"""

import time
from collections.abc import Callable, Iterator

from vigil.models.canonical import SyntaxNode

# How many nodes to visit between deadline checks
DEADLINE_CHECK_INTERVAL = 512

Visitor = Callable[[SyntaxNode, SyntaxNode | None], None]


class AnalysisTimeout(Exception):
    """Raised when a file exceeds its analysis time budget."""

    def __init__(self, budget: float) -> None:
        self.budget = budget
        super().__init__(f"Analysis exceeded time budget of {budget:g}s")


class Deadline:
    """Cooperative time budget for one file.

    Usage:
        deadline = Deadline(30.0)
        ...
        deadline.check()  # raises AnalysisTimeout once the budget is spent
    """

    def __init__(self, budget: float, clock: Callable[[], float] = time.monotonic) -> None:
        """Start the budget now.

        Args:
            budget: Allowed wall-clock seconds
            clock: Monotonic clock (injectable for tests)
        """
        self.budget = budget
        self._clock = clock
        self._expires_at = clock() + budget

    @property
    def expired(self) -> bool:
        """Return True once the budget is spent."""
        return self._clock() >= self._expires_at

    def check(self) -> None:
        """Raise AnalysisTimeout if the budget is spent."""
        if self.expired:
            raise AnalysisTimeout(self.budget)


def traverse(
    root: SyntaxNode,
    deadline: Deadline | None = None,
) -> Iterator[tuple[SyntaxNode, SyntaxNode | None]]:
    """Yield ``(node, parent)`` pairs in pre-order, source order.

    Args:
        root: Root of the tree
        deadline: Optional time budget polled during traversal

    Yields:
        Each reachable node with its immediate parent (None for the root)

    Raises:
        AnalysisTimeout: If the deadline expires mid-traversal
    """
    stack: list[tuple[SyntaxNode, SyntaxNode | None]] = [(root, None)]
    visited = 0

    while stack:
        node, parent = stack.pop()
        yield node, parent

        visited += 1
        if deadline is not None and visited % DEADLINE_CHECK_INTERVAL == 0:
            deadline.check()

        # Reversed so the leftmost child is popped first
        for child in reversed(node.children):
            stack.append((child, node))


def walk(
    root: SyntaxNode,
    visitor: Visitor,
    deadline: Deadline | None = None,
) -> None:
    """Call ``visitor(node, parent)`` for every node in pre-order."""
    for node, parent in traverse(root, deadline):
        visitor(node, parent)


def max_loop_depth(node: SyntaxNode) -> int:
    """Return the deepest loop nesting in the subtree rooted at ``node``.

    ``node`` itself counts as level 1 when it is a loop. Depth is tracked per
    branch, so sibling loops do not add up; only nesting does.
    """
    deepest = 0
    stack: list[tuple[SyntaxNode, int]] = [(node, 0)]

    while stack:
        current, depth = stack.pop()
        if current.is_loop:
            depth += 1
            deepest = max(deepest, depth)
        for child in current.children:
            stack.append((child, depth))

    return deepest
