"""Test fixtures for Vigil.

This package provides sample repositories and helpers for building canonical
syntax trees by hand, so walker and analyzer tests do not depend on a grammar.

Sample Repositories:
- sample_repos/web_app: JavaScript and Python sources with known findings,
  a malformed file, and an excluded node_modules directory
"""

from pathlib import Path
from typing import Any

from vigil.models.canonical import NodeKind, SyntaxNode

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

# Path to sample repositories
SAMPLE_REPOS_DIR = FIXTURES_DIR / "sample_repos"

# Specific sample repository paths
WEB_APP_PATH = SAMPLE_REPOS_DIR / "web_app"


def get_sample_repo(name: str) -> Path:
    """Get path to a sample repository.

    Args:
        name: Name of the sample repository

    Returns:
        Path to the sample repository

    Raises:
        ValueError: If repository doesn't exist
    """
    repo_path = SAMPLE_REPOS_DIR / name
    if not repo_path.exists():
        raise ValueError(f"Sample repository not found: {name}")
    return repo_path


def make_node(kind: NodeKind, *children: SyntaxNode, line: int = 1, **fields: Any) -> SyntaxNode:
    """Build a canonical node for tests.

    Args:
        kind: Node kind
        *children: Child nodes in source order
        line: Start line (end line defaults to the same)
        **fields: Any other SyntaxNode field (type, column, name, test, ...)
    """
    fields.setdefault("type", kind.value)
    fields.setdefault("column", 1)
    fields.setdefault("end_line", line)
    fields.setdefault("end_column", 1)
    return SyntaxNode(kind=kind, line=line, children=tuple(children), **fields)


def nested_loops(depth: int, kind: NodeKind = NodeKind.FOR, line: int = 1) -> SyntaxNode:
    """Build ``depth`` loops nested inside each other, outermost first."""
    node = make_node(NodeKind.BLOCK, line=line + depth)
    for level in reversed(range(depth)):
        node = make_node(kind, make_node(NodeKind.BLOCK, node, line=line + level), line=line + level)
    return node
