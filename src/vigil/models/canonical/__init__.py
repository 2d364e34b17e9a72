"""Canonical data formats.

These are the standard internal formats that all parser front-ends MUST
produce. Analyzers only work with these formats, never with grammar-specific
trees, so a front-end can be swapped without touching any analyzer.

Canonical formats:
- SyntaxNode: Normalized syntax tree node
- NodeKind: Closed vocabulary of node kinds
"""

from vigil.models.canonical.ast import (
    BRANCH_KINDS,
    LOOP_KINDS,
    SHORT_CIRCUIT_OPERATORS,
    NodeKind,
    SyntaxNode,
)

__all__ = [
    "BRANCH_KINDS",
    "LOOP_KINDS",
    "SHORT_CIRCUIT_OPERATORS",
    "NodeKind",
    "SyntaxNode",
]
