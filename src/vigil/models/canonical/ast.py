"""Canonical syntax tree format.

Every language front-end produces this tree. Grammar-specific node types are
folded into a small set of NodeKind members so that analyzers dispatch on a
closed vocabulary instead of probing grammar-specific fields.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class NodeKind(Enum):
    """Syntactic kind of a canonical node."""

    MODULE = "module"
    BLOCK = "block"
    IF = "if"
    CONDITIONAL = "conditional"
    SWITCH_CASE = "switch_case"
    FOR = "for"
    FOR_IN = "for_in"
    WHILE = "while"
    DO_WHILE = "do_while"
    CATCH = "catch"
    LOGICAL = "logical"
    BINARY = "binary"
    FUNCTION = "function"
    CLASS = "class"
    RETURN = "return"
    CALL = "call"
    MEMBER = "member"
    ARRAY = "array"
    ASSIGNMENT = "assignment"
    IDENTIFIER = "identifier"
    ERROR = "error"
    OTHER = "other"


LOOP_KINDS: frozenset[NodeKind] = frozenset(
    {NodeKind.FOR, NodeKind.FOR_IN, NodeKind.WHILE, NodeKind.DO_WHILE}
)

# Kinds that add one path to cyclomatic complexity unconditionally
BRANCH_KINDS: frozenset[NodeKind] = frozenset(
    {NodeKind.IF, NodeKind.CONDITIONAL, NodeKind.SWITCH_CASE, NodeKind.CATCH}
) | LOOP_KINDS

# Logical operators that count as a branch
SHORT_CIRCUIT_OPERATORS: frozenset[str] = frozenset({"&&", "||"})


@dataclass(frozen=True)
class SyntaxNode:
    """Canonical syntax tree node.

    Positions are 1-based for both lines and columns.

    Attributes:
        kind: Canonical node kind
        type: Raw grammar node type (e.g. "call_expression")
        line: Start line
        column: Start column
        end_line: End line
        end_column: End column
        name: Identifier text, callee name for calls, property name for member access
        operator: Normalized operator for logical/binary nodes ("&&", "||", ...)
        test: Condition of an if/while, with parentheses unwrapped
        element_count: Number of elements of an array literal
        children: Named, non-comment child nodes in source order
    """

    kind: NodeKind
    type: str
    line: int
    column: int
    end_line: int
    end_column: int
    name: str | None = None
    operator: str | None = None
    test: "SyntaxNode | None" = field(default=None, repr=False, compare=False)
    element_count: int | None = None
    children: tuple["SyntaxNode", ...] = field(default=(), repr=False)

    @property
    def is_loop(self) -> bool:
        """Return True if this node is a loop of any kind."""
        return self.kind in LOOP_KINDS

    @property
    def is_short_circuit(self) -> bool:
        """Return True for `&&` / `||` logical nodes."""
        return self.kind is NodeKind.LOGICAL and self.operator in SHORT_CIRCUIT_OPERATORS

    def iter_children(self, kind: NodeKind | None = None) -> Iterator["SyntaxNode"]:
        """Iterate direct children, optionally filtered by kind."""
        for child in self.children:
            if kind is None or child.kind is kind:
                yield child

    def next_sibling_of(self, child: "SyntaxNode") -> "SyntaxNode | None":
        """Return the child following ``child`` in this node, if any."""
        for index, candidate in enumerate(self.children):
            if candidate is child:
                if index + 1 < len(self.children):
                    return self.children[index + 1]
                return None
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a nested dictionary (for debugging and fixtures)."""
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "type": self.type,
            "line": self.line,
            "column": self.column,
        }
        if self.name is not None:
            result["name"] = self.name
        if self.operator is not None:
            result["operator"] = self.operator
        if self.element_count is not None:
            result["element_count"] = self.element_count
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        return result
