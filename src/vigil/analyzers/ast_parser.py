"""Multi-language parsing via tree-sitter.

Turns source text into the canonical SyntaxNode tree for:
- JavaScript (.js, .jsx, .mjs, .cjs)
- TypeScript (.ts, .tsx)
- Python (.py)
- Java (.java)
- Go (.go)
- Rust (.rs)
- C++ (.cpp, .cc, .cxx, .hpp, .h)

Each language has a GrammarTable that folds grammar node types into NodeKind
members and names the fields that carry callees, member properties and
conditions. Analyzers never see tree-sitter objects.

NOTE: tree-sitter is a required dependency. `vigil check` verifies it before
analysis; no fallback parser is implemented.
"""

from dataclasses import dataclass, field
from typing import Any

from vigil.analyzers.walker import DEADLINE_CHECK_INTERVAL, Deadline
from vigil.models.canonical import NodeKind, SyntaxNode
from vigil.utils.logging import get_logger

_logger = get_logger()

# Grammar node types dropped during normalization
COMMENT_TYPES = frozenset({"comment", "line_comment", "block_comment"})

# Wrappers removed when extracting an if/while condition
CONDITION_WRAPPERS = frozenset({"parenthesized_expression", "condition_clause"})

# Keyword operators folded onto their symbolic equivalents
OPERATOR_ALIASES = {"and": "&&", "or": "||"}

# Operators that make a binary node a logical one
LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})


class TreeSitterUnavailableError(Exception):
    """Raised when tree-sitter is not available.

    Run `vigil check` to verify dependencies.
    """

    def __init__(self, message: str | None = None) -> None:
        self.message = message or (
            "tree-sitter is not available. "
            "Run `vigil check` to verify dependencies."
        )
        super().__init__(self.message)


class ParseError(Exception):
    """Raised when source text is not syntactically valid.

    Attributes:
        language: Language the text was parsed as
        message: Human-readable description including the location
        line: 1-based line of the first syntax error, if known
        column: 1-based column of the first syntax error, if known
        cause: Underlying exception, if any
    """

    def __init__(
        self,
        language: str,
        message: str,
        cause: Exception | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.language = language
        self.message = message
        self.cause = cause
        self.line = line
        self.column = column
        super().__init__(message)


@dataclass(frozen=True)
class GrammarTable:
    """Mapping from one tree-sitter grammar to the canonical vocabulary.

    Attributes:
        language: Language id
        grammars: Grammar names to try, in order
        kinds: Grammar node type to NodeKind
        callee_fields: Fields holding the callee of a call node
        property_fields: Fields holding the property of a member access
        identifier_types: Node types whose text is an identifier
    """

    language: str
    grammars: tuple[str, ...]
    kinds: dict[str, NodeKind]
    callee_fields: tuple[str, ...] = ("function",)
    property_fields: tuple[str, ...] = ("property",)
    identifier_types: frozenset[str] = field(default_factory=lambda: frozenset({"identifier"}))


# =============================================================================
# Grammar tables
# =============================================================================

_JAVASCRIPT_KINDS: dict[str, NodeKind] = {
    "program": NodeKind.MODULE,
    "statement_block": NodeKind.BLOCK,
    "if_statement": NodeKind.IF,
    "ternary_expression": NodeKind.CONDITIONAL,
    "switch_case": NodeKind.SWITCH_CASE,
    "switch_default": NodeKind.SWITCH_CASE,
    "for_statement": NodeKind.FOR,
    "for_in_statement": NodeKind.FOR_IN,
    "while_statement": NodeKind.WHILE,
    "do_statement": NodeKind.DO_WHILE,
    "catch_clause": NodeKind.CATCH,
    "binary_expression": NodeKind.BINARY,
    "function_declaration": NodeKind.FUNCTION,
    "function_expression": NodeKind.FUNCTION,
    "function": NodeKind.FUNCTION,
    "generator_function_declaration": NodeKind.FUNCTION,
    "generator_function": NodeKind.FUNCTION,
    "arrow_function": NodeKind.FUNCTION,
    "method_definition": NodeKind.FUNCTION,
    "class_declaration": NodeKind.CLASS,
    "return_statement": NodeKind.RETURN,
    "call_expression": NodeKind.CALL,
    "member_expression": NodeKind.MEMBER,
    "array": NodeKind.ARRAY,
    "assignment_expression": NodeKind.ASSIGNMENT,
    "augmented_assignment_expression": NodeKind.ASSIGNMENT,
    "identifier": NodeKind.IDENTIFIER,
}

_TYPESCRIPT_KINDS: dict[str, NodeKind] = {
    **_JAVASCRIPT_KINDS,
    "abstract_class_declaration": NodeKind.CLASS,
}

_PYTHON_KINDS: dict[str, NodeKind] = {
    "module": NodeKind.MODULE,
    "block": NodeKind.BLOCK,
    "if_statement": NodeKind.IF,
    "elif_clause": NodeKind.IF,
    "conditional_expression": NodeKind.CONDITIONAL,
    "case_clause": NodeKind.SWITCH_CASE,
    "for_statement": NodeKind.FOR_IN,
    "while_statement": NodeKind.WHILE,
    "except_clause": NodeKind.CATCH,
    "except_group_clause": NodeKind.CATCH,
    "boolean_operator": NodeKind.BINARY,
    "binary_operator": NodeKind.BINARY,
    "function_definition": NodeKind.FUNCTION,
    "lambda": NodeKind.FUNCTION,
    "class_definition": NodeKind.CLASS,
    "return_statement": NodeKind.RETURN,
    "call": NodeKind.CALL,
    "attribute": NodeKind.MEMBER,
    "list": NodeKind.ARRAY,
    "assignment": NodeKind.ASSIGNMENT,
    "augmented_assignment": NodeKind.ASSIGNMENT,
    "identifier": NodeKind.IDENTIFIER,
}

_JAVA_KINDS: dict[str, NodeKind] = {
    "program": NodeKind.MODULE,
    "block": NodeKind.BLOCK,
    "if_statement": NodeKind.IF,
    "ternary_expression": NodeKind.CONDITIONAL,
    "switch_label": NodeKind.SWITCH_CASE,
    "for_statement": NodeKind.FOR,
    "enhanced_for_statement": NodeKind.FOR_IN,
    "while_statement": NodeKind.WHILE,
    "do_statement": NodeKind.DO_WHILE,
    "catch_clause": NodeKind.CATCH,
    "binary_expression": NodeKind.BINARY,
    "method_declaration": NodeKind.FUNCTION,
    "constructor_declaration": NodeKind.FUNCTION,
    "lambda_expression": NodeKind.FUNCTION,
    "class_declaration": NodeKind.CLASS,
    "record_declaration": NodeKind.CLASS,
    "return_statement": NodeKind.RETURN,
    "method_invocation": NodeKind.CALL,
    "field_access": NodeKind.MEMBER,
    "array_initializer": NodeKind.ARRAY,
    "assignment_expression": NodeKind.ASSIGNMENT,
    "identifier": NodeKind.IDENTIFIER,
}

_GO_KINDS: dict[str, NodeKind] = {
    "source_file": NodeKind.MODULE,
    "block": NodeKind.BLOCK,
    "statement_list": NodeKind.BLOCK,
    "if_statement": NodeKind.IF,
    "expression_case": NodeKind.SWITCH_CASE,
    "type_case": NodeKind.SWITCH_CASE,
    "default_case": NodeKind.SWITCH_CASE,
    "communication_case": NodeKind.SWITCH_CASE,
    "for_statement": NodeKind.FOR,
    "binary_expression": NodeKind.BINARY,
    "function_declaration": NodeKind.FUNCTION,
    "method_declaration": NodeKind.FUNCTION,
    "func_literal": NodeKind.FUNCTION,
    "struct_type": NodeKind.CLASS,
    "return_statement": NodeKind.RETURN,
    "call_expression": NodeKind.CALL,
    "selector_expression": NodeKind.MEMBER,
    "assignment_statement": NodeKind.ASSIGNMENT,
    "identifier": NodeKind.IDENTIFIER,
}

_RUST_KINDS: dict[str, NodeKind] = {
    "source_file": NodeKind.MODULE,
    "block": NodeKind.BLOCK,
    "if_expression": NodeKind.IF,
    "match_arm": NodeKind.SWITCH_CASE,
    "for_expression": NodeKind.FOR_IN,
    "while_expression": NodeKind.WHILE,
    "loop_expression": NodeKind.WHILE,
    "binary_expression": NodeKind.BINARY,
    "function_item": NodeKind.FUNCTION,
    "closure_expression": NodeKind.FUNCTION,
    "struct_item": NodeKind.CLASS,
    "return_expression": NodeKind.RETURN,
    "call_expression": NodeKind.CALL,
    "field_expression": NodeKind.MEMBER,
    "array_expression": NodeKind.ARRAY,
    "assignment_expression": NodeKind.ASSIGNMENT,
    "compound_assignment_expr": NodeKind.ASSIGNMENT,
    "identifier": NodeKind.IDENTIFIER,
}

_CPP_KINDS: dict[str, NodeKind] = {
    "translation_unit": NodeKind.MODULE,
    "compound_statement": NodeKind.BLOCK,
    "if_statement": NodeKind.IF,
    "conditional_expression": NodeKind.CONDITIONAL,
    "case_statement": NodeKind.SWITCH_CASE,
    "for_statement": NodeKind.FOR,
    "for_range_loop": NodeKind.FOR_IN,
    "while_statement": NodeKind.WHILE,
    "do_statement": NodeKind.DO_WHILE,
    "catch_clause": NodeKind.CATCH,
    "binary_expression": NodeKind.BINARY,
    "function_definition": NodeKind.FUNCTION,
    "lambda_expression": NodeKind.FUNCTION,
    "class_specifier": NodeKind.CLASS,
    "struct_specifier": NodeKind.CLASS,
    "return_statement": NodeKind.RETURN,
    "call_expression": NodeKind.CALL,
    "field_expression": NodeKind.MEMBER,
    "initializer_list": NodeKind.ARRAY,
    "assignment_expression": NodeKind.ASSIGNMENT,
    "identifier": NodeKind.IDENTIFIER,
}

GRAMMAR_TABLES: dict[str, GrammarTable] = {
    "javascript": GrammarTable("javascript", ("javascript",), _JAVASCRIPT_KINDS),
    "typescript": GrammarTable("typescript", ("typescript", "tsx"), _TYPESCRIPT_KINDS),
    "python": GrammarTable(
        "python", ("python",), _PYTHON_KINDS, property_fields=("attribute",)
    ),
    "java": GrammarTable(
        "java", ("java",), _JAVA_KINDS, callee_fields=("name",), property_fields=("field",)
    ),
    "go": GrammarTable("go", ("go",), _GO_KINDS, property_fields=("field",)),
    "rust": GrammarTable("rust", ("rust",), _RUST_KINDS, property_fields=("field",)),
    "cpp": GrammarTable("cpp", ("cpp",), _CPP_KINDS, property_fields=("field",)),
}


# =============================================================================
# Parser adapter
# =============================================================================


class _Frame:
    """Pending tree-sitter node during iterative normalization."""

    __slots__ = ("node", "kids", "index", "built")

    def __init__(self, node: Any, kids: list[Any]) -> None:
        self.node = node
        self.kids = kids
        self.index = 0
        self.built: list[SyntaxNode] = []


class ParserAdapter:
    """Parses source text into canonical SyntaxNode trees using tree-sitter.

    Grammars are loaded lazily on first use and cached per adapter. An adapter
    holds no per-file state, but tree-sitter parsers are not thread-safe, so
    concurrent callers should each own an adapter.
    """

    def __init__(self, tolerant: bool = False) -> None:
        """Initialize the adapter.

        Args:
            tolerant: Return a tree containing ERROR nodes instead of raising
                ParseError when the source has syntax errors
        """
        self.tolerant = tolerant
        self._parsers: dict[str, Any] = {}
        self._get_parser: Any = None
        self._init_error: str | None = None

    def _ensure_initialized(self) -> None:
        """Import tree-sitter-language-pack.

        Raises:
            TreeSitterUnavailableError: If tree-sitter cannot be imported
        """
        if self._get_parser is not None:
            return

        if self._init_error:
            raise TreeSitterUnavailableError(self._init_error)

        try:
            from tree_sitter_language_pack import get_parser
        except ImportError as e:
            self._init_error = f"tree-sitter-language-pack not installed: {e}"
            raise TreeSitterUnavailableError(self._init_error) from e

        self._get_parser = get_parser

    def _parser_for(self, grammar: str, language: str) -> Any:
        """Return the cached parser for a grammar, loading it if needed.

        Raises:
            ParseError: If the grammar cannot be loaded
        """
        self._ensure_initialized()

        parser = self._parsers.get(grammar)
        if parser is None:
            try:
                parser = self._get_parser(grammar)
            except Exception as e:
                raise ParseError(language, f"No parser available for {grammar}: {e}", cause=e) from e
            self._parsers[grammar] = parser
            _logger.debug(f"Initialized tree-sitter parser for {grammar}")
        return parser

    def check_available(self) -> bool:
        """Check if tree-sitter is available.

        Returns:
            True if tree-sitter is functional, False otherwise
        """
        try:
            self._ensure_initialized()
            return True
        except TreeSitterUnavailableError:
            return False

    def get_supported_languages(self) -> list[str]:
        """Get list of languages this adapter can parse."""
        return list(GRAMMAR_TABLES.keys())

    def parse(
        self,
        source: str,
        language: str,
        deadline: Deadline | None = None,
    ) -> SyntaxNode:
        """Parse source text into a canonical tree.

        Args:
            source: Full file text
            language: Language id (see GRAMMAR_TABLES)
            deadline: Optional time budget polled during normalization

        Returns:
            Root SyntaxNode of kind MODULE

        Raises:
            ParseError: If the text has syntax errors (and the adapter is not
                tolerant) or the language has no grammar
            TreeSitterUnavailableError: If tree-sitter is not installed
            AnalysisTimeout: If the deadline expires during normalization
        """
        table = GRAMMAR_TABLES.get(language)
        if table is None:
            raise ParseError(language, f"Unsupported language: {language}")

        source_bytes = source.encode("utf-8")
        tree = self._parse_tree(source_bytes, table)
        root = tree.root_node

        if root.has_error and not self.tolerant:
            line, column, message = _describe_first_error(root)
            raise ParseError(language, message, line=line, column=column)

        return _Normalizer(table, source_bytes).run(root, deadline)

    def _parse_tree(self, source_bytes: bytes, table: GrammarTable) -> Any:
        """Parse with each candidate grammar, preferring an error-free tree."""
        first_tree = None
        for grammar in table.grammars:
            parser = self._parser_for(grammar, table.language)
            tree = parser.parse(source_bytes)
            if not tree.root_node.has_error:
                return tree
            if first_tree is None:
                first_tree = tree
        return first_tree


def _describe_first_error(root: Any) -> tuple[int, int, str]:
    """Locate the first ERROR or MISSING node in document order.

    Returns:
        Tuple of (line, column, message), 1-based
    """
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_missing:
            row, col = node.start_point
            return row + 1, col + 1, (
                f"Missing '{node.type}' at line {row + 1}, column {col + 1}"
            )
        if node.is_error:
            row, col = node.start_point
            return row + 1, col + 1, f"Unexpected token at line {row + 1}, column {col + 1}"
        if node.has_error:
            stack.extend(reversed(node.children))

    row, col = root.start_point
    return row + 1, col + 1, f"Syntax error at line {row + 1}, column {col + 1}"


class _Normalizer:
    """Builds a SyntaxNode tree bottom-up from a tree-sitter tree."""

    def __init__(self, table: GrammarTable, source_bytes: bytes) -> None:
        self.table = table
        self.source_bytes = source_bytes
        self._ascii = source_bytes.isascii()
        self._lines: list[bytes] | None = None

    def run(self, root: Any, deadline: Deadline | None) -> SyntaxNode:
        """Normalize the whole tree without recursion."""
        stack = [_Frame(root, self._children(root))]
        built_count = 0

        while True:
            frame = stack[-1]
            if frame.index < len(frame.kids):
                child = frame.kids[frame.index]
                frame.index += 1
                stack.append(_Frame(child, self._children(child)))
                continue

            stack.pop()
            node = self._build(frame)
            built_count += 1
            if deadline is not None and built_count % DEADLINE_CHECK_INTERVAL == 0:
                deadline.check()

            if not stack:
                return node
            stack[-1].built.append(node)

    def _children(self, node: Any) -> list[Any]:
        return [c for c in node.named_children if c.type not in COMMENT_TYPES]

    def _text(self, node: Any) -> str:
        return self.source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def _column(self, row: int, byte_column: int) -> int:
        """Convert a tree-sitter byte column to a 1-based character column."""
        if self._ascii:
            return byte_column + 1
        if self._lines is None:
            self._lines = self.source_bytes.split(b"\n")
        if row >= len(self._lines):
            return byte_column + 1
        prefix = self._lines[row][:byte_column]
        return len(prefix.decode("utf-8", errors="replace")) + 1

    def _build(self, frame: _Frame) -> SyntaxNode:
        ts_node = frame.node
        children = tuple(frame.built)

        if ts_node.is_error:
            kind = NodeKind.ERROR
        else:
            kind = self.table.kinds.get(ts_node.type, NodeKind.OTHER)

        name: str | None = None
        operator: str | None = None
        test: SyntaxNode | None = None
        element_count: int | None = None

        if kind is NodeKind.IDENTIFIER:
            name = self._text(ts_node)
        elif kind is NodeKind.CALL:
            callee = _field(ts_node, self.table.callee_fields)
            if callee is not None and callee.type in self.table.identifier_types:
                name = self._text(callee)
        elif kind is NodeKind.MEMBER:
            prop = _field(ts_node, self.table.property_fields)
            if prop is not None:
                name = self._text(prop)
        elif kind is NodeKind.BINARY:
            operator = self._operator(ts_node)
            if operator in LOGICAL_OPERATORS:
                kind = NodeKind.LOGICAL
        elif kind in (NodeKind.IF, NodeKind.WHILE, NodeKind.DO_WHILE):
            test = self._condition(ts_node, frame.kids, children)
        elif kind is NodeKind.ARRAY:
            element_count = len(children)

        start_row, start_col = ts_node.start_point
        end_row, end_col = ts_node.end_point

        return SyntaxNode(
            kind=kind,
            type=ts_node.type,
            line=start_row + 1,
            column=self._column(start_row, start_col),
            end_line=end_row + 1,
            end_column=self._column(end_row, end_col),
            name=name,
            operator=operator,
            test=test,
            element_count=element_count,
            children=children,
        )

    def _operator(self, ts_node: Any) -> str | None:
        op_node = ts_node.child_by_field_name("operator")
        if op_node is None:
            # Some grammars leave the operator as an unnamed, unlabeled token
            for child in ts_node.children:
                if not child.is_named:
                    op_node = child
                    break
        if op_node is None:
            return None
        op = self._text(op_node).strip()
        return OPERATOR_ALIASES.get(op, op)

    def _condition(
        self,
        ts_node: Any,
        kids: list[Any],
        children: tuple[SyntaxNode, ...],
    ) -> SyntaxNode | None:
        cond = ts_node.child_by_field_name("condition")
        if cond is None:
            return None

        test: SyntaxNode | None = None
        for ts_kid, built in zip(kids, children):
            if (
                ts_kid.start_byte == cond.start_byte
                and ts_kid.end_byte == cond.end_byte
                and ts_kid.type == cond.type
            ):
                test = built
                break

        while test is not None and test.type in CONDITION_WRAPPERS and test.children:
            test = test.children[-1]
        return test


def _field(ts_node: Any, names: tuple[str, ...]) -> Any:
    """Return the first present child among the named fields."""
    for name in names:
        child = ts_node.child_by_field_name(name)
        if child is not None:
            return child
    return None
