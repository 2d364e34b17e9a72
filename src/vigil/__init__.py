"""Vigil - AST-based rule-matching engine for code review.

Vigil parses source files into a normalized syntax tree and walks it to flag
complexity, security, performance, and bug patterns. Each detection is
reported as a structured Finding with severity, location, and a suggested fix.

Core principles:
- Fail-soft per file: one bad file never aborts a repository run
- Read-only rules: a Rule Set is an explicit value, never mutated mid-run
- Deterministic output: same input produces the same findings in the same order
- Pluggable front-ends: language grammars are consumed, not reimplemented
"""

__version__ = "0.1.0"
__author__ = "Vigil Contributors"
