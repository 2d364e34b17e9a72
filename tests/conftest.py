"""Shared pytest fixtures for Vigil tests.

This module provides common fixtures used across unit and integration tests.
Fixtures are organized by category:
- Path fixtures: Sample repositories and temporary working trees
- Source fixtures: Small programs that trigger exactly one kind of finding
- Engine fixtures: Analyzers and rule sets built with defaults
"""

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from vigil.engine import FileAnalyzer
from vigil.rules import RuleSet

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_repos_dir(fixtures_dir: Path) -> Path:
    """Return the path to sample repository fixtures."""
    return fixtures_dir / "sample_repos"


@pytest.fixture
def temp_repo(tmp_path: Path) -> Path:
    """Create a small repository with one file per outcome.

    Layout:
        src/index.js      - eval() call (critical)
        src/view.ts       - innerHTML write (high)
        lib/helpers.py    - clean
        vendor/skip.js    - excluded in tests that pass exclude patterns
        README.md         - unsupported, listed but never analyzed
    """
    (tmp_path / "src").mkdir()
    (tmp_path / "lib").mkdir()
    (tmp_path / "vendor").mkdir()
    (tmp_path / "src" / "index.js").write_text("const result = eval(input);\n")
    (tmp_path / "src" / "view.ts").write_text(
        "export function show(el: HTMLElement, html: string): void {\n"
        "  el.innerHTML = html;\n"
        "}\n"
    )
    (tmp_path / "lib" / "helpers.py").write_text("def add(a, b):\n    return a + b\n")
    (tmp_path / "vendor" / "skip.js").write_text("eval('1');\n")
    (tmp_path / "README.md").write_text("# Temp repo\n")
    return tmp_path


# =============================================================================
# Source Fixtures
# =============================================================================


@pytest.fixture
def eval_source() -> str:
    """JavaScript with a single eval() call on line 3."""
    return "function run(code) {\n  const x = 1;\n  return eval(code);\n}\n"


@pytest.fixture
def inner_html_source() -> str:
    """JavaScript that writes innerHTML on line 2."""
    return "function render(el, html) {\n  el.innerHTML = html;\n}\n"


@pytest.fixture
def nested_loops_source() -> str:
    """JavaScript with three nested for loops."""
    return (
        "function grid(n) {\n"
        "  for (let i = 0; i < n; i++) {\n"
        "    for (let j = 0; j < n; j++) {\n"
        "      for (let k = 0; k < n; k++) {\n"
        "        console.log(i, j, k);\n"
        "      }\n"
        "    }\n"
        "  }\n"
        "}\n"
    )


@pytest.fixture
def unreachable_source() -> str:
    """JavaScript with a statement after return on line 3."""
    return "function f() {\n  return 1;\n  console.log('never');\n}\n"


@pytest.fixture
def assignment_condition_source() -> str:
    """JavaScript that assigns inside an if condition."""
    return "let x = 0;\nif (x = 5) {\n  x++;\n}\n"


@pytest.fixture
def twelve_ifs_source() -> str:
    """JavaScript with twelve sequential if statements (complexity 13)."""
    body = "".join(f"  if (x === {i}) {{\n    y++;\n  }}\n" for i in range(12))
    return f"function branches(x) {{\n  let y = 0;\n{body}  return y;\n}}\n"


@pytest.fixture
def malformed_source() -> str:
    """JavaScript that cannot be parsed."""
    return "function broken( {\n  return ((;\n"


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def rule_set() -> RuleSet:
    """Return the built-in rule set."""
    return RuleSet.default()


@pytest.fixture
def file_analyzer() -> FileAnalyzer:
    """Return a FileAnalyzer with default rules and analyzers."""
    return FileAnalyzer()


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def minimal_config_dict() -> dict[str, Any]:
    """Return a minimal valid configuration dictionary."""
    return {
        "output": {
            "format": "json",
        },
    }


@pytest.fixture
def full_config_dict() -> dict[str, Any]:
    """Return a full configuration dictionary with every section."""
    return {
        "analysis": {
            "exclude_paths": ["node_modules", "vendor"],
            "include_paths": ["src"],
            "file_timeout": 5,
            "tolerant_parsing": True,
            "min_severity": "medium",
        },
        "rules": {
            "complexity": {"threshold": 15},
            "no-innerHTML": False,
        },
        "output": {
            "format": "markdown",
            "path": "reports/vigil.md",
        },
        "ci": {
            "fail_on": "critical",
        },
    }

# =============================================================================
# Logging Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_vigil_logging() -> Iterator[None]:
    """Restore the vigil logger after tests that configure logging.

    CLI invocations install handlers bound to the runner's streams; records
    must also propagate so caplog can see them.
    """
    logger = logging.getLogger("vigil")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
