"""Preflight validation.

Parsers are validated before analysis begins, not during processing. A
missing grammar would otherwise surface as a parse-error finding on every
file of that language, which is indistinguishable from broken source code.
"""

import importlib.util
from dataclasses import asdict, dataclass, field
from importlib.metadata import PackageNotFoundError, version
from typing import Any

RUNTIME_PACKAGES = ("tree-sitter", "tree-sitter-language-pack")


@dataclass
class ToolCheck:
    """Result of checking a single dependency.

    Attributes:
        name: "tree-sitter" for the runtime, "grammar:<name>" for grammars
        available: Whether it is available
        version: Installed distribution version(s)
        required: Whether it is required for this run
        path: Module path if available
        message: Status message (human-readable context)
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    path: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    """Outcome of a preflight run; ``success`` drops on any missing required check."""

    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        self.checks.append(check)
        if check.available:
            return
        if check.required:
            self.success = False
            self.errors.append(f"Required dependency not available: {check.name}")
        else:
            self.warnings.append(f"Optional dependency not available: {check.name}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return asdict(self)


def _distribution_version(name: str) -> str | None:
    try:
        return version(name)
    except PackageNotFoundError:
        return None


class PreflightChecker:
    """Validates the parser runtime and its grammars.

    Usage:
        result = PreflightChecker().check_all(["javascript", "python"])
        if not result.success:
            raise typer.Exit(1)
    """

    def check_tree_sitter(self, required: bool = True) -> ToolCheck:
        """Check that both the runtime and the language pack are importable."""
        for module, dist in zip(("tree_sitter", "tree_sitter_language_pack"), RUNTIME_PACKAGES):
            if importlib.util.find_spec(module) is None:
                return ToolCheck(
                    name="tree-sitter",
                    available=False,
                    required=required,
                    message=f"Install with: pip install {dist}",
                )

        versions = [f"{dist} {_distribution_version(dist) or '?'}" for dist in RUNTIME_PACKAGES]
        return ToolCheck(
            name="tree-sitter",
            available=True,
            version=", ".join(versions),
            required=required,
            path=importlib.util.find_spec("tree_sitter").origin,  # type: ignore[union-attr]
            message="Parser runtime (Python package)",
        )

    def check_grammar(self, grammar: str, required: bool = True) -> ToolCheck:
        """Check that one grammar (e.g. "typescript", "tsx") loads from the pack."""
        name = f"grammar:{grammar}"
        try:
            from tree_sitter_language_pack import get_parser

            get_parser(grammar)
        except ImportError:
            return ToolCheck(
                name=name,
                available=False,
                required=required,
                message="tree-sitter-language-pack not installed",
            )
        except Exception as e:
            return ToolCheck(
                name=name,
                available=False,
                required=required,
                message=f"Failed to load grammar: {e}",
            )

        return ToolCheck(name=name, available=True, required=required, message="Grammar loaded")

    def check_all(self, languages: list[str] | None = None) -> PreflightResult:
        """Check the runtime, then every grammar the given languages need.

        Args:
            languages: Language ids to check (all known languages if None)

        Returns:
            PreflightResult with one check per runtime and distinct grammar
        """
        from vigil.analyzers.ast_parser import GRAMMAR_TABLES

        result = PreflightResult()
        runtime = self.check_tree_sitter()
        result.add_check(runtime)
        if not runtime.available:
            return result

        seen: set[str] = set()
        for language in languages or list(GRAMMAR_TABLES):
            table = GRAMMAR_TABLES.get(language)
            if table is None:
                result.add_check(
                    ToolCheck(
                        name=f"grammar:{language}",
                        available=False,
                        message=f"Unsupported language: {language}",
                    )
                )
                continue
            for grammar in table.grammars:
                if grammar not in seen:
                    seen.add(grammar)
                    result.add_check(self.check_grammar(grammar))

        return result
