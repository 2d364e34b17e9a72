"""Analyzer registry.

The registry holds the analyzer passes an engine runs, in declaration order.
Each engine builds its own registry; there is no process-wide instance, so two
engines with different analyzers never interfere.
"""

from collections.abc import Iterator
from typing import Any

from vigil.analyzers.base import Analyzer


class AnalyzerRegistry:
    """Ordered collection of analyzers keyed by group name.

    Adding a new analyzer:
        1. Subclass Analyzer and give it a group name
        2. Add rules with ``analyzer=<group name>`` to the rule set
        3. Register it here (or in ``default_analyzers``)

    Findings are emitted in registration order, so the order of ``register``
    calls is part of the output contract.
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._analyzers: dict[str, Analyzer] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, analyzer: Analyzer) -> None:
        """Register an analyzer.

        Raises:
            ValueError: If an analyzer with the same name is already registered
        """
        if analyzer.name in self._analyzers:
            raise ValueError(f"Analyzer '{analyzer.name}' already registered")
        self._analyzers[analyzer.name] = analyzer

    # =========================================================================
    # Retrieval
    # =========================================================================

    def get(self, name: str) -> Analyzer:
        """Get a registered analyzer by group name.

        Raises:
            KeyError: If no analyzer is registered under that name
        """
        if name not in self._analyzers:
            available = list(self._analyzers.keys())
            raise KeyError(f"Analyzer '{name}' not registered. Available: {available}")
        return self._analyzers[name]

    def __iter__(self) -> Iterator[Analyzer]:
        return iter(self._analyzers.values())

    def __len__(self) -> int:
        return len(self._analyzers)

    # =========================================================================
    # Introspection
    # =========================================================================

    def names(self) -> list[str]:
        """Get registered analyzer names in run order."""
        return list(self._analyzers.keys())

    def get_metadata(self) -> dict[str, Any]:
        """Get registry metadata for logging and debugging."""
        return {"analyzers": [a.get_metadata() for a in self._analyzers.values()]}
