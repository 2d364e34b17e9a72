"""Rule metadata and the Rule Set.

Rules are static configuration: they decide whether an analyzer check runs
and with which threshold. A RuleSet is an explicit, read-only value handed to
the orchestrators. Changing rules means building a new RuleSet with
``with_overrides``; sets already in use by a run are never mutated.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any

from vigil.models.finding import Category, RuleRef

# Rule emitted by the engine itself when a file cannot be parsed
PARSE_ERROR_RULE_ID = "parse-error"

# Complexity above this value is reported as high instead of medium
HIGH_COMPLEXITY_THRESHOLD = 20


@dataclass(frozen=True)
class Rule:
    """Static metadata for one check.

    Attributes:
        id: Rule identifier (e.g. "no-eval")
        name: Display name
        category: Category of the findings this rule produces
        analyzer: Analyzer group the rule belongs to (complexity, security, ...)
        enabled: Whether the check runs
        threshold: Optional numeric limit (complexity, loop depth, array size)
        documentation: Optional link to rule documentation
        cwe: Weakness classification ids attached to findings
    """

    id: str
    name: str
    category: Category
    analyzer: str
    enabled: bool = True
    threshold: int | None = None
    documentation: str | None = None
    cwe: tuple[str, ...] = ()

    def ref(self) -> RuleRef:
        """Return the reference embedded in findings."""
        return RuleRef(
            id=self.id,
            name=self.name,
            category=self.category,
            documentation=self.documentation,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "analyzer": self.analyzer,
            "enabled": self.enabled,
            "threshold": self.threshold,
            "documentation": self.documentation,
            "cwe": list(self.cwe),
        }


DEFAULT_RULES: tuple[Rule, ...] = (
    Rule(
        id="complexity",
        name="Cyclomatic Complexity",
        category=Category.COMPLEXITY,
        analyzer="complexity",
        threshold=10,
    ),
    Rule(
        id="no-eval",
        name="No eval()",
        category=Category.SECURITY,
        analyzer="security",
        documentation="https://eslint.org/docs/rules/no-eval",
        cwe=("CWE-95",),
    ),
    Rule(
        id="no-innerHTML",
        name="No innerHTML",
        category=Category.SECURITY,
        analyzer="security",
        cwe=("CWE-79",),
    ),
    Rule(
        id="max-nested-loops",
        name="Maximum nested loops",
        category=Category.PERFORMANCE,
        analyzer="performance",
        threshold=2,
    ),
    Rule(
        id="max-array-size",
        name="Maximum array size",
        category=Category.PERFORMANCE,
        analyzer="performance",
        threshold=1000,
    ),
    Rule(
        id="no-unreachable",
        name="No unreachable code",
        category=Category.BUG,
        analyzer="bugs",
    ),
    Rule(
        id="no-assignment-in-condition",
        name="No assignment in condition",
        category=Category.BUG,
        analyzer="bugs",
    ),
    Rule(
        id=PARSE_ERROR_RULE_ID,
        name="Parse Error",
        category=Category.BUG,
        analyzer="engine",
    ),
)


class RuleSet(Mapping[str, Rule]):
    """Read-only mapping of rule id to Rule.

    Usage:
        rules = RuleSet.default().with_overrides({"complexity": {"threshold": 15}})
        if rules.is_enabled("no-eval"):
            ...
    """

    def __init__(self, rules: Iterable[Rule]) -> None:
        """Initialize from a sequence of rules.

        Raises:
            ValueError: If two rules share an id
        """
        table: dict[str, Rule] = {}
        for rule in rules:
            if rule.id in table:
                raise ValueError(f"Duplicate rule id: {rule.id}")
            table[rule.id] = rule
        self._rules = MappingProxyType(table)

    @classmethod
    def default(cls) -> "RuleSet":
        """Return the built-in rule set."""
        return cls(DEFAULT_RULES)

    def __getitem__(self, rule_id: str) -> Rule:
        return self._rules[rule_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        enabled = sum(1 for r in self._rules.values() if r.enabled)
        return f"RuleSet({len(self._rules)} rules, {enabled} enabled)"

    def is_enabled(self, rule_id: str) -> bool:
        """Return True if the rule exists and is enabled."""
        rule = self._rules.get(rule_id)
        return rule is not None and rule.enabled

    def threshold(self, rule_id: str, default: int) -> int:
        """Return a rule's threshold, or ``default`` if it has none."""
        rule = self._rules.get(rule_id)
        if rule is None or rule.threshold is None:
            return default
        return rule.threshold

    def for_analyzer(self, analyzer: str) -> list[Rule]:
        """Return the rules belonging to an analyzer group."""
        return [r for r in self._rules.values() if r.analyzer == analyzer]

    def enabled_categories(self) -> set[Category]:
        """Return the categories of all enabled rules."""
        return {r.category for r in self._rules.values() if r.enabled}

    def with_overrides(self, overrides: Mapping[str, Any]) -> "RuleSet":
        """Build a new RuleSet with per-rule overrides applied.

        Args:
            overrides: Mapping of rule id (or analyzer group name) to either a
                bool (enabled flag) or a dict with ``enabled``/``threshold``

        Returns:
            New RuleSet; this one is left untouched

        Raises:
            ValueError: If an override names an unknown rule or has a bad value
        """
        groups = {r.analyzer for r in self._rules.values()} - {"engine"}
        updated = dict(self._rules)

        for key, value in overrides.items():
            if key == PARSE_ERROR_RULE_ID:
                raise ValueError(f"Rule {key} is emitted by the engine and cannot be overridden")
            if key in updated:
                targets = [key]
            elif key in groups:
                targets = [r.id for r in self._rules.values() if r.analyzer == key]
            else:
                raise ValueError(f"Unknown rule: {key}. Valid: {sorted(self._rules)}")

            changes = _parse_override(key, value)
            for rule_id in targets:
                # Group-level overrides only toggle; thresholds are per rule
                rule_changes = changes if rule_id == key else {
                    k: v for k, v in changes.items() if k == "enabled"
                }
                updated[rule_id] = replace(updated[rule_id], **rule_changes)

        return RuleSet(tuple(updated.values()))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {rule_id: rule.to_dict() for rule_id, rule in self._rules.items()}


def _parse_override(key: str, value: Any) -> dict[str, Any]:
    """Validate one override entry and return dataclass field changes."""
    if isinstance(value, bool):
        return {"enabled": value}

    if not isinstance(value, Mapping):
        raise ValueError(f"Invalid override for rule {key}: {value!r}")

    changes: dict[str, Any] = {}
    for field_name, field_value in value.items():
        if field_name == "enabled":
            if not isinstance(field_value, bool):
                raise ValueError(f"Rule {key}: enabled must be true or false")
            changes["enabled"] = field_value
        elif field_name == "threshold":
            if isinstance(field_value, bool) or not isinstance(field_value, int) or field_value < 0:
                raise ValueError(f"Rule {key}: threshold must be a non-negative integer")
            changes["threshold"] = field_value
        else:
            raise ValueError(f"Rule {key}: unknown setting '{field_name}'")
    return changes
