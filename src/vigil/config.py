"""Vigil configuration system.

Configuration is primarily YAML-based with minimal CLI overrides (--format,
--output, --exclude, --include, --fail-on). Supports environment variable
substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.vigil/config.yaml
3. ./vigil.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from vigil.models import Severity
from vigil.rules import RuleSet
from vigil.sources import DEFAULT_EXCLUDE_PATHS, AnalysisOptions

VALID_FORMATS = ("text", "json", "markdown")


def _parse_bool(name: str, value: Any) -> bool:
    """Accept a YAML bool, or "true"/"false" as left by ${VAR} substitution."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"{name} must be true or false (got {value!r})")


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class AnalysisConfig:
    """Analysis behaviour.

    Attributes:
        exclude_paths: Path patterns never analyzed
        include_paths: When non-empty, only matching paths are analyzed
        file_timeout: Per-file time budget in seconds
        tolerant_parsing: Analyze best-effort trees of files with syntax errors
        min_severity: Findings below this severity are dropped
    """

    exclude_paths: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATHS))
    include_paths: list[str] = field(default_factory=list)
    file_timeout: float = 30.0
    tolerant_parsing: bool = False
    min_severity: str = "low"

    def __post_init__(self) -> None:
        """Validate analysis configuration."""
        if isinstance(self.file_timeout, bool) or not isinstance(self.file_timeout, (int, float)):
            raise ValueError(f"file_timeout must be a number (got {self.file_timeout!r})")
        if self.file_timeout <= 0:
            raise ValueError(f"file_timeout must be positive (got {self.file_timeout})")

        self.tolerant_parsing = _parse_bool("tolerant_parsing", self.tolerant_parsing)
        self.min_severity = Severity.parse(self.min_severity).value

        for name in ("exclude_paths", "include_paths"):
            value = getattr(self, name)
            if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
                raise ValueError(f"{name} must be a list of strings")

    def options(self) -> AnalysisOptions:
        """Return the path filter for a repository run."""
        return AnalysisOptions(
            exclude_paths=list(self.exclude_paths),
            include_paths=list(self.include_paths),
        )


@dataclass
class OutputConfig:
    """Output configuration.

    Attributes:
        format: Report format (text, json, markdown)
        path: Output file path (stdout if None)
    """

    format: str = "text"
    path: str | None = None

    def __post_init__(self) -> None:
        """Validate output configuration."""
        if self.format not in VALID_FORMATS:
            raise ValueError(f"Invalid output format: {self.format}. Valid: {list(VALID_FORMATS)}")


@dataclass
class CIConfig:
    """CI/CD-specific configuration.

    Attributes:
        fail_on: Exit with code 2 when a finding at or above this severity exists
    """

    fail_on: str = "high"

    def __post_init__(self) -> None:
        """Validate CI configuration."""
        self.fail_on = Severity.parse(self.fail_on).value


@dataclass
class VigilConfig:
    """Top-level Vigil configuration.

    Attributes:
        analysis: Path filters, time budget, parsing mode, severity floor
        rules: Per-rule overrides applied on top of the built-in rule set
        output: Report format and destination
        ci: CI/CD settings
    """

    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    rules: dict[str, Any] = field(default_factory=dict)
    output: OutputConfig = field(default_factory=OutputConfig)
    ci: CIConfig = field(default_factory=CIConfig)

    # Runtime overrides (set by CLI)
    _config_path: Path | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate rule overrides eagerly so bad config fails at load time."""
        self.rule_set()

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path

    def rule_set(self) -> RuleSet:
        """Build the effective rule set (defaults plus overrides).

        Raises:
            ValueError: If an override names an unknown rule or has a bad value
        """
        return RuleSet.default().with_overrides(self.rules)


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.
    Example: ${VIGIL_FAIL_ON} -> value of VIGIL_FAIL_ON

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.vigil/config.yaml
    2. ./vigil.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".vigil" / "config.yaml",
        start_path / "vigil.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def load_config_from_dict(data: dict[str, Any]) -> VigilConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        VigilConfig instance

    Raises:
        ValueError: If any value is invalid
    """
    data = substitute_env_vars(data)

    analysis_data = _section(data, "analysis")
    defaults = AnalysisConfig()
    analysis = AnalysisConfig(
        exclude_paths=analysis_data.get("exclude_paths", defaults.exclude_paths),
        include_paths=analysis_data.get("include_paths", defaults.include_paths),
        file_timeout=analysis_data.get("file_timeout", defaults.file_timeout),
        tolerant_parsing=analysis_data.get("tolerant_parsing", defaults.tolerant_parsing),
        min_severity=str(analysis_data.get("min_severity", defaults.min_severity)),
    )

    output_data = _section(data, "output")
    output = OutputConfig(
        format=output_data.get("format", "text"),
        path=output_data.get("path"),
    )

    ci_data = _section(data, "ci")
    ci = CIConfig(fail_on=str(ci_data.get("fail_on", "high")))

    return VigilConfig(
        analysis=analysis,
        rules=_section(data, "rules"),
        output=output,
        ci=ci,
    )


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> VigilConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        VigilConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
        ValueError: If the file is not a YAML mapping or holds invalid values
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {found_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Config file {found_path} must contain a mapping")
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = VigilConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# Vigil Configuration

# Analysis settings
analysis:
  exclude_paths:         # directory names, path prefixes, or glob patterns
    - node_modules
    - .git
    - dist
    - build
  include_paths: []      # when set, only matching paths are analyzed
  file_timeout: 30       # seconds per file before it is reported as a parse error
  tolerant_parsing: false  # analyze files with recoverable syntax errors
  min_severity: low      # low, medium, high, critical

# Rule overrides (see `vigil rules`)
rules: {}
#   complexity:
#     threshold: 15
#   no-innerHTML: false
#   performance:
#     enabled: false

# Output settings
output:
  format: text           # text, json, markdown
  # path: "vigil-report.md"

# CI/CD settings
ci:
  fail_on: high          # exit code 2 when findings at or above this severity exist
'''
